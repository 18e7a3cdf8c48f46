"""
Smoke tests for the Qt search builder widget.

Runs with the offscreen platform plugin; skipped when PySide6 is not available.
"""

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from PySide6.QtCore import Qt

import querytree.config.settings as settings_mod
from querytree.core.builder import SearchBuilder
from querytree.core.nodes import Group, LogicalOperator
from querytree.ui.widgets.search_builder_widget import NODE_ID_ROLE, SearchBuilderWidget


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


@pytest.fixture
def widget(qapp, builder):
    widget = SearchBuilderWidget(builder)
    yield widget
    widget.close()
    widget.deleteLater()


def root_item(widget):
    return widget.tree_widget.topLevelItem(0)


class TestRendering:
    """Tests for mirroring the tree in the QTreeWidget."""

    def test_empty_tree(self, widget):
        assert widget.tree_widget.topLevelItemCount() == 1
        assert root_item(widget).text(0) == "AND (root)"
        assert root_item(widget).childCount() == 0
        assert widget.query_preview.toPlainText() == "{}"

    def test_rebuilds_on_structural_change(self, widget, builder):
        gene = builder.add_condition("gene", {"terms": [1]})
        builder.add_condition("disease")

        root = root_item(widget)
        assert root.childCount() == 2
        assert root.child(0).text(0) == "Gene symbol"
        assert root.child(0).data(0, NODE_ID_ROLE) == gene.id
        assert widget.item_for_node(gene) is root.child(0)
        assert widget.node_for_item(root.child(0)) is gene
        assert '"and"' in widget.query_preview.toPlainText()

    def test_add_condition_menu(self, widget, builder):
        action = widget.add_condition_menu.actions()[0]
        widget.add_condition_menu.triggered.emit(action)

        assert [item.condition_type for item in builder.editor.items()] == [action.data()]


class TestSelectionSync:
    """Tests for keeping both selections in step."""

    def test_tree_selection_drives_capabilities(self, widget, builder):
        a = builder.add_condition("gene")
        b = builder.add_condition("disease")
        builder.add_condition("type")
        assert not widget.action_group.isEnabled()

        widget.item_for_node(a).setSelected(True)
        widget.item_for_node(b).setSelected(True)

        assert builder.selection.current() == [a, b]
        assert widget.action_group.isEnabled()
        assert widget.action_delete.isEnabled()
        assert not widget.action_copy.isEnabled()

    def test_group_action(self, widget, builder):
        a = builder.add_condition("gene")
        b = builder.add_condition("disease")
        builder.add_condition("type")
        builder.selection.select(a)
        builder.selection.select(b)

        widget.action_group.trigger()

        group = root_item(widget).child(0)
        assert group.text(0) == "OR"
        assert group.childCount() == 2
        assert group.isSelected()
        assert widget.action_ungroup.isEnabled()

    def test_root_is_not_selectable(self, widget):
        assert not root_item(widget).flags() & Qt.ItemFlag.ItemIsSelectable


class TestOperatorSwitch:
    """Tests for switching AND/OR from the widget."""

    def test_toggle_root(self, widget, builder):
        widget.action_toggle_operator.trigger()

        assert builder.root.operator is LogicalOperator.OR
        assert root_item(widget).text(0) == "OR (root)"

    def test_double_click_group(self, widget, builder):
        a = builder.add_condition("gene")
        b = builder.add_condition("disease")
        builder.add_condition("type")
        group = builder.editor.add_group([a, b])
        assert isinstance(group, Group)

        widget.tree_widget.itemDoubleClicked.emit(widget.item_for_node(group), 0)

        assert group.operator is LogicalOperator.AND
        assert widget.item_for_node(group).text(0) == "AND"


def test_main_window(qapp, tmp_path, monkeypatch):
    monkeypatch.setattr(settings_mod, "get_log_file_path", lambda: tmp_path / "log.txt")
    monkeypatch.setattr(
        settings_mod, "_settings_manager", settings_mod.SettingsManager(tmp_path / "settings.json")
    )
    from querytree.ui.app import MainWindow

    window = MainWindow()
    window.builder.add_condition("gene", {"terms": [1]})

    assert isinstance(window.builder, SearchBuilder)
    assert settings_mod.get_settings().recent_queries == [{"gene": {"terms": [1]}}]
    assert "1 condition" in window.statusBar().currentMessage()
    window.close()
