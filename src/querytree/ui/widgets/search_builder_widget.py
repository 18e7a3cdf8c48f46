"""
Search Builder Widget.

Renders a condition tree in a QTreeWidget, forwards the user's selection
to the selection manager and runs the toolbar commands through the
search builder. The widget owns the mapping between node ids and tree
widget items; the core never sees any Qt object.
"""

import json
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QTreeWidget, QTreeWidgetItem, QToolBar, QMenu, QPlainTextEdit,
    QSplitter, QVBoxLayout, QAbstractItemView
)
from PySide6.QtCore import Slot, Qt
from PySide6.QtGui import QAction, QBrush, QColor, QKeySequence

from querytree.infrastructure.logging_config import get_logger
from querytree.core.builder import SearchBuilder
from querytree.core.capabilities import Capabilities
from querytree.core.conditions import ConditionCatalog, default_catalog
from querytree.core.nodes import Group, Item, Node
from querytree.core.serializer import to_json


logger = get_logger(__name__)

NODE_ID_ROLE = Qt.ItemDataRole.UserRole


class SearchBuilderWidget(QWidget):
    """
    Widget for building an advanced search as a tree of conditions.

    Provides a toolbar (add condition, group, ungroup, copy, delete,
    AND/OR switch), the condition tree and a preview of the compiled query.
    """

    def __init__(
        self,
        builder: SearchBuilder,
        catalog: Optional[ConditionCatalog] = None,
        parent=None
    ):
        """
        Initialize the search builder widget.

        Args:
            builder: Search builder holding the tree being edited.
            catalog: Condition types offered in the "Add condition" menu.
            parent: Parent widget.
        """
        super().__init__(parent)

        self._builder = builder
        self._catalog = catalog or builder.catalog or default_catalog()
        self._tree_items: dict[int, QTreeWidgetItem] = {}
        self._syncing_selection = False

        self._setup_ui()
        self._connect_signals()
        self._rebuild_tree()
        self._update_actions(builder.capabilities)

        logger.debug("SearchBuilderWidget initialized")

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)

        self.toolbar = QToolBar(self)
        layout.addWidget(self.toolbar)

        self.add_condition_menu = QMenu("Add condition", self)
        for definition in self._catalog:
            action = self.add_condition_menu.addAction(definition.label)
            action.setData(definition.condition_type)
        self.toolbar.addAction(self.add_condition_menu.menuAction())

        self.action_group = QAction("Group", self)
        self.action_group.setShortcut(QKeySequence("G"))
        self.action_ungroup = QAction("Ungroup", self)
        self.action_ungroup.setShortcut(QKeySequence("Shift+G"))
        self.action_copy = QAction("Copy", self)
        self.action_copy.setShortcut(QKeySequence(QKeySequence.StandardKey.Copy))
        self.action_delete = QAction("Delete", self)
        self.action_delete.setShortcut(QKeySequence(QKeySequence.StandardKey.Delete))
        self.action_toggle_operator = QAction("AND / OR", self)

        for action in (
            self.action_group,
            self.action_ungroup,
            self.action_copy,
            self.action_delete,
            self.action_toggle_operator,
        ):
            self.toolbar.addAction(action)

        splitter = QSplitter(Qt.Orientation.Horizontal, self)
        layout.addWidget(splitter)

        self.tree_widget = QTreeWidget(splitter)
        self.tree_widget.setHeaderLabels(["Condition", "Value"])
        self.tree_widget.setSelectionMode(QAbstractItemView.SelectionMode.ExtendedSelection)

        self.query_preview = QPlainTextEdit(splitter)
        self.query_preview.setReadOnly(True)

    def _connect_signals(self):
        """Connect UI signals and builder notifications."""
        self.add_condition_menu.triggered.connect(self._add_condition_triggered)
        self.action_group.triggered.connect(self._group)
        self.action_ungroup.triggered.connect(self._ungroup)
        self.action_copy.triggered.connect(self._copy)
        self.action_delete.triggered.connect(self._delete)
        self.action_toggle_operator.triggered.connect(self._toggle_operator)

        self.tree_widget.itemSelectionChanged.connect(self._tree_selection_changed)
        self.tree_widget.itemDoubleClicked.connect(self._item_double_clicked)

        self._unsubscribers = [
            self._builder.editor.on_structural_change(self._rebuild_tree),
            self._builder.selection.on_selection_change(self._apply_selection),
            self._builder.on_capabilities_change(self._update_actions),
        ]

    def closeEvent(self, event):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        super().closeEvent(event)

    # ==================== Rendering ====================

    def node_for_item(self, tree_item: QTreeWidgetItem) -> Node:
        """Map a tree widget item back to its node."""
        return self._builder.editor.get(tree_item.data(0, NODE_ID_ROLE))

    def item_for_node(self, node: Node) -> Optional[QTreeWidgetItem]:
        """Map a node to the tree widget item showing it."""
        return self._tree_items.get(node.id)

    def _rebuild_tree(self):
        """Recreate the tree widget from the condition tree."""
        self.tree_widget.blockSignals(True)
        try:
            self.tree_widget.clear()
            self._tree_items.clear()
            root_item = self._create_tree_item(self._builder.root)
            self.tree_widget.addTopLevelItem(root_item)
            self.tree_widget.expandAll()
        finally:
            self.tree_widget.blockSignals(False)

        self._apply_selection(self._builder.selection.current())
        self._update_preview()

    def _create_tree_item(self, node: Node) -> QTreeWidgetItem:
        tree_item = QTreeWidgetItem()
        tree_item.setData(0, NODE_ID_ROLE, node.id)
        self._tree_items[node.id] = tree_item

        if isinstance(node, Group):
            label = node.operator.value.upper()
            if node.is_root:
                label = f"{label} (root)"
                tree_item.setFlags(tree_item.flags() & ~Qt.ItemFlag.ItemIsSelectable)
            tree_item.setText(0, label)
            for child in node.children:
                tree_item.addChild(self._create_tree_item(child))
        elif isinstance(node, Item):
            tree_item.setText(0, self._catalog.label(node.condition_type))
            tree_item.setText(1, json.dumps(node.payload, ensure_ascii=False))
            if not node.valid:
                font = tree_item.font(0)
                font.setItalic(True)
                tree_item.setFont(0, font)
                tree_item.setForeground(1, QBrush(QColor("gray")))

        return tree_item

    def _update_preview(self):
        self.query_preview.setPlainText(to_json(self._builder.query, indent=2))

    # ==================== Selection ====================

    @Slot()
    def _tree_selection_changed(self):
        """Forward the tree widget selection to the selection manager."""
        if self._syncing_selection:
            return

        selection = self._builder.selection
        self._syncing_selection = True
        try:
            selection.clear()
            for tree_item in self.tree_widget.selectedItems():
                selection.select(self.node_for_item(tree_item), exclusive=False)
        finally:
            self._syncing_selection = False

        # The selection manager may have dropped non-siblings
        self._apply_selection(selection.current())

    def _apply_selection(self, nodes: list[Node]):
        """Show the selection manager's selection in the tree widget."""
        if self._syncing_selection:
            return

        self._syncing_selection = True
        self.tree_widget.blockSignals(True)
        try:
            self.tree_widget.clearSelection()
            for node in nodes:
                tree_item = self.item_for_node(node)
                if tree_item is not None:
                    tree_item.setSelected(True)
        finally:
            self.tree_widget.blockSignals(False)
            self._syncing_selection = False

    def _update_actions(self, capabilities: Capabilities):
        """Enable toolbar actions from the capability flags."""
        self.action_group.setEnabled(capabilities.can_group)
        self.action_ungroup.setEnabled(capabilities.can_ungroup)
        self.action_copy.setEnabled(capabilities.can_copy)
        self.action_delete.setEnabled(capabilities.can_delete)

    # ==================== Commands ====================

    @Slot(QAction)
    def _add_condition_triggered(self, action: QAction):
        condition_type = action.data()
        item = self._builder.add_condition(condition_type)
        logger.debug(f"Added condition {condition_type} as node {item.id}")

    @Slot()
    def _group(self):
        self._builder.group()

    @Slot()
    def _ungroup(self):
        self._builder.ungroup()

    @Slot()
    def _copy(self):
        self._builder.copy()

    @Slot()
    def _delete(self):
        self._builder.delete()

    @Slot()
    def _toggle_operator(self):
        """Flip the selected group, or the root when no group is selected."""
        selected = self._builder.selection.current()
        group = selected[0] if len(selected) == 1 and isinstance(selected[0], Group) else self._builder.root
        self._builder.toggle_operator(group)
        # Single-child groups change without a structural notification
        self._rebuild_tree()

    def _item_double_clicked(self, tree_item: QTreeWidgetItem, column: int):
        node = self.node_for_item(tree_item)
        if isinstance(node, Group):
            self._builder.toggle_operator(node)
            self._rebuild_tree()
