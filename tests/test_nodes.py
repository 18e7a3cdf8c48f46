"""
Tests for the condition tree node model.
"""

import pytest

from querytree.core.errors import QueryTreeError, StructuralViolation
from querytree.core.nodes import Group, Item, LogicalOperator, NodeKind


class TestLogicalOperator:
    """Tests for LogicalOperator."""

    def test_toggled(self):
        assert LogicalOperator.AND.toggled() is LogicalOperator.OR
        assert LogicalOperator.OR.toggled() is LogicalOperator.AND

    @pytest.mark.parametrize("value", ["and", "AND", " And ", LogicalOperator.AND])
    def test_parse(self, value):
        assert LogicalOperator.parse(value) is LogicalOperator.AND

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            LogicalOperator.parse("not")


class TestItem:
    """Tests for Item nodes."""

    def test_create_item(self):
        """Test that a new item starts unvalidated."""
        item = Item("gene", {"terms": [1]})

        assert item.kind is NodeKind.ITEM
        assert item.is_item and not item.is_group
        assert item.condition_type == "gene"
        assert item.payload == {"terms": [1]}
        assert item.valid is False
        assert item.parent is None

    def test_ids_are_unique(self):
        ids = {Item("gene").id for _ in range(10)}
        assert len(ids) == 10

    @pytest.mark.parametrize("condition_type", ["", "and", "or", None])
    def test_invalid_condition_type(self, condition_type):
        with pytest.raises(StructuralViolation):
            Item(condition_type)

    def test_reserved_type_caught_as_query_tree_error(self, editor):
        with pytest.raises(QueryTreeError):
            editor.add_item(editor.root, "and")
        assert editor.root.children == ()

    def test_update(self):
        item = Item("gene")
        item.update({"terms": [2]})

        assert item.payload == {"terms": [2]}
        assert item.valid is True

    def test_clone_is_deep_with_new_id(self):
        item = Item("gene", {"terms": [1]}, valid=True)
        clone = item.clone()

        assert clone.id != item.id
        assert clone.condition_type == "gene"
        assert clone.valid is True
        assert clone.payload == item.payload
        clone.payload["terms"].append(2)
        assert item.payload == {"terms": [1]}


class TestGroup:
    """Tests for Group nodes."""

    def test_create_group_reparents_children(self):
        a, b = Item("a"), Item("b")
        group = Group("or", [a, b])

        assert group.kind is NodeKind.GROUP
        assert group.operator is LogicalOperator.OR
        assert group.children == (a, b)
        assert a.parent is group
        assert b.parent is group
        assert not group.is_root

    def test_default_operator_is_and(self):
        assert Group().operator is LogicalOperator.AND

    def test_placed_children_rejected(self):
        a, b, c = Item("a"), Item("b"), Item("c")
        first = Group(children=[a, b, c])

        with pytest.raises(StructuralViolation):
            Group(children=[b])
        assert first.children == (a, b, c)
        assert b.parent is first

    def test_node_of_editor_tree_cannot_be_taken(self, flat_editor):
        """Only the editor may move a placed node into a new group."""
        editor, (a, b, c) = flat_editor

        with pytest.raises(StructuralViolation):
            Group(children=[a])
        assert editor.root.children == (a, b, c)
        assert a.parent is editor.root
        assert editor.contains(a)

    def test_insert_child_moves_node(self):
        a, b, c = Item("a"), Item("b"), Item("c")
        first = Group(children=[a, b, c])
        second = Group()
        second.insert_child(0, b)

        assert first.children == (a, c)
        assert second.children == (b,)
        assert b.parent is second

    def test_root_cannot_be_a_child(self):
        root = Group(is_root=True)
        with pytest.raises(StructuralViolation):
            Group(children=[root])

    def test_duplicate_child_rejected(self):
        a = Item("a")
        with pytest.raises(StructuralViolation):
            Group(children=[a, a])

    def test_ancestor_cannot_be_inserted(self):
        inner = Group(children=[Item("a"), Item("b")])
        outer = Group(children=[inner, Item("c")])

        with pytest.raises(StructuralViolation):
            inner.insert_child(0, outer)
        with pytest.raises(StructuralViolation):
            inner.insert_child(0, inner)

    def test_navigation(self):
        a, b, c = Item("a"), Item("b"), Item("c")
        inner = Group(children=[b, c])
        root = Group(children=[a, inner], is_root=True)

        assert c.index_in_parent() == 1
        assert c.index_path() == (1, 1)
        assert root.index_path() == ()
        assert c.depth == 2
        assert list(c.ancestors()) == [inner, root]
        assert b.siblings() == (b, c)
        assert [node.id for node in root.walk()] == [root.id, a.id, inner.id, b.id, c.id]

    def test_remove_child_returns_index(self):
        a, b = Item("a"), Item("b")
        group = Group(children=[a, b])

        assert group.remove_child(b) == 1
        assert b.parent is None
        with pytest.raises(ValueError):
            group.index_of(b)

    def test_clone_copies_subtree(self):
        inner = Group("or", [Item("a", 1), Item("b", 2)])
        group = Group("and", [inner, Item("c", 3)])
        clone = group.clone()

        assert clone.id != group.id
        assert clone.operator is LogicalOperator.AND
        assert clone.children[0].operator is LogicalOperator.OR
        assert [child.payload for child in clone.children[0].children] == [1, 2]
        assert clone.children[0].children[0] is not inner.children[0]
