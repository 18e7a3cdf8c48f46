"""
Pytest configuration and shared fixtures.

This file contains pytest configuration and reusable test fixtures.
"""

import pytest

from querytree.core.builder import SearchBuilder
from querytree.core.editor import TreeEditor
from querytree.core.nodes import Group, Node


def assert_well_formed(editor: TreeEditor) -> None:
    """Check the structural invariants of a whole tree."""
    root = editor.root
    assert root.is_root
    assert root.parent is None

    seen = set()
    for node in editor.nodes():
        assert node.id not in seen
        seen.add(node.id)
        assert editor.contains(node)
        if node is not root:
            assert node.parent is not None
            assert any(child is node for child in node.parent.children)
        if isinstance(node, Group) and not node.is_root:
            assert len(node) >= 2, f"{node!r} should have been dissolved"


@pytest.fixture
def editor() -> TreeEditor:
    """An editor with an empty AND root."""
    return TreeEditor()


@pytest.fixture
def flat_editor(editor) -> tuple[TreeEditor, list[Node]]:
    """
    An editor whose root holds three items.

    Returns:
        The editor and the items [a, b, c] in tree order.
    """
    a = editor.add_item(editor.root, "gene", {"terms": [1]})
    b = editor.add_item(editor.root, "disease", {"terms": ["D1"]})
    c = editor.add_item(editor.root, "type", {"terms": ["SNV"]})
    return editor, [a, b, c]


@pytest.fixture
def nested_editor(editor) -> tuple[TreeEditor, dict[str, Node]]:
    """
    An editor holding root -> [GroupA([GroupB([X, Y]), Z]), W].

    Returns:
        The editor and its nodes by name.
    """
    x = editor.add_item(editor.root, "x", 1)
    y = editor.add_item(editor.root, "y", 2)
    z = editor.add_item(editor.root, "z", 3)
    w = editor.add_item(editor.root, "w", 4)
    group_b = editor.add_group([x, y])
    group_a = editor.add_group([group_b, z], operator="and")
    return editor, {"A": group_a, "B": group_b, "X": x, "Y": y, "Z": z, "W": w}


@pytest.fixture
def searches() -> list[dict]:
    """Collects the queries handed to the search callback."""
    return []


@pytest.fixture
def builder(searches) -> SearchBuilder:
    """A search builder recording its searches."""
    return SearchBuilder(search_callback=searches.append)
