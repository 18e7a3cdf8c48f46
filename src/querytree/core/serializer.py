"""
Query compilation for condition trees.

serialize() turns a tree into the canonical nested query consumed by the
search backend:

    {}                              empty tree
    {condition_type: payload}       single condition
    {"and": [query, ...]}           all children must match
    {"or": [query, ...]}            any child must match

deserialize() rebuilds an editable tree from such a query, which is how a
search restored from history gets back into the editor.
"""

import json
from typing import Any, Optional

from .editor import TreeEditor
from .errors import QueryFormatError, StructuralViolation
from .nodes import Group, Item, LogicalOperator, Node


Query = dict[str, Any]

OPERATOR_KEYS = {op.value: op for op in LogicalOperator}


def serialize(node: Node) -> Query:
    """
    Compile a node and its subtree into a query object.

    Groups with a single child pass that child's query through, and empty
    groups compile to an empty query. The tree is never modified.

    Args:
        node: Root of the subtree to compile (usually the editor's root).

    Returns:
        The nested query object.
    """
    if isinstance(node, Item):
        return {node.condition_type: node.payload}

    if isinstance(node, Group):
        children = node.children
        if not children:
            return {}
        if len(children) == 1:
            return serialize(children[0])
        return {node.operator.value: [serialize(child) for child in children]}

    raise TypeError(f"Cannot serialize {type(node).__name__}")


def to_json(query: Query, indent: Optional[int] = None) -> str:
    """Render a query as JSON text."""
    return json.dumps(query, indent=indent, ensure_ascii=False)


def _operator_entries(query: Query) -> tuple[Optional[LogicalOperator], Any]:
    """Split a single-key query into (operator, entries) or (None, None)."""
    (key, value), = query.items()
    operator = OPERATOR_KEYS.get(key)
    if operator is None:
        return None, None
    if not isinstance(value, list):
        raise QueryFormatError(f"'{key}' must hold a list of queries", query)
    return operator, value


def _check_shape(query: Any) -> None:
    if not isinstance(query, dict):
        raise QueryFormatError(f"expected an object, got {type(query).__name__}", query)
    if len(query) > 1:
        raise QueryFormatError(f"expected a single key, got {sorted(query)}", query)


def _build(editor: TreeEditor, query: Any) -> Optional[Node]:
    """Build a detached subtree for a query; None for empty queries."""
    _check_shape(query)
    if not query:
        return None

    operator, entries = _operator_entries(query)
    if operator is None:
        (condition_type, payload), = query.items()
        try:
            return editor.create_item(condition_type, payload, valid=True)
        except StructuralViolation as e:
            raise QueryFormatError(str(e), query) from e

    children = [child for child in (_build(editor, entry) for entry in entries) if child is not None]
    if not children:
        return None
    if len(children) == 1:
        return children[0]
    return editor.create_group(operator, children)


def deserialize(query: Query, root_operator: LogicalOperator = LogicalOperator.AND) -> TreeEditor:
    """
    Rebuild an editable tree from a query object.

    A top-level operator object becomes the root group itself; nested
    operator objects with fewer than two non-empty entries are flattened.
    Conditions come back as validated items.

    Args:
        query: Query as produced by serialize().
        root_operator: Root operator used when the query is not an operator object.

    Returns:
        A new TreeEditor holding the tree.

    Raises:
        QueryFormatError: If the query is not a nested single-key object.
    """
    _check_shape(query)
    editor = TreeEditor(root_operator=root_operator)
    if not query:
        return editor

    operator, entries = _operator_entries(query)
    if operator is None:
        nodes = [_build(editor, query)]
    else:
        nodes = [node for node in (_build(editor, entry) for entry in entries) if node is not None]

    with editor.batch():
        if operator is not None:
            editor.set_operator(editor.root, operator)
        for node in nodes:
            editor.attach(node, editor.root)

    return editor
