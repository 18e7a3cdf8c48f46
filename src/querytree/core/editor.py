"""
Tree editor for condition trees.

The editor owns the root group and is the only place where the tree is
restructured. Every public operation validates its arguments before it
touches the tree, restores the structural invariants (dissolving groups
left with fewer than two children) and then emits a single structural
change notification.
"""

from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from .errors import IdentityError, StructuralViolation
from .nodes import Group, Item, LogicalOperator, Node
from ..infrastructure.logging_config import get_logger


logger = get_logger(__name__)

StructuralListener = Callable[[], None]


class TreeEditor:
    """
    Editable condition tree rooted at a single AND/OR group.

    Listeners registered with on_structural_change() are called once per
    completed top-level operation, after any cascading dissolution, so they
    only ever observe a well-formed tree.
    """

    def __init__(self, root_operator: Union[str, LogicalOperator] = LogicalOperator.AND):
        """
        Initialize the editor with an empty root group.

        Args:
            root_operator: Logical operator of the root group.
        """
        self._root = Group(operator=root_operator, is_root=True)
        self._nodes: dict[int, Node] = {self._root.id: self._root}
        self._listeners: list[StructuralListener] = []
        self._depth = 0
        self._changed = False

    # ==================== Accessors ====================

    @property
    def root(self) -> Group:
        return self._root

    def contains(self, node: Node) -> bool:
        """Check whether the node is currently part of this tree."""
        return self._nodes.get(node.id) is node

    def get(self, node_id: int) -> Node:
        """
        Look up a node by id.

        Raises:
            IdentityError: If no node with this id is in the tree.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise IdentityError(node_id)
        return node

    def nodes(self) -> list[Node]:
        """All nodes of the tree in pre-order, root first."""
        return list(self._root.walk())

    def items(self) -> list[Item]:
        """All leaf conditions in document order."""
        return [node for node in self._root.walk() if isinstance(node, Item)]

    def require(self, node: Node) -> Node:
        """
        Ensure a node belongs to this tree.

        Raises:
            IdentityError: If the node is stale or belongs to another tree.
        """
        if not self.contains(node):
            raise IdentityError(node.id)
        return node

    def _require_group(self, node: Node) -> Group:
        self.require(node)
        if not isinstance(node, Group):
            raise StructuralViolation(f"Node {node.id} is not a group")
        return node

    # ==================== Notifications ====================

    def on_structural_change(self, callback: StructuralListener) -> Callable[[], None]:
        """
        Register a listener called after each completed structural change.

        Args:
            callback: Zero-argument callable; listeners re-read the tree themselves.

        Returns:
            A callable that unregisters the listener.
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    @contextmanager
    def batch(self) -> Iterator['TreeEditor']:
        """
        Group several operations into one structural change notification.

        Operations nested inside a batch do not notify on their own; the
        outermost batch notifies once on exit if anything changed. Changes
        are not rolled back when the batch exits with an exception, so the
        notification is still sent for whatever was applied before it.
        """
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0 and self._changed:
                self._changed = False
                self._notify()

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # ==================== Factories ====================

    def create_item(self, condition_type: str, payload: Any = None, valid: bool = False) -> Item:
        """Create a detached item. Use attach() or add_item() to place it."""
        return Item(condition_type, payload=payload, valid=valid)

    def create_group(
        self,
        operator: Union[str, LogicalOperator] = LogicalOperator.AND,
        children: Iterable[Node] = ()
    ) -> Group:
        """
        Create a detached group around detached nodes.

        Raises:
            StructuralViolation: If one of the children is already in a tree.
        """
        children = list(children)
        for child in children:
            if self.contains(child) or child.parent is not None:
                raise StructuralViolation(
                    f"Node {child.id} is already placed; use add_group() to group placed nodes"
                )
        return Group(operator=operator, children=children)

    # ==================== Operations ====================

    def add_item(
        self,
        parent_group: Group,
        condition_type: str,
        payload: Any = None,
        insert_before: Optional[Node] = None
    ) -> Item:
        """
        Add a new, not yet validated condition under a group.

        Args:
            parent_group: Group receiving the item.
            condition_type: Tag of the condition (e.g. 'gene').
            payload: Initial condition value.
            insert_before: Child of parent_group to insert in front of;
                the item is appended when omitted.

        Returns:
            The new item.

        Raises:
            IdentityError: If parent_group is not in the tree.
            StructuralViolation: If parent_group is not a group,
                insert_before is not one of its children, or the condition
                type is empty or reserved ('and'/'or').
        """
        self._require_group(parent_group)
        index = self._insertion_index(parent_group, insert_before)
        item = Item(condition_type, payload=payload, valid=False)

        with self.batch():
            parent_group.insert_child(index, item)
            self._register(item)
            self._changed = True

        logger.debug(f"Added {item!r} to group {parent_group.id} at {index}")
        return item

    def add_group(
        self,
        nodes: Iterable[Node],
        insert_before: Optional[Node] = None,
        operator: Union[str, LogicalOperator] = LogicalOperator.OR
    ) -> Group:
        """
        Wrap some siblings into a new group.

        The nodes must share one parent and be a proper subset of its
        children. The new group takes the place of the first of them (or
        sits in front of insert_before) and keeps their relative order.

        Args:
            nodes: Siblings to group.
            insert_before: Remaining sibling to insert the group in front of.
            operator: Operator of the new group.

        Returns:
            The new group.

        Raises:
            IdentityError: If one of the nodes is not in the tree.
            StructuralViolation: If the nodes have different parents, include
                the root, are fewer than two, or are all children of their parent.
        """
        nodes = list(nodes)
        for node in nodes:
            self.require(node)
        if len(nodes) < 2:
            raise StructuralViolation("A group needs at least two members")
        if len({node.id for node in nodes}) != len(nodes):
            raise StructuralViolation("The same node is listed twice")

        parent = nodes[0].parent
        if parent is None:
            raise StructuralViolation("The root group cannot be grouped")
        if any(node.parent is not parent for node in nodes):
            raise StructuralViolation("cannot group across different parents")
        if len(nodes) >= len(parent):
            raise StructuralViolation("cannot group all children of a group")
        if insert_before is not None:
            if insert_before.parent is not parent:
                raise StructuralViolation(f"Node {insert_before.id} is not a sibling of the grouped nodes")
            if any(node is insert_before for node in nodes):
                raise StructuralViolation("insert_before cannot be one of the grouped nodes")

        ordered = sorted(nodes, key=parent.index_of)

        with self.batch():
            position = parent.index_of(ordered[0])
            for node in ordered:
                parent.remove_child(node)
            if insert_before is not None:
                position = parent.index_of(insert_before)
            group = Group(operator=operator, children=ordered)
            parent.insert_child(position, group)
            self._nodes[group.id] = group
            self._changed = True

        logger.debug(f"Grouped {[node.id for node in ordered]} into {group!r}")
        return group

    def remove(self, node: Node) -> None:
        """
        Remove a node and its subtree.

        A non-root parent left with fewer than two children is dissolved,
        cascading upwards.

        Raises:
            IdentityError: If the node is not in the tree.
            StructuralViolation: If the node is the root.
        """
        self.require(node)
        parent = node.parent
        if parent is None:
            raise StructuralViolation("The root group cannot be removed")

        with self.batch():
            parent.remove_child(node)
            self._forget(node)
            self._changed = True
            self._flatten(parent)

        logger.debug(f"Removed {node!r}")

    def ungroup(self, group: Group) -> None:
        """
        Dissolve a group, splicing its children into its parent in its place.

        Raises:
            IdentityError: If the group is not in the tree.
            StructuralViolation: If the node is not a group or is the root.
        """
        self._require_group(group)
        parent = group.parent
        if parent is None:
            raise StructuralViolation("The root group cannot be ungrouped")

        with self.batch():
            self._dissolve(group)
            self._changed = True
            self._flatten(parent)

        logger.debug(f"Ungrouped {group!r}")

    def set_operator(self, group: Group, operator: Union[str, LogicalOperator]) -> None:
        """
        Set the logical operator of a group.

        The operator is always stored, but a group with fewer than two
        children does not use it, so no change is announced in that case.

        Raises:
            IdentityError: If the group is not in the tree.
            StructuralViolation: If the node is not a group.
        """
        self._require_group(group)
        operator = LogicalOperator.parse(operator)
        if group.operator is operator:
            return

        with self.batch():
            group.operator = operator
            if len(group) >= 2:
                self._changed = True

        logger.debug(f"Operator of group {group.id} set to {operator.value}")

    def toggle_operator(self, group: Group) -> LogicalOperator:
        """Flip AND/OR on a group and return the new operator."""
        self._require_group(group)
        self.set_operator(group, group.operator.toggled())
        return group.operator

    def attach(self, node: Node, parent_group: Group, insert_before: Optional[Node] = None) -> Node:
        """
        Place a detached node (e.g. a clone) under a group.

        Raises:
            IdentityError: If parent_group is not in the tree.
            StructuralViolation: If the node is already placed or
                insert_before is not a child of parent_group.
        """
        self._require_group(parent_group)
        if self.contains(node) or node.parent is not None:
            raise StructuralViolation(f"Node {node.id} is already placed")
        index = self._insertion_index(parent_group, insert_before)

        with self.batch():
            parent_group.insert_child(index, node)
            self._register(node)
            self._changed = True
            if isinstance(node, Group):
                self._flatten(node)

        logger.debug(f"Attached {node!r} to group {parent_group.id} at {index}")
        return node

    # ==================== Internals ====================

    def _insertion_index(self, group: Group, insert_before: Optional[Node]) -> int:
        if insert_before is None:
            return len(group)
        if insert_before.parent is not group:
            raise StructuralViolation(f"Node {insert_before.id} is not a child of group {group.id}")
        return group.index_of(insert_before)

    def _register(self, node: Node) -> None:
        for descendant in node.walk():
            self._nodes[descendant.id] = descendant

    def _forget(self, node: Node) -> None:
        for descendant in node.walk():
            self._nodes.pop(descendant.id, None)

    def _dissolve(self, group: Group) -> None:
        """Replace a group by its children at the same position."""
        parent = group.parent
        position = parent.remove_child(group)
        for offset, child in enumerate(group.children):
            parent.insert_child(position + offset, child)
        self._nodes.pop(group.id, None)

    def _flatten(self, group: Optional[Group]) -> None:
        """Dissolve groups left with fewer than two children, walking up the tree."""
        while group is not None and not group.is_root and len(group) <= 1:
            parent = group.parent
            logger.debug(f"Dissolving {group!r}")
            self._dissolve(group)
            group = parent
