"""
Node model for the condition tree.

A condition tree is made of two kinds of nodes: Items (leaf search
conditions) and Groups (logical AND/OR combinations of their children).
Groups own their children; every child keeps a weak back-reference to
the group that owns it.

These models are GUI-agnostic and should not import any UI frameworks.
"""

import copy
import itertools
import weakref
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Union

from .errors import StructuralViolation


_node_ids = itertools.count(1)

RESERVED_CONDITION_TYPES = frozenset({'and', 'or'})
"""Query keys used by groups; they can never name a leaf condition."""


def _allocate_id() -> int:
    """Return a process-wide unique node id. Ids are never reused."""
    return next(_node_ids)


class NodeKind(Enum):
    """Tag distinguishing the two node variants."""

    GROUP = 'group'
    ITEM = 'item'


class LogicalOperator(str, Enum):
    """Logical operator combining the children of a group."""

    AND = 'and'
    OR = 'or'

    def toggled(self) -> 'LogicalOperator':
        """Return the other operator."""
        return LogicalOperator.OR if self is LogicalOperator.AND else LogicalOperator.AND

    @classmethod
    def parse(cls, value: Union[str, 'LogicalOperator']) -> 'LogicalOperator':
        """
        Convert a string such as 'AND', 'and' or 'Or' to an operator.

        Args:
            value: Operator name or an existing LogicalOperator.

        Returns:
            The matching LogicalOperator.

        Raises:
            ValueError: If the value does not name an operator.
        """
        if isinstance(value, LogicalOperator):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown logical operator: {value!r}") from None


class Node:
    """
    Base class for condition tree nodes.

    Holds the node identity and the non-owning reference to the parent group.
    """

    kind: NodeKind

    def __init__(self, node_id: Optional[int] = None):
        self._id = node_id if node_id is not None else _allocate_id()
        self._parent_ref: Optional[weakref.ReferenceType] = None

    @property
    def id(self) -> int:
        """Stable identity of the node."""
        return self._id

    @property
    def parent(self) -> Optional['Group']:
        """The group owning this node, or None for the root and detached nodes."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def _set_parent(self, group: Optional['Group']) -> None:
        self._parent_ref = weakref.ref(group) if group is not None else None

    @property
    def is_group(self) -> bool:
        return self.kind is NodeKind.GROUP

    @property
    def is_item(self) -> bool:
        return self.kind is NodeKind.ITEM

    def index_in_parent(self) -> int:
        """
        Get the position of this node among its siblings.

        Returns:
            Index in the parent's children, or -1 when the node has no parent.
        """
        parent = self.parent
        if parent is None:
            return -1
        return parent.index_of(self)

    def siblings(self) -> tuple['Node', ...]:
        """All children of the parent group, this node included."""
        parent = self.parent
        if parent is None:
            return (self,)
        return parent.children

    def ancestors(self) -> Iterator['Group']:
        """Yield the parent, grandparent, ... up to the root."""
        parent = self.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    def index_path(self) -> tuple[int, ...]:
        """
        Get the path of child indices leading from the root to this node.

        Comparing index paths orders nodes in document (left-to-right) order.

        Returns:
            Tuple of indices; empty for the root.
        """
        path = []
        node = self
        parent = node.parent
        while parent is not None:
            path.append(parent.index_of(node))
            node = parent
            parent = node.parent
        return tuple(reversed(path))

    @property
    def depth(self) -> int:
        """Number of groups above this node."""
        return sum(1 for _ in self.ancestors())

    def walk(self) -> Iterator['Node']:
        """Yield this node and its descendants in pre-order."""
        yield self

    def clone(self) -> 'Node':
        raise NotImplementedError("Subclasses must implement clone()")


class Item(Node):
    """
    Leaf node holding one atomic search condition.

    The payload is owned by the leaf editor of the condition type; the tree
    only stores it and places it under its type tag when serializing.
    """

    kind = NodeKind.ITEM

    def __init__(
        self,
        condition_type: str,
        payload: Any = None,
        valid: bool = False,
        node_id: Optional[int] = None
    ):
        if not isinstance(condition_type, str) or not condition_type:
            raise StructuralViolation("An item requires a non-empty condition type")
        if condition_type in RESERVED_CONDITION_TYPES:
            raise StructuralViolation(f"'{condition_type}' is reserved for logical groups")
        super().__init__(node_id)
        self._condition_type = condition_type
        self.payload = payload
        self.valid = valid

    @property
    def condition_type(self) -> str:
        return self._condition_type

    def update(self, payload: Any, valid: bool = True) -> None:
        """
        Replace the payload after the leaf editor has validated it.

        Args:
            payload: New condition value.
            valid: Whether the leaf editor accepted the value.
        """
        self.payload = payload
        self.valid = valid

    def clone(self) -> 'Item':
        """Deep copy of this item with a fresh id."""
        return Item(self._condition_type, copy.deepcopy(self.payload), self.valid)

    def __repr__(self) -> str:
        return f"Item(id={self.id}, condition_type={self._condition_type!r}, valid={self.valid})"


class Group(Node):
    """
    Internal node combining its children under a logical operator.
    """

    kind = NodeKind.GROUP

    def __init__(
        self,
        operator: Union[str, LogicalOperator] = LogicalOperator.AND,
        children: Optional[Iterable[Node]] = None,
        is_root: bool = False,
        node_id: Optional[int] = None
    ):
        """
        Create a group and take ownership of the initial children.

        The children must be detached; placed nodes are moved through the
        editor (TreeEditor.add_group), which keeps its index and the
        flatten rule in step.

        Args:
            operator: Logical operator of the group.
            children: Initial children, in order.
            is_root: Whether this group is the root of a tree.
            node_id: Explicit id; allocated when omitted.

        Raises:
            StructuralViolation: If a child already has a parent, is a root
                group or is listed twice.
        """
        super().__init__(node_id)
        self.operator = LogicalOperator.parse(operator)
        self._is_root = is_root
        self._children: list[Node] = []

        for child in children or ():
            if child.parent is not None:
                raise StructuralViolation(f"Node {child.id} already belongs to group {child.parent.id}")
            self.insert_child(len(self._children), child)

    @property
    def is_root(self) -> bool:
        return self._is_root

    @property
    def children(self) -> tuple[Node, ...]:
        """Children in order. Read-only view; mutate through the editor."""
        return tuple(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def index_of(self, node: Node) -> int:
        """
        Get the index of a direct child.

        Raises:
            ValueError: If the node is not a child of this group.
        """
        for index, child in enumerate(self._children):
            if child is node:
                return index
        raise ValueError(f"Node {node.id} is not a child of group {self.id}")

    def insert_child(self, index: int, node: Node) -> None:
        """
        Insert a node at a position, detaching it from its previous parent.

        Raises:
            StructuralViolation: If the node is a root, is this group, or is
                one of its ancestors.
        """
        if node.is_group and node.is_root:
            raise StructuralViolation("The root group cannot become a child")
        if node is self or any(ancestor is node for ancestor in self.ancestors()):
            raise StructuralViolation("A group cannot contain itself or one of its ancestors")
        if any(child is node for child in self._children):
            raise StructuralViolation(f"Node {node.id} is already a child of group {self.id}")

        previous = node.parent
        if previous is not None:
            previous.remove_child(node)

        self._children.insert(index, node)
        node._set_parent(self)

    def remove_child(self, node: Node) -> int:
        """
        Detach a direct child.

        Returns:
            The index the child occupied.
        """
        index = self.index_of(node)
        del self._children[index]
        node._set_parent(None)
        return index

    def walk(self) -> Iterator[Node]:
        yield self
        for child in self._children:
            yield from child.walk()

    def clone(self) -> 'Group':
        """Deep copy of this group and its subtree with fresh ids."""
        return Group(self.operator, [child.clone() for child in self._children])

    def __repr__(self) -> str:
        root = ", root" if self._is_root else ""
        return f"Group(id={self.id}, operator={self.operator.value!r}, children={len(self._children)}{root})"
