"""Exception hierarchy for the condition tree editor."""

from typing import Any, Optional


class QueryTreeError(Exception):
    """Base exception for all querytree errors.

    All exceptions raised by the core inherit from this class, allowing
    callers to catch every editor error with a single except clause.
    """

    pass


class StructuralViolation(QueryTreeError, ValueError):
    """An operation would break the shape of the condition tree.

    Raised for grouping across parents, grouping every child of a group,
    ungrouping or removing the root, and attaching a node under itself.
    """

    pass


class IdentityError(QueryTreeError, LookupError):
    """A node is not (or no longer) part of the tree."""

    def __init__(self, node_id: int, detail: str = "node is not part of the tree") -> None:
        self.node_id = node_id
        super().__init__(f"{detail}: {node_id}")


class QueryFormatError(QueryTreeError, ValueError):
    """A query object does not have the expected nested shape."""

    def __init__(self, reason: str, query: Optional[Any] = None) -> None:
        self.reason = reason
        self.query = query
        super().__init__(f"Invalid query: {reason}")


class UnknownConditionTypeError(QueryTreeError, KeyError):
    """A condition type is not listed in the condition catalog."""

    def __init__(self, condition_type: str) -> None:
        self.condition_type = condition_type
        super().__init__(f"Unknown condition type: {condition_type}")

    def __str__(self) -> str:
        return self.args[0]
