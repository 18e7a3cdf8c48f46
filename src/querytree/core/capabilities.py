"""
Capability resolution.

Maps the current selection to the commands that are legal for it. The
toolbar enables its actions from these flags and the command layer
refuses commands whose flag is false.
"""

from dataclasses import dataclass, asdict
from typing import Sequence

from .nodes import Group, Item, Node


@dataclass(frozen=True)
class Capabilities:
    """Which selection commands are currently legal."""

    can_delete: bool = False
    can_group: bool = False
    can_ungroup: bool = False
    can_copy: bool = False

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


NO_CAPABILITIES = Capabilities()


def resolve(selection: Sequence[Node]) -> Capabilities:
    """
    Compute the legal commands for a selection.

    Args:
        selection: Selected nodes.

    Returns:
        Capabilities for the selection:
        - delete: anything is selected
        - copy: exactly one item
        - ungroup: exactly one non-root group
        - group: two or more siblings, but not all children of their parent
    """
    count = len(selection)
    if count == 0:
        return NO_CAPABILITIES

    single = selection[0] if count == 1 else None

    can_group = False
    if count >= 2:
        parent = selection[0].parent
        if parent is not None and all(node.parent is parent for node in selection):
            can_group = count < len(parent)

    return Capabilities(
        can_delete=True,
        can_group=can_group,
        can_ungroup=isinstance(single, Group) and not single.is_root,
        can_copy=isinstance(single, Item),
    )
