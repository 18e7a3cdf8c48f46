"""
Multi-selection of condition tree nodes.

A selection always holds siblings: nodes sharing one parent group. It is
kept independent of any rendering and is revalidated after every
structural change of the tree.
"""

from typing import Callable, Optional

from .editor import TreeEditor
from .errors import StructuralViolation
from .nodes import Group, Node
from ..infrastructure.logging_config import get_logger


logger = get_logger(__name__)

SelectionListener = Callable[[list[Node]], None]


class SelectionManager:
    """
    Tracks the selected nodes of one tree editor.
    """

    def __init__(self, editor: TreeEditor):
        """
        Initialize an empty selection bound to an editor.

        Args:
            editor: Editor owning the nodes that can be selected.
        """
        self._editor = editor
        self._selected: list[Node] = []
        self._listeners: list[SelectionListener] = []
        self._unsubscribe = editor.on_structural_change(self.revalidate)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, node: Node) -> bool:
        return self.is_selected(node)

    def is_selected(self, node: Node) -> bool:
        return any(selected is node for selected in self._selected)

    @property
    def parent(self) -> Optional[Group]:
        """The group whose children are selected, or None when empty."""
        if not self._selected:
            return None
        return self._selected[0].parent

    def current(self) -> list[Node]:
        """
        Get the selected nodes in document order.

        Returns:
            Selected nodes ordered by their position in the tree, not by
            the order in which they were selected.
        """
        return sorted(self._selected, key=lambda node: node.index_path())

    # ==================== Gestures ====================

    def select(self, node: Node, exclusive: bool = True) -> None:
        """
        Add a node to the selection.

        A selection never spans several parents: when the node's parent
        differs from the parent of the current selection, the current
        selection is dropped first. This holds for exclusive and
        non-exclusive gestures alike; siblings accumulate either way. Use
        clear() before select() to replace a selection of siblings.

        Args:
            node: Node to select.
            exclusive: Drop a selection held under a different parent.

        Raises:
            IdentityError: If the node is not in the tree.
            StructuralViolation: If the node is the root group.
        """
        self._editor.require(node)
        if node.parent is None:
            raise StructuralViolation("The root group cannot be selected")

        before = list(self._selected)
        if self._selected and self.parent is not node.parent:
            self._selected.clear()
        if not self.is_selected(node):
            self._selected.append(node)

        self._notify_if_changed(before)

    def deselect(self, node: Node) -> None:
        """Remove a node from the selection; unknown nodes are ignored."""
        before = list(self._selected)
        self._selected = [selected for selected in self._selected if selected is not node]
        self._notify_if_changed(before)

    def toggle(self, node: Node) -> None:
        """Click gesture: deselect a selected node, otherwise add it."""
        if self.is_selected(node):
            self.deselect(node)
        else:
            self.select(node, exclusive=False)

    def clear(self) -> None:
        """Deselect everything."""
        before = list(self._selected)
        self._selected.clear()
        self._notify_if_changed(before)

    def revalidate(self) -> None:
        """
        Drop nodes that left the tree or stopped being siblings.

        Called automatically after each structural change. When grouping or
        dissolving separated the selected nodes, the siblings of the first
        remaining node in document order are kept.
        """
        before = list(self._selected)
        alive = [node for node in self._selected if self._editor.contains(node)]
        if alive:
            first = min(alive, key=lambda node: node.index_path())
            alive = [node for node in alive if node.parent is first.parent]
        self._selected = alive

        if len(alive) != len(before):
            logger.debug(f"Selection revalidated: {len(before)} -> {len(alive)} node(s)")
        self._notify_if_changed(before)

    # ==================== Notifications ====================

    def on_selection_change(self, callback: SelectionListener) -> Callable[[], None]:
        """
        Register a listener receiving the selection (in document order)
        whenever it changes.

        Returns:
            A callable that unregisters the listener.
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def detach(self) -> None:
        """Stop following the editor's structural changes."""
        self._unsubscribe()

    def _notify_if_changed(self, before: list[Node]) -> None:
        if len(before) == len(self._selected) and all(
            a is b for a, b in zip(before, self._selected)
        ):
            return
        current = self.current()
        for callback in list(self._listeners):
            callback(current)
