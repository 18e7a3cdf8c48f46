"""
Search builder: the command layer of the condition tree editor.

The builder owns a tree editor and its selection, keeps the capability
flags in sync with the selection, runs the toolbar commands (add
condition, group, ungroup, copy, delete) and hands the compiled query to
the search orchestrator after every change.
"""

from typing import Any, Callable, Optional, Union

from .capabilities import Capabilities, resolve
from .conditions import ConditionCatalog
from .editor import TreeEditor
from .errors import UnknownConditionTypeError
from .nodes import Group, Item, LogicalOperator, Node
from .selection import SelectionManager
from .serializer import Query, serialize
from ..infrastructure.logging_config import get_logger


logger = get_logger(__name__)

SearchCallback = Callable[[Query], None]
CapabilitiesListener = Callable[[Capabilities], None]


class SearchBuilder:
    """
    Builds an advanced search from user commands.

    Commands operate on the current selection. A command whose capability
    is false does nothing and returns None/False instead of raising; the
    toolbar is expected to keep such commands disabled anyway.
    """

    def __init__(
        self,
        search_callback: Optional[SearchCallback] = None,
        root_operator: Union[str, LogicalOperator] = LogicalOperator.AND,
        group_operator: Union[str, LogicalOperator] = LogicalOperator.OR,
        require_valid_items: bool = False,
        catalog: Optional[ConditionCatalog] = None,
        editor: Optional[TreeEditor] = None
    ):
        """
        Initialize the builder.

        Args:
            search_callback: Called with the compiled query after each change.
            root_operator: Operator of the root group of a new tree.
            group_operator: Operator given to groups created by group().
            require_valid_items: Skip searching while some condition is invalid.
            catalog: Condition types accepted by add_condition(); any type
                is accepted when omitted.
            editor: Existing tree to edit (e.g. from deserialize()).
        """
        self._editor = editor if editor is not None else TreeEditor(root_operator)
        self._selection = SelectionManager(self._editor)
        self._search_callback = search_callback
        self._group_operator = LogicalOperator.parse(group_operator)
        self.require_valid_items = require_valid_items
        self.catalog = catalog

        self._capabilities = resolve([])
        self._capability_listeners: list[CapabilitiesListener] = []
        self._last_query: Optional[Query] = None

        self._selection.on_selection_change(self._selection_changed)
        self._editor.on_structural_change(self._structure_changed)

    @classmethod
    def from_settings(
        cls,
        settings=None,
        search_callback: Optional[SearchCallback] = None,
        editor: Optional[TreeEditor] = None
    ) -> 'SearchBuilder':
        """
        Create a builder configured from the application settings.

        Args:
            settings: AppSettings to use; the global settings when None.
            search_callback: Called with the compiled query after each change.
            editor: Existing tree to edit.
        """
        from ..config.settings import get_condition_catalog, get_settings

        if settings is None:
            settings = get_settings()
        return cls(
            search_callback=search_callback,
            root_operator=settings.root_operator,
            group_operator=settings.group_operator,
            require_valid_items=settings.require_valid_items,
            catalog=get_condition_catalog(settings),
            editor=editor
        )

    # ==================== Accessors ====================

    @property
    def editor(self) -> TreeEditor:
        return self._editor

    @property
    def selection(self) -> SelectionManager:
        return self._selection

    @property
    def root(self) -> Group:
        return self._editor.root

    @property
    def capabilities(self) -> Capabilities:
        """Legal commands for the current selection."""
        return self._capabilities

    @property
    def query(self) -> Query:
        """The compiled query for the current tree."""
        return serialize(self._editor.root)

    @property
    def last_query(self) -> Optional[Query]:
        """The query most recently handed to the search callback."""
        return self._last_query

    def is_complete(self) -> bool:
        """Whether every condition in the tree has been validated."""
        return all(item.valid for item in self._editor.items())

    def on_capabilities_change(self, callback: CapabilitiesListener) -> Callable[[], None]:
        """
        Register a listener for capability changes.

        Returns:
            A callable that unregisters the listener.
        """
        self._capability_listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._capability_listeners:
                self._capability_listeners.remove(callback)

        return unsubscribe

    # ==================== Commands ====================

    def add_condition(self, condition_type: str, payload: Any = None) -> Item:
        """
        Add a new condition next to the current selection.

        The condition goes into the selected group, right after the selected
        item, or at the end of the root group when nothing is selected. The
        selection is cleared first.

        Args:
            condition_type: Type of the new condition.
            payload: Initial value of the condition.

        Returns:
            The new item.

        Raises:
            UnknownConditionTypeError: If a catalog is set and does not list the type.
        """
        if self.catalog is not None and condition_type not in self.catalog:
            raise UnknownConditionTypeError(condition_type)

        selected = self._selection.current()
        self._selection.clear()

        target = selected[0] if selected else None
        if isinstance(target, Group):
            return self._editor.add_item(target, condition_type, payload)
        if isinstance(target, Item):
            return self._editor.add_item(
                target.parent, condition_type, payload, insert_before=self._next_sibling(target)
            )
        return self._editor.add_item(self._editor.root, condition_type, payload)

    def group(self) -> Optional[Group]:
        """
        Wrap the selected siblings into a new group and select it.

        Returns:
            The new group, or None when grouping is not possible.
        """
        if not self._capabilities.can_group:
            logger.debug("Group command ignored: selection cannot be grouped")
            return None

        nodes = self._selection.current()
        group = self._editor.add_group(nodes, operator=self._group_operator)
        self._selection.clear()
        self._selection.select(group)
        return group

    def ungroup(self) -> bool:
        """
        Dissolve the selected group into its parent.

        Returns:
            True if a group was dissolved.
        """
        if not self._capabilities.can_ungroup:
            logger.debug("Ungroup command ignored: no single group selected")
            return False

        group = self._selection.current()[0]
        self._selection.clear()
        self._editor.ungroup(group)
        return True

    def copy(self) -> Optional[Item]:
        """
        Duplicate the selected condition right after itself.

        Returns:
            The copy, or None when copying is not possible.
        """
        if not self._capabilities.can_copy:
            logger.debug("Copy command ignored: no single condition selected")
            return None

        item = self._selection.current()[0]
        duplicate = item.clone()
        self._editor.attach(duplicate, item.parent, insert_before=self._next_sibling(item))
        return duplicate

    def delete(self) -> bool:
        """
        Remove the selected nodes.

        Returns:
            True if anything was removed.
        """
        if not self._capabilities.can_delete:
            logger.debug("Delete command ignored: nothing selected")
            return False

        nodes = self._selection.current()
        self._selection.clear()
        with self._editor.batch():
            for node in nodes:
                if self._editor.contains(node):
                    self._editor.remove(node)
        return True

    def toggle_operator(self, group: Group) -> LogicalOperator:
        """Flip the operator of a group (the AND/OR switch)."""
        return self._editor.toggle_operator(group)

    def update_condition(self, item: Item, payload: Any, valid: bool = True) -> None:
        """
        Store the value confirmed by a leaf editor and search again.

        Raises:
            IdentityError: If the item is not in the tree.
        """
        self._editor.require(item)
        item.update(payload, valid)
        self.change_condition()

    def change_condition(self) -> None:
        """Recompile and search after a condition value changed."""
        self.search()

    def search(self) -> Optional[Query]:
        """
        Compile the tree and hand the query to the search callback.

        Returns:
            The query that was searched, or None when searching was skipped
            because some condition is not valid yet.
        """
        if self.require_valid_items and not self.is_complete():
            logger.info("Search skipped: some conditions are not valid yet")
            return None

        query = self.query
        self._last_query = query
        logger.info(f"Searching with query: {query}")
        if self._search_callback is not None:
            self._search_callback(query)
        return query

    # ==================== Internals ====================

    @staticmethod
    def _next_sibling(node: Node) -> Optional[Node]:
        siblings = node.siblings()
        index = node.index_in_parent()
        return siblings[index + 1] if index + 1 < len(siblings) else None

    def _refresh_capabilities(self) -> None:
        capabilities = resolve(self._selection.current())
        if capabilities == self._capabilities:
            return
        self._capabilities = capabilities
        for callback in list(self._capability_listeners):
            callback(capabilities)

    def _selection_changed(self, selection: list[Node]) -> None:
        self._refresh_capabilities()

    def _structure_changed(self) -> None:
        self._refresh_capabilities()
        self.search()
