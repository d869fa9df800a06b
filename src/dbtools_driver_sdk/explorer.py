import logging
from typing import Any, Dict, List, Optional

from .capabilities import ContextValue
from .models import ExplorerItem, SearchableItem


class NoopExplorerMixin:
    """Default explorer-tree hooks for drivers without schema browsing.

    Both hooks log a warning naming the driver kind and resolve to an empty
    list; they never raise so the host's tree view keeps working.
    """

    log: logging.Logger

    def _warn_not_implemented(self, hook: str) -> None:
        driver = getattr(getattr(self, "credentials", None), "driver", type(self).__name__)
        self.log.getChild("error").warning(
            f"###### Attention ######\n{hook} not implemented for {driver}\n####################"
        )

    async def get_children_for_item(
        self, item: Optional[SearchableItem] = None, parent: Optional[SearchableItem] = None
    ) -> List[ExplorerItem]:
        self._warn_not_implemented("get_children_for_item")
        return []

    async def search_items(
        self,
        item_type: Optional[ContextValue] = None,
        search: Optional[str] = None,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> List[SearchableItem]:
        self._warn_not_implemented("search_items")
        return []
