from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

from .capabilities import ContextValue
from .models import (
    DatabaseFilter,
    ExplorerItem,
    QueryOptions,
    QueryResult,
    SearchableItem,
    ShowRecordsOptions,
    Table,
)


@runtime_checkable
class ConnectionDriverProtocol(Protocol):
    """The surface the host uses to talk to any driver instance."""

    def get_id(self) -> str:
        """Stable identifier of the connection this driver serves."""
        ...

    async def open(self) -> Any:
        """Open (or join the pending open of) the connection handle."""
        ...

    async def close(self) -> None:
        """Release the connection handle. Safe to call when already closed."""
        ...

    async def query(
        self, query: Union[str, Sequence[str]], opt: Optional[QueryOptions] = None
    ) -> List[QueryResult]:
        """Run one or more statements, returning one result per statement."""
        ...

    async def single_query(
        self, query: str, opt: Optional[QueryOptions] = None
    ) -> QueryResult:
        ...

    async def describe_table(
        self, table: Table, opt: Optional[QueryOptions] = None
    ) -> List[QueryResult]:
        ...

    async def show_records(
        self, table: Table, opt: ShowRecordsOptions
    ) -> List[QueryResult]:
        ...

    async def get_children_for_item(
        self, item: SearchableItem, parent: Optional[SearchableItem] = None
    ) -> List[ExplorerItem]:
        ...

    async def search_items(
        self,
        item_type: ContextValue,
        search: str,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> List[SearchableItem]:
        ...

    def get_base_query_filters(self) -> Dict[str, DatabaseFilter]:
        ...

    def need_to_install_dependencies(self) -> bool:
        ...
