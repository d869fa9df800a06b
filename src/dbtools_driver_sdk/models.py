from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .capabilities import ContextValue


class DatabaseFilter(BaseModel):
    """Which databases the explorer should show or hide for a connection."""

    show: Optional[List[str]] = None
    hide: Optional[List[str]] = None


class Credentials(BaseModel):
    """Immutable connection descriptor a driver instance is built from.

    Driver specific settings go either in ``options`` or as extra fields.
    """

    id: str
    driver: str
    database: str
    name: Optional[str] = None
    server: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    connection_timeout: Optional[float] = Field(
        default=None, description="Seconds to wait when opening a connection."
    )
    preview_limit: Optional[int] = None
    database_filter: Optional[DatabaseFilter] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow", frozen=True)


class LogMessage(BaseModel):
    message: str
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QueryResult(BaseModel):
    """Outcome of one executed statement.

    Failures are carried in ``error``/``raw_error`` instead of being raised so a
    batch of statements can report success per statement.
    """

    connection_id: Optional[str] = None
    request_id: Optional[str] = None
    result_id: Optional[str] = None
    label: Optional[str] = None
    query: str = ""
    cols: List[str] = Field(default_factory=list)
    results: List[Dict[str, Any]] = Field(default_factory=list)
    error: bool = False
    raw_error: Optional[Any] = None
    messages: List[LogMessage] = Field(default_factory=list)

    # Pagination metadata, filled in by show_records.
    base_query: Optional[str] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    total: Optional[int] = None
    query_type: Optional[str] = None
    query_params: Optional[Any] = None

    @classmethod
    def failure(cls, query: str, exc: BaseException, **kwargs: Any) -> "QueryResult":
        """Build an error result for ``query`` from a raised exception."""

        return cls(
            query=query,
            error=True,
            raw_error=exc,
            messages=[LogMessage(message=str(exc))],
            **kwargs,
        )


class QueryOptions(BaseModel):
    request_id: Optional[str] = None
    connection_id: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ShowRecordsOptions(QueryOptions):
    limit: int = Field(..., gt=0, description="Page size.")
    page: int = Field(default=0, ge=0, description="Zero based page index.")


class SearchableItem(BaseModel):
    """A node of the explorer tree a driver can list children for or search."""

    label: str
    type: ContextValue
    database: Optional[str] = None
    schema_name: Optional[str] = None
    child_type: Optional[ContextValue] = None

    model_config = ConfigDict(extra="allow")


class Table(SearchableItem):
    type: ContextValue = ContextValue.TABLE
    is_view: bool = False


class Column(SearchableItem):
    type: ContextValue = ContextValue.COLUMN
    child_type: Optional[ContextValue] = ContextValue.NO_CHILD
    data_type: Optional[str] = None
    table: Optional[str] = None
    is_nullable: bool = True
    is_primary_key: bool = False


class ChildItem(SearchableItem):
    detail: Optional[str] = None
    icon_id: Optional[str] = None


ExplorerItem = Union[ChildItem, Table, Column, SearchableItem]
