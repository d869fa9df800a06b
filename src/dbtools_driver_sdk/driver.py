import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from .capabilities import DependencyKind, HostCapability
from .common.logger import connection_context, get_logger
from .dependencies import DependencyDescriptor, ImportlibModuleResolver, ModuleResolver
from .errors import (
    MissingDependencyError,
    QueryError,
    UnsupportedHostError,
)
from .explorer import NoopExplorerMixin
from .models import (
    Credentials,
    DatabaseFilter,
    LogMessage,
    QueryOptions,
    QueryResult,
    ShowRecordsOptions,
    Table,
)
from .queries import BaseQueries

ConnectionT = TypeVar("ConnectionT")

logger = get_logger(__name__)


class AbstractDriver(NoopExplorerMixin, ABC, Generic[ConnectionT]):
    """
    Base class for every database driver.

    Concrete drivers implement ``open``, ``close`` and ``query`` and provide a
    ``queries`` generator; every other query shaped operation is derived from
    ``query``. Explorer hooks default to the no-op behaviour of
    :class:`NoopExplorerMixin` until a driver overrides them.
    """

    deps: ClassVar[List[DependencyDescriptor]] = []
    queries: BaseQueries

    def __init__(
        self,
        credentials: Credentials,
        *,
        host: Optional[HostCapability] = None,
        resolver: Optional[ModuleResolver] = None,
    ):
        if host is None:
            from .common.settings import settings
            host = settings.host_capability
        self.credentials = credentials
        self.host = host
        self.resolver: ModuleResolver = resolver or ImportlibModuleResolver()
        self.connection: Optional["asyncio.Future[ConnectionT]"] = None
        self.log = logger.getChild(credentials.driver.lower())

    def __str__(self):
        return f"{self.credentials.id} ({self.credentials.driver})"

    def get_id(self) -> str:
        return self.credentials.id

    @abstractmethod
    async def open(self) -> ConnectionT:
        """Open the connection, or return the one already open or opening."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the connection. Must not fail when nothing is open."""
        pass

    @abstractmethod
    async def query(
        self, query: Union[str, Sequence[str]], opt: Optional[QueryOptions] = None
    ) -> List[QueryResult]:
        """Execute statements and return one result per statement, in order.

        Statement failures are reported through ``QueryResult.error`` and
        ``QueryResult.raw_error`` rather than raised.
        """
        pass

    async def _open_once(self, connect: Callable[[], Awaitable[ConnectionT]]) -> ConnectionT:
        """Run ``connect`` at most once per live connection.

        Callers arriving while a connection is pending or established await the
        same task. A failed attempt is forgotten so the next call retries.
        """
        if self.connection is None:
            self.log.info(f"Opening connection {self}")
            self.connection = asyncio.ensure_future(connect())
        pending = self.connection
        try:
            return await asyncio.shield(pending)
        except Exception:
            if self.connection is pending:
                self.connection = None
            raise

    async def _close_once(self, disconnect: Callable[[ConnectionT], Awaitable[None]]) -> None:
        if self.connection is None:
            return
        pending, self.connection = self.connection, None
        try:
            handle = await pending
        except Exception as e:
            self.log.debug(f"Nothing to close for {self}, open had failed: {e}")
            return
        self.log.info(f"Closing connection {self}")
        await disconnect(handle)

    async def single_query(self, query: str, opt: Optional[QueryOptions] = None) -> QueryResult:
        with connection_context(self.get_id()):
            results = await self.query(query, opt)
        return results[0]

    async def query_results(
        self, query: str, opt: Optional[QueryOptions] = None
    ) -> List[Dict[str, Any]]:
        """Return the rows of a single statement or raise its error."""
        result = await self.single_query(query, opt)
        if result.error:
            self._raise_result_error(result)
        return result.results

    @staticmethod
    def _raise_result_error(result: QueryResult) -> None:
        if isinstance(result.raw_error, BaseException):
            raise result.raw_error
        raise QueryError(
            str(result.raw_error or f"Query failed: {result.query}"),
            raw_error=result.raw_error,
        )

    async def describe_table(
        self, table: Table, opt: Optional[QueryOptions] = None
    ) -> List[QueryResult]:
        describe = self.queries.template("describe_table")
        result = await self.single_query(describe(table=table), opt)
        result.base_query = describe.raw
        return [result]

    async def show_records(self, table: Table, opt: ShowRecordsOptions) -> List[QueryResult]:
        """Fetch one page of ``table``, with the total row count when available."""
        limit, page = opt.limit, opt.page
        params = {"limit": limit, "table": table, "offset": page * limit}

        if self.queries.supports("fetch_records", "count_records"):
            records, total_result = await asyncio.gather(
                self.single_query(self.queries.fetch_records(**params), opt),
                self.single_query(self.queries.count_records(**params), opt),
            )
            if total_result.error:
                self._raise_result_error(total_result)
            records.base_query = self.queries.fetch_records.raw
            records.page_size = limit
            records.page = page
            records.total = self._coerce_total(total_result)
            records.query_type = "showRecords"
            records.query_params = table
            return [records]

        fetch = self.queries.template("fetch_records")
        return await self.query(fetch(**params), opt)

    @staticmethod
    def _coerce_total(result: QueryResult) -> int:
        if not result.results:
            raise QueryError(f"Count query returned no rows: {result.query}")
        return int(result.results[0]["total"])

    def need_to_install_dependencies(self) -> bool:
        """Verify every declared package dependency is installed at the right version.

        Raises:
            UnsupportedHostError: The host cannot load native dependencies.
            MissingDependencyError: A package is missing or at another version.

        Returns:
            bool: Always False once every dependency checks out.
        """
        if self.host is not HostCapability.NATIVE:
            raise UnsupportedHostError()

        for dep in self.deps:
            if dep.kind is not DependencyKind.PACKAGE:
                continue
            try:
                self.resolver.reload_metadata(dep.name)
                version = self.resolver.version(dep.name)
                if dep.version and version != dep.version:
                    self.log.warning(
                        f"Dependency {dep.name} is at {version}, {dep.version} is required"
                    )
                    raise MissingDependencyError(self.deps, self.credentials, must_upgrade=True)
                self.resolver.load(dep.module_name)
            except MissingDependencyError:
                raise
            except Exception as e:
                self.log.warning(f"Dependency {dep.name} could not be loaded: {e}")
                raise MissingDependencyError(self.deps, self.credentials, must_upgrade=False) from e

        return False

    def get_base_query_filters(self) -> Dict[str, DatabaseFilter]:
        current = self.credentials.database_filter or DatabaseFilter()
        show = current.show
        if show is None:
            show = [self.credentials.database] if current.hide is None else []
        return {
            "database_filter": DatabaseFilter(show=list(show), hide=list(current.hide or [])),
        }

    def prepare_message(self, message: Any) -> LogMessage:
        return LogMessage(message=str(message), date=datetime.now(timezone.utc))
