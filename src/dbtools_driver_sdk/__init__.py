from .capabilities import ContextValue, DependencyKind, HostCapability
from .dependencies import DependencyDescriptor, ImportlibModuleResolver, ModuleResolver
from .driver import AbstractDriver
from .errors import (
    DependencyResolutionError,
    DriverConnectionError,
    DriverError,
    DriverConflictError,
    DriverNotFoundError,
    ErrorCode,
    MissingDependencyError,
    QueryError,
    UnsupportedHostError,
    UnsupportedQueryError,
)
from .explorer import NoopExplorerMixin
from .models import (
    ChildItem,
    Column,
    Credentials,
    DatabaseFilter,
    LogMessage,
    QueryOptions,
    QueryResult,
    SearchableItem,
    ShowRecordsOptions,
    Table,
)
from .protocols import ConnectionDriverProtocol
from .queries import BaseQueries, QueryTemplate
from .registry import DriverRegistry

__all__ = [
    "AbstractDriver",
    "BaseQueries",
    "ChildItem",
    "Column",
    "ConnectionDriverProtocol",
    "ContextValue",
    "Credentials",
    "DatabaseFilter",
    "DependencyDescriptor",
    "DependencyKind",
    "DependencyResolutionError",
    "DriverConnectionError",
    "DriverError",
    "DriverConflictError",
    "DriverNotFoundError",
    "DriverRegistry",
    "ErrorCode",
    "HostCapability",
    "ImportlibModuleResolver",
    "LogMessage",
    "MissingDependencyError",
    "ModuleResolver",
    "NoopExplorerMixin",
    "QueryError",
    "QueryOptions",
    "QueryResult",
    "QueryTemplate",
    "SearchableItem",
    "ShowRecordsOptions",
    "Table",
    "UnsupportedHostError",
    "UnsupportedQueryError",
]
