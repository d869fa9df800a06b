from enum import Enum


class DependencyKind(str, Enum):
    """Kinds of external dependencies a driver can declare."""

    PACKAGE = "package"
    SCRIPT = "script"


class HostCapability(str, Enum):
    """Whether the host process can load native driver dependencies."""

    NATIVE = "native"
    SANDBOXED = "sandboxed"


class ContextValue(str, Enum):
    """Node types shown in the host's explorer tree."""

    CONNECTION = "connection"
    CONNECTED_CONNECTION = "connectedConnection"
    DATABASE = "connection.database"
    SCHEMA = "connection.schema"
    TABLE = "connection.table"
    VIEW = "connection.view"
    MATERIALIZED_VIEW = "connection.materializedView"
    COLUMN = "connection.column"
    FUNCTION = "connection.function"
    RESOURCE_GROUP = "connection.resource_group"
    NO_CHILD = "NO_CHILD"
    KEYWORDS = "KEYWORDS"
