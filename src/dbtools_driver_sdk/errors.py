from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

if TYPE_CHECKING:
    from .dependencies import DependencyDescriptor
    from .models import Credentials


class ErrorCode(str, Enum):
    """Standardized error codes raised by the driver layer."""

    UNSUPPORTED_HOST = "UNSUPPORTED_HOST"
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    DEPENDENCY_RESOLUTION_FAILED = "DEPENDENCY_RESOLUTION_FAILED"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    QUERY_FAILED = "QUERY_FAILED"
    UNSUPPORTED_QUERY = "UNSUPPORTED_QUERY"
    DRIVER_NOT_FOUND = "DRIVER_NOT_FOUND"
    DRIVER_CONFLICT = "DRIVER_CONFLICT"


class DriverError(Exception):
    """Base class for every error raised by the driver layer."""

    error_code: ErrorCode = ErrorCode.QUERY_FAILED

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class UnsupportedHostError(DriverError):
    """The host is sandboxed and cannot install or load native dependencies."""

    error_code = ErrorCode.UNSUPPORTED_HOST

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Drivers with native dependencies cannot run in a sandboxed host. "
            "Enable the native runtime to use this driver."
        )


class DependencyResolutionError(DriverError):
    """A module resolver could not locate a declared dependency."""

    error_code = ErrorCode.DEPENDENCY_RESOLUTION_FAILED


class MissingDependencyError(DriverError):
    """One or more declared dependencies are missing or have the wrong version."""

    error_code = ErrorCode.MISSING_DEPENDENCY

    def __init__(
        self,
        dependencies: Sequence["DependencyDescriptor"],
        credentials: "Credentials",
        must_upgrade: bool = False,
    ):
        self.dependencies: List["DependencyDescriptor"] = list(dependencies)
        self.credentials = credentials
        self.must_upgrade = must_upgrade
        action = "upgrade" if must_upgrade else "install"
        names = ", ".join(dep.describe() for dep in self.dependencies)
        super().__init__(
            f"Driver '{credentials.driver}' for connection '{credentials.id}' "
            f"needs to {action} dependencies: {names}"
        )


class DriverConnectionError(DriverError):
    error_code = ErrorCode.CONNECTION_FAILED


class QueryError(DriverError):
    """Raised when a query result carries an error that is not an exception."""

    error_code = ErrorCode.QUERY_FAILED

    def __init__(self, message: str, *, raw_error: Optional[Any] = None):
        super().__init__(message, details=raw_error)
        self.raw_error = raw_error


class UnsupportedQueryError(DriverError):
    """The query generator has no template for the requested statement."""

    error_code = ErrorCode.UNSUPPORTED_QUERY


class DriverNotFoundError(DriverError):
    error_code = ErrorCode.DRIVER_NOT_FOUND


class DriverConflictError(DriverError):
    """A connection id is already registered with different credentials."""

    error_code = ErrorCode.DRIVER_CONFLICT

