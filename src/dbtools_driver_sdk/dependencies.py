import importlib
import importlib.metadata
from types import ModuleType
from typing import Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from .capabilities import DependencyKind
from .common.logger import get_logger
from .errors import DependencyResolutionError

logger = get_logger(__name__)


class DependencyDescriptor(BaseModel):
    """An external module a driver needs before it can run."""

    name: str = Field(..., description="Distribution name on the package index.")
    kind: DependencyKind = DependencyKind.PACKAGE
    version: Optional[str] = Field(default=None, description="Exact version required.")
    import_name: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def module_name(self) -> str:
        return self.import_name or self.name.replace("-", "_")

    def describe(self) -> str:
        return f"{self.name}=={self.version}" if self.version else self.name


@runtime_checkable
class ModuleResolver(Protocol):
    """Locates installed dependencies and loads their modules."""

    def reload_metadata(self, name: str) -> None:
        """Forget anything cached about ``name`` so the next lookup is fresh."""
        ...

    def version(self, name: str) -> str:
        """Return the installed version of distribution ``name``."""
        ...

    def load(self, module_name: str) -> ModuleType:
        """Import and return ``module_name``."""
        ...


class ImportlibModuleResolver:
    """Module resolver backed by ``importlib`` and ``importlib.metadata``."""

    def __init__(self):
        self._versions: Dict[str, str] = {}

    def reload_metadata(self, name: str) -> None:
        self._versions.pop(name, None)
        importlib.invalidate_caches()

    def version(self, name: str) -> str:
        if name not in self._versions:
            try:
                self._versions[name] = importlib.metadata.version(name)
            except importlib.metadata.PackageNotFoundError as e:
                raise DependencyResolutionError(
                    f"Distribution '{name}' is not installed", details=e
                ) from e
        return self._versions[name]

    def load(self, module_name: str) -> ModuleType:
        logger.debug(f"Loading module {module_name}")
        return importlib.import_module(module_name)
