import importlib.metadata

import pydantic
import pytest

from dbtools_driver_sdk import (
    DependencyDescriptor,
    DependencyKind,
    DependencyResolutionError,
    HostCapability,
    ImportlibModuleResolver,
    MissingDependencyError,
    ModuleResolver,
    UnsupportedHostError,
)
from dbtools_driver_sdk.errors import ErrorCode

from .fakes import FakeDriver, FakeResolver

PG = DependencyDescriptor(name="pg-client", version="8.7.1")
SCRIPT = DependencyDescriptor(name="build-native", kind=DependencyKind.SCRIPT, args=["--release"])


class _DriverWithDeps(FakeDriver):
    deps = [PG, SCRIPT]


def test_sandboxed_host_is_rejected_regardless_of_deps(credentials):
    # Validates the host gate because sandboxed hosts cannot load native modules.
    for driver_cls in (FakeDriver, _DriverWithDeps):
        driver = driver_cls(credentials, host=HostCapability.SANDBOXED, resolver=FakeResolver())
        with pytest.raises(UnsupportedHostError) as excinfo:
            driver.need_to_install_dependencies()
        assert excinfo.value.error_code is ErrorCode.UNSUPPORTED_HOST


def test_satisfied_dependencies_return_false(credentials):
    # Arrange
    resolver = FakeResolver({"pg-client": "8.7.1"})
    driver = _DriverWithDeps(credentials, resolver=resolver)

    # Act
    result = driver.need_to_install_dependencies()

    # Assert
    assert result is False
    assert resolver.calls == [
        ("reload_metadata", "pg-client"),
        ("version", "pg-client"),
        ("load", "pg_client"),
    ]


def test_version_mismatch_requires_upgrade(credentials):
    # Arrange
    driver = _DriverWithDeps(credentials, resolver=FakeResolver({"pg-client": "7.0.0"}))

    # Act
    with pytest.raises(MissingDependencyError) as excinfo:
        driver.need_to_install_dependencies()

    # Assert
    error = excinfo.value
    assert error.must_upgrade is True
    assert error.dependencies == [PG, SCRIPT]
    assert error.credentials is credentials
    assert "upgrade" in str(error)
    assert "pg-client==8.7.1" in str(error)
    assert "build-native" in str(error)


def test_missing_package_requires_install(credentials):
    driver = _DriverWithDeps(credentials, resolver=FakeResolver())

    with pytest.raises(MissingDependencyError) as excinfo:
        driver.need_to_install_dependencies()

    assert excinfo.value.must_upgrade is False
    assert "install" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, DependencyResolutionError)


def test_unimportable_package_requires_install(credentials):
    resolver = FakeResolver({"pg-client": "8.7.1"}, broken_imports={"pg_client"})
    driver = _DriverWithDeps(credentials, resolver=resolver)

    with pytest.raises(MissingDependencyError) as excinfo:
        driver.need_to_install_dependencies()

    assert excinfo.value.must_upgrade is False


def test_unexpected_load_failure_is_reported_as_missing_dependency(credentials):
    # Validates error normalisation because a broken install can fail with any exception type.
    # Arrange
    class _BrokenResolver(FakeResolver):
        def load(self, module_name):
            self.calls.append(("load", module_name))
            raise SyntaxError("invalid syntax in broken install")

    driver = _DriverWithDeps(credentials, resolver=_BrokenResolver({"pg-client": "8.7.1"}))

    # Act
    with pytest.raises(MissingDependencyError) as excinfo:
        driver.need_to_install_dependencies()

    # Assert
    assert excinfo.value.must_upgrade is False
    assert isinstance(excinfo.value.__cause__, SyntaxError)


def test_metadata_reload_failure_is_reported_as_missing_dependency(credentials):
    # Validates error normalisation because cache invalidation can fail before any lookup.
    # Arrange
    class _StaleResolver(FakeResolver):
        def reload_metadata(self, name):
            raise KeyError(name)

    driver = _DriverWithDeps(credentials, resolver=_StaleResolver({"pg-client": "8.7.1"}))

    # Act
    with pytest.raises(MissingDependencyError) as excinfo:
        driver.need_to_install_dependencies()

    # Assert
    assert excinfo.value.must_upgrade is False
    assert isinstance(excinfo.value.__cause__, KeyError)


def test_unversioned_dependency_accepts_any_version(credentials):
    class _Driver(FakeDriver):
        deps = [DependencyDescriptor(name="anything")]

    driver = _Driver(credentials, resolver=FakeResolver({"anything": "0.0.1"}))

    assert driver.need_to_install_dependencies() is False


def test_script_dependencies_are_not_verified(credentials):
    class _Driver(FakeDriver):
        deps = [SCRIPT]

    resolver = FakeResolver()
    driver = _Driver(credentials, resolver=resolver)

    assert driver.need_to_install_dependencies() is False
    assert resolver.calls == []


def test_importlib_resolver_reads_installed_versions():
    resolver = ImportlibModuleResolver()

    assert isinstance(resolver, ModuleResolver)
    assert resolver.version("pydantic") == pydantic.VERSION
    assert resolver.load("pydantic") is pydantic


def test_importlib_resolver_reports_missing_distributions():
    with pytest.raises(DependencyResolutionError):
        ImportlibModuleResolver().version("surely-not-installed-dbtools-xyz")


def test_importlib_resolver_reload_forgets_cached_version(monkeypatch):
    # Validates cache invalidation because upgrades must be seen without a restart.
    # Arrange
    versions = iter(["1.0.0", "2.0.0"])
    monkeypatch.setattr(importlib.metadata, "version", lambda name: next(versions))
    resolver = ImportlibModuleResolver()

    # Act / Assert
    assert resolver.version("pkg") == "1.0.0"
    assert resolver.version("pkg") == "1.0.0"
    resolver.reload_metadata("pkg")
    assert resolver.version("pkg") == "2.0.0"


def test_descriptor_defaults_import_name():
    assert PG.module_name == "pg_client"
    assert DependencyDescriptor(name="SQLAlchemy", import_name="sqlalchemy").module_name == "sqlalchemy"
