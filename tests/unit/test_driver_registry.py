from unittest.mock import MagicMock

import pytest

from dbtools_driver_sdk import (
    Credentials,
    DriverConflictError,
    DriverNotFoundError,
    DriverRegistry,
    HostCapability,
)
from dbtools_driver_sdk.discovery import ENTRY_POINT_GROUP, discover_drivers

from .fakes import FakeDriver, FakeResolver


def test_registry_keeps_one_driver_per_connection():
    # Validates instance reuse because the host instantiates one driver per connection.
    # Arrange
    resolver = FakeResolver()
    registry = DriverRegistry(host=HostCapability.NATIVE, resolver=resolver, drivers={"Fake": FakeDriver})
    credentials = Credentials(id="c1", driver="FAKE", database="db1")

    # Act
    first = registry.register(credentials)
    second = registry.register(credentials)
    other = registry.register(Credentials(id="c2", driver="fake", database="db2"))

    # Assert
    assert first is second
    assert other is not first
    assert first.resolver is resolver
    assert first.host is HostCapability.NATIVE
    assert registry.get("c1") is first
    assert registry.list_ids() == ["c1", "c2"]


def test_registry_rejects_same_id_with_other_credentials():
    # Validates id ownership because a stale driver would keep talking to the old database.
    # Arrange
    registry = DriverRegistry(host=HostCapability.NATIVE, drivers={"fake": FakeDriver})
    first = registry.register(Credentials(id="c1", driver="fake", database="db1"))

    # Act
    same = registry.register(Credentials(id="c1", driver="fake", database="db1"))
    with pytest.raises(DriverConflictError) as excinfo:
        registry.register(Credentials(id="c1", driver="fake", database="db2"))

    # Assert
    assert same is first
    assert "c1" in str(excinfo.value)
    assert registry.get("c1").credentials.database == "db1"


def test_registry_rejects_unknown_driver_kind():
    registry = DriverRegistry(drivers={"fake": FakeDriver})

    with pytest.raises(DriverNotFoundError) as excinfo:
        registry.register(Credentials(id="c1", driver="missing", database="db1"))
    assert "fake" in str(excinfo.value)


def test_registry_rejects_unknown_connection_id():
    with pytest.raises(DriverNotFoundError):
        DriverRegistry(drivers={}).get("nope")


@pytest.mark.asyncio
async def test_unregister_and_close_all_close_drivers():
    # Arrange
    registry = DriverRegistry(host=HostCapability.NATIVE, drivers={"fake": FakeDriver})
    first = registry.register(Credentials(id="c1", driver="fake", database="db1"))
    second = registry.register(Credentials(id="c2", driver="fake", database="db2"))
    await first.open()
    await second.open()

    # Act
    await registry.unregister("c1")
    await registry.unregister("c1")
    await registry.close_all()

    # Assert
    assert first.disconnects == 1
    assert second.disconnects == 1
    assert registry.list_ids() == []


def test_registry_uses_discovery_by_default(monkeypatch):
    monkeypatch.setattr(
        "dbtools_driver_sdk.discovery.discover_drivers",
        lambda: {"fake": FakeDriver},
    )
    registry = DriverRegistry(host=HostCapability.NATIVE)

    driver = registry.register(Credentials(id="c1", driver="fake", database="db1"))

    assert isinstance(driver, FakeDriver)


def test_discovery_skips_broken_plugins(monkeypatch):
    # Validates plugin isolation because one broken driver must not hide the rest.
    # Arrange
    good = MagicMock()
    good.name = "Fake"
    good.load.return_value = FakeDriver
    broken = MagicMock()
    broken.name = "broken"
    broken.load.side_effect = ImportError("missing native module")
    seen_groups = []

    def _entry_points(group):
        seen_groups.append(group)
        return [good, broken]

    monkeypatch.setattr("dbtools_driver_sdk.discovery.entry_points", _entry_points)

    # Act
    drivers = discover_drivers()

    # Assert
    assert drivers == {"fake": FakeDriver}
    assert seen_groups == [ENTRY_POINT_GROUP]
