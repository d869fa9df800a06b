import pytest

from dbtools_driver_sdk import Credentials, Table

from .fakes import FakeDriver


@pytest.fixture
def credentials():
    return Credentials(id="c1", driver="X", database="db1")


@pytest.fixture
def driver(credentials):
    return FakeDriver(credentials)


@pytest.fixture
def users_table():
    return Table(label="users", database="db1")
