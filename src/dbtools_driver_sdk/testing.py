"""
Standard compliance test suite for database drivers.
Any new driver should subclass this suite and pass it.
"""
import asyncio

import pytest

from dbtools_driver_sdk import AbstractDriver, ConnectionDriverProtocol, ContextValue, QueryResult, SearchableItem


class DriverComplianceSuite:
    """Mixin of contract tests. Override ``driver`` and, if needed, ``sample_query``."""

    sample_query = "SELECT 1 AS value"

    @pytest.fixture
    def driver(self) -> AbstractDriver:
        """Override this fixture in subclass to return the driver under test."""
        raise NotImplementedError

    def test_protocol_contract(self, driver):
        assert isinstance(driver, ConnectionDriverProtocol)

    def test_id_is_stable(self, driver):
        assert driver.get_id() == driver.credentials.id
        assert driver.get_id() == driver.get_id()

    @pytest.mark.asyncio
    async def test_open_converges_on_one_connection(self, driver):
        try:
            first, second = await asyncio.gather(driver.open(), driver.open())
            assert first is second
            assert await driver.open() is first
        finally:
            await driver.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, driver):
        await driver.close()
        await driver.open()
        await driver.close()
        await driver.close()

    @pytest.mark.asyncio
    async def test_single_query_returns_first_result(self, driver):
        try:
            results = await driver.query(self.sample_query)
            single = await driver.single_query(self.sample_query)
            assert isinstance(single, QueryResult)
            assert single.error is False
            assert single.results == results[0].results
        finally:
            await driver.close()

    @pytest.mark.asyncio
    async def test_statement_order_is_preserved(self, driver):
        try:
            results = await driver.query([self.sample_query, "SELECT 2 AS value"])
            assert [r.query for r in results] == [self.sample_query, "SELECT 2 AS value"]
        finally:
            await driver.close()

    @pytest.mark.asyncio
    async def test_statement_errors_stay_in_result(self, driver):
        try:
            result = await driver.single_query("SELECT * FROM NON_EXISTENT_TABLE_XYZ_123")
            assert result.error is True
            assert result.raw_error is not None
        finally:
            await driver.close()

    @pytest.mark.asyncio
    async def test_explorer_hooks_return_lists(self, driver):
        try:
            children = await driver.get_children_for_item(
                SearchableItem(label="unknown", type=ContextValue.NO_CHILD)
            )
            found = await driver.search_items(ContextValue.KEYWORDS, "")
            assert isinstance(children, list)
            assert isinstance(found, list)
        finally:
            await driver.close()
