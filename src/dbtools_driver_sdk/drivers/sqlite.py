import sqlite3
from typing import Any, Dict, List, Optional

from sqlalchemy import URL
from sqlalchemy.pool import StaticPool

from dbtools_driver_sdk.capabilities import ContextValue, DependencyKind
from dbtools_driver_sdk.dependencies import DependencyDescriptor
from dbtools_driver_sdk.drivers.base_sqlalchemy import BaseSQLAlchemyDriver
from dbtools_driver_sdk.models import ChildItem, Column, ExplorerItem, SearchableItem, Table
from dbtools_driver_sdk.queries import BaseQueries, QueryTemplate

MEMORY_DATABASE = ":memory:"
DEFAULT_SEARCH_LIMIT = 100


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _schema(table: SearchableItem) -> str:
    return table.schema_name or table.database or "main"


def _describe_table(table: SearchableItem, **_: Any) -> str:
    return (
        "SELECT name AS column_name, type AS data_type, \"notnull\" = 0 AS is_nullable, "
        "pk > 0 AS is_primary_key, dflt_value AS default_value "
        f"FROM pragma_table_info({quote_literal(table.label)}, {quote_literal(_schema(table))}) "
        "ORDER BY cid"
    )


def _fetch_records(table: SearchableItem, limit: int, offset: int = 0, **_: Any) -> str:
    return (
        f"SELECT * FROM {quote_identifier(_schema(table))}.{quote_identifier(table.label)} "
        f"LIMIT {int(limit)} OFFSET {int(offset)}"
    )


def _count_records(table: SearchableItem, **_: Any) -> str:
    return (
        "SELECT count(1) AS total "
        f"FROM {quote_identifier(_schema(table))}.{quote_identifier(table.label)}"
    )


def _fetch_tables(database: str, table_type: str) -> str:
    return (
        f"SELECT name AS label, type FROM {quote_identifier(database)}.sqlite_master "
        f"WHERE type = {quote_literal(table_type)} AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\' "
        "ORDER BY name"
    )


def _search_tables(database: str, search: str, limit: int) -> str:
    return (
        f"SELECT name AS label, type FROM {quote_identifier(database)}.sqlite_master "
        "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\' "
        f"AND name LIKE {quote_literal('%' + search + '%')} "
        f"ORDER BY name LIMIT {int(limit)}"
    )


def _search_columns(database: str, search: str, limit: int) -> str:
    return (
        "SELECT m.name AS table_name, p.name AS label, p.type AS data_type, "
        "p.\"notnull\" = 0 AS is_nullable, p.pk > 0 AS is_primary_key "
        f"FROM {quote_identifier(database)}.sqlite_master AS m "
        f"JOIN pragma_table_info(m.name, {quote_literal(database)}) AS p "
        "WHERE m.type IN ('table', 'view') "
        f"AND p.name LIKE {quote_literal('%' + search + '%')} "
        f"ORDER BY m.name, p.cid LIMIT {int(limit)}"
    )


class SqliteQueries(BaseQueries):
    describe_table = QueryTemplate("SELECT * FROM pragma_table_info('{table}')", _describe_table)
    fetch_records = QueryTemplate(
        "SELECT * FROM {table} LIMIT {limit} OFFSET {offset}", _fetch_records
    )
    count_records = QueryTemplate("SELECT count(1) AS total FROM {table}", _count_records)
    fetch_tables = QueryTemplate(
        "SELECT name AS label, type FROM {database}.sqlite_master WHERE type = '{table_type}'",
        _fetch_tables,
    )
    fetch_columns = QueryTemplate("SELECT * FROM pragma_table_info('{table}')", _describe_table)
    search_tables = QueryTemplate(
        "SELECT name AS label, type FROM {database}.sqlite_master WHERE name LIKE '%{search}%'",
        _search_tables,
    )
    search_columns = QueryTemplate(
        "SELECT ... FROM {database}.sqlite_master JOIN pragma_table_info(...) "
        "WHERE name LIKE '%{search}%'",
        _search_columns,
    )


class SqliteDriver(BaseSQLAlchemyDriver):
    """Reference driver for SQLite files and in-memory databases."""

    deps = [
        DependencyDescriptor(name="SQLAlchemy", import_name="sqlalchemy", kind=DependencyKind.PACKAGE),
    ]
    queries = SqliteQueries()

    @property
    def is_memory(self) -> bool:
        return self.credentials.database in ("", MEMORY_DATABASE)

    def build_url(self) -> str:
        database = None if self.is_memory else self.credentials.database
        return URL.create("sqlite", database=database).render_as_string()

    def engine_options(self) -> Dict[str, Any]:
        connect_args: Dict[str, Any] = {"check_same_thread": False}
        if self.credentials.connection_timeout is not None:
            connect_args["timeout"] = self.credentials.connection_timeout
        options: Dict[str, Any] = {"connect_args": connect_args}
        if self.is_memory:
            # A single shared connection keeps the in-memory database alive.
            options["poolclass"] = StaticPool
        return options

    def split_statements(self, query: str) -> List[str]:
        statements = []
        buffer = ""
        parts = query.split(";")
        for index, part in enumerate(parts):
            buffer += part
            if index == len(parts) - 1:
                break
            buffer += ";"
            if sqlite3.complete_statement(buffer):
                if buffer.strip(" \t\r\n;"):
                    statements.append(buffer.strip())
                buffer = ""
        if buffer.strip(" \t\r\n;"):
            statements.append(buffer.strip())
        return statements

    async def get_children_for_item(
        self, item: Optional[SearchableItem] = None, parent: Optional[SearchableItem] = None
    ) -> List[ExplorerItem]:
        if item is None:
            return []
        if item.type in (ContextValue.CONNECTION, ContextValue.CONNECTED_CONNECTION):
            return await self._list_databases()
        if item.type is ContextValue.DATABASE:
            database = item.database or item.label
            return [
                ChildItem(label="Tables", type=ContextValue.RESOURCE_GROUP, database=database,
                          child_type=ContextValue.TABLE, icon_id="folder"),
                ChildItem(label="Views", type=ContextValue.RESOURCE_GROUP, database=database,
                          child_type=ContextValue.VIEW, icon_id="folder"),
            ]
        if item.type is ContextValue.RESOURCE_GROUP and item.child_type in (ContextValue.TABLE, ContextValue.VIEW):
            database = item.database or (parent.database if parent else None) or "main"
            table_type = "view" if item.child_type is ContextValue.VIEW else "table"
            rows = await self.query_results(self.queries.fetch_tables(database=database, table_type=table_type))
            return [self._to_table(row, database) for row in rows]
        if item.type in (ContextValue.TABLE, ContextValue.VIEW):
            rows = await self.query_results(self.queries.fetch_columns(table=item))
            return [
                Column(
                    label=row["column_name"],
                    database=_schema(item),
                    table=item.label,
                    data_type=row["data_type"],
                    is_nullable=bool(row["is_nullable"]),
                    is_primary_key=bool(row["is_primary_key"]),
                )
                for row in rows
            ]
        return []

    async def search_items(
        self,
        item_type: Optional[ContextValue] = None,
        search: Optional[str] = None,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> List[SearchableItem]:
        extra_params = extra_params or {}
        database = extra_params.get("database", "main")
        limit = extra_params.get("limit", DEFAULT_SEARCH_LIMIT)
        search = search or ""

        if item_type in (ContextValue.TABLE, ContextValue.VIEW):
            rows = await self.query_results(
                self.queries.search_tables(database=database, search=search, limit=limit)
            )
            return [self._to_table(row, database) for row in rows]
        if item_type is ContextValue.COLUMN:
            rows = await self.query_results(
                self.queries.search_columns(database=database, search=search, limit=limit)
            )
            return [
                Column(
                    label=row["label"],
                    database=database,
                    table=row["table_name"],
                    data_type=row["data_type"],
                    is_nullable=bool(row["is_nullable"]),
                    is_primary_key=bool(row["is_primary_key"]),
                )
                for row in rows
            ]
        return await super().search_items(item_type, search, extra_params)

    async def _list_databases(self) -> List[ExplorerItem]:
        hidden = set(self.get_base_query_filters()["database_filter"].hide)
        rows = await self.query_results("PRAGMA database_list")
        return [
            ChildItem(
                label=row["name"],
                type=ContextValue.DATABASE,
                database=row["name"],
                detail=row["file"] or MEMORY_DATABASE,
                child_type=ContextValue.RESOURCE_GROUP,
                icon_id="database",
            )
            for row in rows
            if row["name"] not in hidden and row["name"] != "temp"
        ]

    @staticmethod
    def _to_table(row: Dict[str, Any], database: str) -> Table:
        is_view = row["type"] == "view"
        return Table(
            label=row["label"],
            type=ContextValue.VIEW if is_view else ContextValue.TABLE,
            database=database,
            is_view=is_view,
            child_type=ContextValue.COLUMN,
        )
