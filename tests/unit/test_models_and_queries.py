import pytest
from pydantic import ValidationError

from dbtools_driver_sdk import (
    BaseQueries,
    ContextValue,
    Credentials,
    QueryResult,
    QueryTemplate,
    Table,
    UnsupportedQueryError,
)


def test_credentials_are_frozen():
    credentials = Credentials(id="c1", driver="X", database="db1", ssl=True)

    with pytest.raises(ValidationError):
        credentials.database = "other"
    assert credentials.ssl is True


def test_query_result_failure_carries_raw_error():
    error = ValueError("bad statement")

    result = QueryResult.failure("SELEC 1", error, request_id="r1")

    assert result.error is True
    assert result.raw_error is error
    assert result.query == "SELEC 1"
    assert result.request_id == "r1"
    assert result.messages[0].message == "bad statement"


def test_template_formats_fields_and_keeps_raw():
    template = QueryTemplate("SELECT * FROM {table.label} LIMIT {limit}")

    assert template(table=Table(label="users"), limit=5) == "SELECT * FROM users LIMIT 5"
    assert template.raw == "SELECT * FROM {table.label} LIMIT {limit}"


def test_template_uses_custom_renderer():
    template = QueryTemplate("COUNT {table}", lambda table, **_: f"COUNT {table.label.upper()}")

    assert template(table=Table(label="users"), limit=1) == "COUNT USERS"


def test_queries_feature_detection():
    class _Queries(BaseQueries):
        fetch_records = QueryTemplate("SELECT 1")

    queries = _Queries()

    assert queries.supports("fetch_records")
    assert not queries.supports("fetch_records", "count_records")
    with pytest.raises(UnsupportedQueryError):
        queries.template("describe_table")


def test_table_defaults_to_table_context():
    table = Table(label="users")

    assert table.type is ContextValue.TABLE
    assert table.is_view is False
