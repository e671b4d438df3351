import pytest
from sqlalchemy.exc import SQLAlchemyError

from pgschemadiff.schema import (
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    Schema,
    SchemaFetchError,
    TableInfo,
    fetch_schema,
    fetch_table_info,
)


class FakeConnection:
    """Answers the schema queries from canned per-table data."""

    def __init__(self, tables=(), columns=None, pks=None, indexes=None, fks=None, fail_on=None):
        self.tables = list(tables)
        self.columns = columns or {}
        self.pks = pks or {}
        self.indexes = indexes or {}
        self.fks = fks or {}
        self.fail_on = fail_on
        self.calls = []

    def execute(self, statement, parameters=None):
        sql = str(statement)
        params = parameters or {}
        self.calls.append((sql, params))
        name = params.get("table_name")
        if "FOREIGN KEY" in sql:
            kind, data = "fks", self.fks.get(name, [])
        elif "PRIMARY KEY" in sql:
            kind, data = "pks", self.pks.get(name, [])
        elif "pg_index" in sql:
            kind, data = "indexes", self.indexes.get(name, [])
        elif "information_schema.columns" in sql:
            kind, data = "columns", self.columns.get(name, [])
        elif "information_schema.tables" in sql:
            kind, data = "tables", [(t,) for t in self.tables]
        else:
            raise AssertionError(f"unexpected query: {sql}")
        if self.fail_on == kind:
            raise SQLAlchemyError("boom")
        return iter(data)


def _sample_connection():
    return FakeConnection(
        tables=["orders", "users"],
        columns={
            "users": [
                ("id", "integer", "NO", None, "YES"),
                ("email", "text", "YES", "'x'::text", "NO"),
            ],
            "orders": [("id", "bigint", "NO", None, "NO"), ("user_id", "integer", "YES", None, "NO")],
        },
        pks={"users": [("id",)], "orders": [("id",)]},
        indexes={
            "users": [("users_pkey", ["id"], True), ("users_email_idx", "{email}", False)],
        },
        fks={"orders": [("orders_user_fk", ["user_id"], "users", ["id"])]},
    )


def test_fetch_table_info_reads_columns():
    info = fetch_table_info(_sample_connection(), "users")
    assert info.name == "users"
    assert info.columns == (
        ColumnInfo(name="id", type="integer", nullable=False, default="", is_identity=True),
        ColumnInfo(name="email", type="text", nullable=True, default="'x'::text", is_identity=False),
    )


def test_fetch_table_info_reads_keys_and_indexes():
    info = fetch_table_info(_sample_connection(), "users")
    assert info.primary_keys == ("id",)
    assert info.indexes == (
        IndexInfo(name="users_pkey", columns=("id",), unique=True),
        IndexInfo(name="users_email_idx", columns=("email",), unique=False),
    )
    assert info.foreign_keys == ()


def test_fetch_table_info_reads_foreign_keys():
    info = fetch_table_info(_sample_connection(), "orders")
    assert info.foreign_keys == (
        ForeignKeyInfo(
            name="orders_user_fk",
            columns=("user_id",),
            referenced_table="users",
            referenced_columns=("id",),
        ),
    )


def test_fetch_table_info_passes_table_name():
    conn = _sample_connection()
    fetch_table_info(conn, "orders")
    assert len(conn.calls) == 4
    assert all(params == {"table_name": "orders"} for _, params in conn.calls)


def test_array_literal_with_quotes_and_empty():
    conn = FakeConnection(
        indexes={"t": [("multi", '{a,"b c"}', False), ("none", "{}", False)]},
    )
    info = fetch_table_info(conn, "t")
    assert [idx.columns for idx in info.indexes] == [("a", "b c"), ()]


def test_fetch_schema_keeps_table_order():
    schema = fetch_schema(_sample_connection())
    assert list(schema.tables) == ["orders", "users"]
    assert schema.tables["orders"].primary_keys == ("id",)
    assert [c.name for c in schema.tables["users"].columns] == ["id", "email"]


def test_fetch_schema_empty_database():
    assert fetch_schema(FakeConnection()) == Schema()


def test_empty_table_info_defaults():
    info = fetch_table_info(FakeConnection(), "lonely")
    assert info == TableInfo(name="lonely")


def test_fetch_tables_failure():
    with pytest.raises(SchemaFetchError, match="^error fetching tables"):
        fetch_schema(FakeConnection(tables=["a"], fail_on="tables"))


@pytest.mark.parametrize(
    "kind, label",
    [
        ("columns", "columns"),
        ("pks", "primary keys"),
        ("indexes", "indexes"),
        ("fks", "foreign keys"),
    ],
)
def test_fetch_schema_wraps_table_errors(kind, label):
    conn = FakeConnection(tables=["a"], fail_on=kind)
    with pytest.raises(SchemaFetchError) as excinfo:
        fetch_schema(conn)
    assert str(excinfo.value).startswith(f"error fetching table info for a: error fetching {label}")


def test_scan_error_on_bad_row():
    conn = FakeConnection(columns={"t": [("id", "integer", "NO")]})
    with pytest.raises(SchemaFetchError, match="^error scanning column"):
        fetch_table_info(conn, "t")


def test_scan_error_on_null_name():
    conn = FakeConnection(pks={"t": [(None,)]})
    with pytest.raises(SchemaFetchError, match="^error scanning primary key"):
        fetch_table_info(conn, "t")


def test_scan_error_on_bad_index_flag():
    conn = FakeConnection(indexes={"t": [("idx", ["a"], None)]})
    with pytest.raises(SchemaFetchError, match="^error scanning index"):
        fetch_table_info(conn, "t")