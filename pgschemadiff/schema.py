"""Reading table structure from a PostgreSQL database."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError


class SchemaFetchError(Exception):
    """Raised when schema information cannot be read from the database."""


@dataclass(frozen=True)
class ColumnInfo:
    """A single table column."""

    name: str
    type: str
    nullable: bool = False
    default: str = ""
    is_identity: bool = False


@dataclass(frozen=True)
class IndexInfo:
    """An index and the columns it covers."""

    name: str
    columns: tuple[str, ...] = ()
    unique: bool = False


@dataclass(frozen=True)
class ForeignKeyInfo:
    """A foreign key constraint linking columns to another table."""

    name: str
    columns: tuple[str, ...] = ()
    referenced_table: str = ""
    referenced_columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class TableInfo:
    """The full structure of one table."""

    name: str
    columns: tuple[ColumnInfo, ...] = ()
    primary_keys: tuple[str, ...] = ()
    indexes: tuple[IndexInfo, ...] = ()
    foreign_keys: tuple[ForeignKeyInfo, ...] = ()


@dataclass
class Schema:
    """All tables of a database schema, keyed by table name."""

    tables: dict[str, TableInfo] = field(default_factory=dict)


_TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = 'public'
    ORDER BY table_name
"""

_COLUMNS_SQL = """
    SELECT
        column_name,
        data_type,
        is_nullable,
        column_default,
        is_identity
    FROM information_schema.columns
    WHERE table_schema = 'public' AND table_name = :table_name
    ORDER BY ordinal_position
"""

_PRIMARY_KEYS_SQL = """
    SELECT kcu.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON tc.constraint_name = kcu.constraint_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
        AND tc.table_schema = 'public'
        AND tc.table_name = :table_name
    ORDER BY kcu.ordinal_position
"""

_INDEXES_SQL = """
    SELECT
        i.relname as index_name,
        array_agg(a.attname) as column_names,
        ix.indisunique as is_unique
    FROM
        pg_class t,
        pg_class i,
        pg_index ix,
        pg_attribute a
    WHERE
        t.oid = ix.indrelid
        AND i.oid = ix.indexrelid
        AND a.attrelid = t.oid
        AND a.attnum = ANY(ix.indkey)
        AND t.relkind = 'r'
        AND t.relname = :table_name
    GROUP BY
        i.relname,
        ix.indisunique
    ORDER BY
        i.relname
"""

_FOREIGN_KEYS_SQL = """
    SELECT
        tc.constraint_name,
        array_agg(kcu.column_name) as columns,
        ccu.table_name as referenced_table,
        array_agg(ccu.column_name) as referenced_columns
    FROM
        information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
            ON tc.constraint_name = kcu.constraint_name
        JOIN information_schema.constraint_column_usage ccu
            ON ccu.constraint_name = tc.constraint_name
    WHERE
        tc.constraint_type = 'FOREIGN KEY'
        AND tc.table_schema = 'public'
        AND tc.table_name = :table_name
    GROUP BY
        tc.constraint_name,
        ccu.table_name
"""


def _query(conn: Any, sql: str, what: str, params: dict[str, Any] | None = None) -> list:
    try:
        return list(conn.execute(text(sql), params or {}))
    except SQLAlchemyError as exc:
        raise SchemaFetchError(f"error fetching {what}: {exc}") from exc


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected text, got {value!r}")
    return value


def _names(value: Any) -> tuple[str, ...]:
    """Turn an aggregated array of names into a tuple of strings.

    Some drivers hand back arrays of the ``name`` type as their literal
    text form (``{a,b}``), so that form is parsed as well.
    """
    if isinstance(value, str):
        if not (value.startswith("{") and value.endswith("}")):
            raise ValueError(f"not an array literal: {value!r}")
        inner = value[1:-1]
        if not inner:
            return ()
        reader = csv.reader([inner], quotechar='"', escapechar="\\", doublequote=False)
        return tuple(next(reader))
    if isinstance(value, Iterable):
        return tuple(_text(item) for item in value)
    raise TypeError(f"expected an array of names, got {value!r}")


def _scan(rows: Sequence, what: str, convert) -> tuple:
    try:
        return tuple(convert(row) for row in rows)
    except (TypeError, ValueError) as exc:
        raise SchemaFetchError(f"error scanning {what}: {exc}") from exc


def _column(row: Sequence) -> ColumnInfo:
    name, data_type, nullable, default, identity = row
    return ColumnInfo(
        name=_text(name),
        type=_text(data_type),
        nullable=nullable == "YES",
        default="" if default is None else _text(default),
        is_identity=identity == "YES",
    )


def _primary_key(row: Sequence) -> str:
    (name,) = row
    return _text(name)


def _index(row: Sequence) -> IndexInfo:
    name, columns, unique = row
    if not isinstance(unique, bool):
        raise TypeError(f"expected a boolean, got {unique!r}")
    return IndexInfo(name=_text(name), columns=_names(columns), unique=unique)


def _foreign_key(row: Sequence) -> ForeignKeyInfo:
    name, columns, referenced_table, referenced_columns = row
    return ForeignKeyInfo(
        name=_text(name),
        columns=_names(columns),
        referenced_table=_text(referenced_table),
        referenced_columns=_names(referenced_columns),
    )


def fetch_table_info(conn: Any, table_name: str) -> TableInfo:
    """Read columns, primary key, indexes and foreign keys of one public table."""
    params = {"table_name": table_name}
    columns = _scan(_query(conn, _COLUMNS_SQL, "columns", params), "column", _column)
    primary_keys = _scan(
        _query(conn, _PRIMARY_KEYS_SQL, "primary keys", params), "primary key", _primary_key
    )
    indexes = _scan(_query(conn, _INDEXES_SQL, "indexes", params), "index", _index)
    foreign_keys = _scan(
        _query(conn, _FOREIGN_KEYS_SQL, "foreign keys", params), "foreign key", _foreign_key
    )
    return TableInfo(
        name=table_name,
        columns=columns,
        primary_keys=primary_keys,
        indexes=indexes,
        foreign_keys=foreign_keys,
    )


def fetch_schema(conn: Any) -> Schema:
    """Read every table of the ``public`` schema through a SQLAlchemy connection."""
    table_names = _scan(_query(conn, _TABLES_SQL, "tables"), "table name", _primary_key)
    schema = Schema()
    for table_name in table_names:
        try:
            schema.tables[table_name] = fetch_table_info(conn, table_name)
        except SchemaFetchError as exc:
            raise SchemaFetchError(f"error fetching table info for {table_name}: {exc}") from exc
    return schema