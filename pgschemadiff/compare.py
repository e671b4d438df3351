"""Finding the differences between two database schemas."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Callable, TypeVar

from pgschemadiff.schema import ColumnInfo, ForeignKeyInfo, IndexInfo, Schema

_T = TypeVar("_T")


class DifferenceType(str, Enum):
    """The kinds of difference that a comparison can report."""

    MISSING_TABLE = "MissingTable"
    EXTRA_TABLE = "ExtraTable"
    MISSING_COLUMN = "MissingColumn"
    EXTRA_COLUMN = "ExtraColumn"
    COLUMN_TYPE_MISMATCH = "ColumnTypeMismatch"
    COLUMN_NULLABLE_MISMATCH = "ColumnNullableMismatch"
    COLUMN_DEFAULT_MISMATCH = "ColumnDefaultMismatch"
    COLUMN_IDENTITY_MISMATCH = "ColumnIdentityMismatch"
    PRIMARY_KEY_MISMATCH = "PrimaryKeyMismatch"
    MISSING_INDEX = "MissingIndex"
    EXTRA_INDEX = "ExtraIndex"
    INDEX_UNIQUE_MISMATCH = "IndexUniqueMismatch"
    INDEX_COLUMNS_MISMATCH = "IndexColumnsMismatch"
    MISSING_FOREIGN_KEY = "MissingForeignKey"
    EXTRA_FOREIGN_KEY = "ExtraForeignKey"
    FOREIGN_KEY_REFERENCE_MISMATCH = "ForeignKeyReferenceMismatch"
    FOREIGN_KEY_COLUMNS_MISMATCH = "ForeignKeyColumnsMismatch"
    FOREIGN_KEY_REFERENCED_COLUMNS_MISMATCH = "ForeignKeyReferencedColumnsMismatch"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Difference:
    """One difference between two schemas."""

    type: DifferenceType
    table: str
    description: str

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.table}: {self.description}"


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _list(values: Iterable[str]) -> str:
    return "[" + " ".join(values) + "]"


def _by_name(items: Iterable[_T], key: Callable[[_T], str]) -> dict[str, _T]:
    return {key(item): item for item in items}


def compare_schemas(source: Schema, target: Schema) -> list[Difference]:
    """Compare tables, columns, primary keys, indexes and foreign keys."""
    differences: list[Difference] = []
    for table_name, source_table in source.tables.items():
        target_table = target.tables.get(table_name)
        if target_table is None:
            differences.append(
                Difference(
                    DifferenceType.MISSING_TABLE,
                    table_name,
                    "Table exists in source but not in target",
                )
            )
            continue
        differences += compare_columns(table_name, source_table.columns, target_table.columns)
        differences += compare_primary_keys(
            table_name, source_table.primary_keys, target_table.primary_keys
        )
        differences += compare_indexes(table_name, source_table.indexes, target_table.indexes)
        differences += compare_foreign_keys(
            table_name, source_table.foreign_keys, target_table.foreign_keys
        )

    differences.extend(
        Difference(
            DifferenceType.EXTRA_TABLE,
            table_name,
            "Table exists in target but not in source",
        )
        for table_name in target.tables
        if table_name not in source.tables
    )
    return differences


def compare_columns(
    table_name: str, source: Iterable[ColumnInfo], target: Iterable[ColumnInfo]
) -> list[Difference]:
    """Report missing, extra and differing columns of one table."""
    source_map = _by_name(source, lambda col: col.name)
    target_map = _by_name(target, lambda col: col.name)
    differences: list[Difference] = []

    def add(kind: DifferenceType, description: str) -> None:
        differences.append(Difference(kind, table_name, description))

    for name, src in source_map.items():
        tgt = target_map.get(name)
        if tgt is None:
            add(
                DifferenceType.MISSING_COLUMN,
                f"Column '{name}' exists in source but not in target",
            )
            continue
        if src.type != tgt.type:
            add(
                DifferenceType.COLUMN_TYPE_MISMATCH,
                f"Column '{name}' has different types: source={src.type}, target={tgt.type}",
            )
        if src.nullable != tgt.nullable:
            add(
                DifferenceType.COLUMN_NULLABLE_MISMATCH,
                f"Column '{name}' has different nullable settings: "
                f"source={_flag(src.nullable)}, target={_flag(tgt.nullable)}",
            )
        if src.default != tgt.default:
            add(
                DifferenceType.COLUMN_DEFAULT_MISMATCH,
                f"Column '{name}' has different default values: "
                f"source={src.default}, target={tgt.default}",
            )
        if src.is_identity != tgt.is_identity:
            add(
                DifferenceType.COLUMN_IDENTITY_MISMATCH,
                f"Column '{name}' has different identity settings: "
                f"source={_flag(src.is_identity)}, target={_flag(tgt.is_identity)}",
            )

    for name in target_map:
        if name not in source_map:
            add(
                DifferenceType.EXTRA_COLUMN,
                f"Column '{name}' exists in target but not in source",
            )
    return differences


def compare_primary_keys(
    table_name: str, source: Sequence[str], target: Sequence[str]
) -> list[Difference]:
    """Report differences in the number or order of primary key columns."""
    if len(source) != len(target):
        return [
            Difference(
                DifferenceType.PRIMARY_KEY_MISMATCH,
                table_name,
                "Different number of primary key columns: "
                f"source={len(source)}, target={len(target)}",
            )
        ]
    return [
        Difference(
            DifferenceType.PRIMARY_KEY_MISMATCH,
            table_name,
            f"Primary key column mismatch at position {position}: source={src}, target={tgt}",
        )
        for position, (src, tgt) in enumerate(zip(source, target), start=1)
        if src != tgt
    ]


def compare_indexes(
    table_name: str, source: Iterable[IndexInfo], target: Iterable[IndexInfo]
) -> list[Difference]:
    """Report missing, extra and differing indexes of one table."""
    source_map = _by_name(source, lambda idx: idx.name)
    target_map = _by_name(target, lambda idx: idx.name)
    differences: list[Difference] = []

    def add(kind: DifferenceType, description: str) -> None:
        differences.append(Difference(kind, table_name, description))

    for name, src in source_map.items():
        tgt = target_map.get(name)
        if tgt is None:
            add(
                DifferenceType.MISSING_INDEX,
                f"Index '{name}' exists in source but not in target",
            )
            continue
        if src.unique != tgt.unique:
            add(
                DifferenceType.INDEX_UNIQUE_MISMATCH,
                f"Index '{name}' has different unique settings: "
                f"source={_flag(src.unique)}, target={_flag(tgt.unique)}",
            )
        if tuple(src.columns) != tuple(tgt.columns):
            add(
                DifferenceType.INDEX_COLUMNS_MISMATCH,
                f"Index '{name}' has different columns: "
                f"source={_list(src.columns)}, target={_list(tgt.columns)}",
            )

    for name in target_map:
        if name not in source_map:
            add(
                DifferenceType.EXTRA_INDEX,
                f"Index '{name}' exists in target but not in source",
            )
    return differences


def compare_foreign_keys(
    table_name: str, source: Iterable[ForeignKeyInfo], target: Iterable[ForeignKeyInfo]
) -> list[Difference]:
    """Report missing, extra and differing foreign keys of one table."""
    source_map = _by_name(source, lambda fk: fk.name)
    target_map = _by_name(target, lambda fk: fk.name)
    differences: list[Difference] = []

    def add(kind: DifferenceType, description: str) -> None:
        differences.append(Difference(kind, table_name, description))

    for name, src in source_map.items():
        tgt = target_map.get(name)
        if tgt is None:
            add(
                DifferenceType.MISSING_FOREIGN_KEY,
                f"Foreign key '{name}' exists in source but not in target",
            )
            continue
        if src.referenced_table != tgt.referenced_table:
            add(
                DifferenceType.FOREIGN_KEY_REFERENCE_MISMATCH,
                f"Foreign key '{name}' references different tables: "
                f"source={src.referenced_table}, target={tgt.referenced_table}",
            )
        if tuple(src.columns) != tuple(tgt.columns):
            add(
                DifferenceType.FOREIGN_KEY_COLUMNS_MISMATCH,
                f"Foreign key '{name}' has different columns: "
                f"source={_list(src.columns)}, target={_list(tgt.columns)}",
            )
        if tuple(src.referenced_columns) != tuple(tgt.referenced_columns):
            add(
                DifferenceType.FOREIGN_KEY_REFERENCED_COLUMNS_MISMATCH,
                f"Foreign key '{name}' references different columns: "
                f"source={_list(src.referenced_columns)}, "
                f"target={_list(tgt.referenced_columns)}",
            )

    for name in target_map:
        if name not in source_map:
            add(
                DifferenceType.EXTRA_FOREIGN_KEY,
                f"Foreign key '{name}' exists in target but not in source",
            )
    return differences