"""Command-line entry point that compares two PostgreSQL schemas."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from contextlib import ExitStack

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from pgschemadiff.compare import Difference, compare_schemas
from pgschemadiff.schema import SchemaFetchError, fetch_schema


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``schema-check`` command."""
    parser = argparse.ArgumentParser(
        prog="schema-check",
        description=(
            "A tool to compare the schema of two PostgreSQL databases "
            "and report differences."
        ),
    )
    parser.add_argument(
        "--source", required=True, help="Source database connection string"
    )
    parser.add_argument(
        "--target", required=True, help="Target database connection string"
    )
    return parser


def format_report(differences: Sequence[Difference]) -> str:
    """Render the differences as the text the command prints."""
    if not differences:
        return "No differences found between the schemas."
    lines = [f"Found {len(differences)} differences:", ""]
    lines.extend(str(diff) for diff in differences)
    return "\n".join(lines)


def _normalise_url(url: str) -> str:
    # The short "postgres" scheme is common in connection strings but is not
    # a dialect name the engine recognises.
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def _connect(stack: ExitStack, url: str, role: str) -> Connection:
    try:
        engine = create_engine(_normalise_url(url))
    except (SQLAlchemyError, ImportError) as exc:
        raise SchemaFetchError(f"error connecting to {role} database: {exc}") from exc
    stack.callback(engine.dispose)
    try:
        return stack.enter_context(engine.connect())
    except (SQLAlchemyError, ImportError) as exc:
        raise SchemaFetchError(f"error connecting to {role} database: {exc}") from exc


def run(source_url: str, target_url: str) -> list[Difference]:
    """Connect to both databases, read their schemas and compare them."""
    with ExitStack() as stack:
        source_conn = _connect(stack, source_url, "source")
        target_conn = _connect(stack, target_url, "target")
        try:
            source_schema = fetch_schema(source_conn)
        except SchemaFetchError as exc:
            raise SchemaFetchError(f"error fetching source schema: {exc}") from exc
        try:
            target_schema = fetch_schema(target_conn)
        except SchemaFetchError as exc:
            raise SchemaFetchError(f"error fetching target schema: {exc}") from exc
    return compare_schemas(source_schema, target_schema)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command and return its exit status."""
    args = build_parser().parse_args(argv)
    try:
        differences = run(args.source, args.target)
    except SchemaFetchError as exc:
        print(exc)
        return 1
    print(format_report(differences))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())