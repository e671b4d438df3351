"""Read PostgreSQL table structure, compare two schemas and report the differences."""

__version__ = "0.1.0"
__all__ = ["schema", "compare", "cli"]