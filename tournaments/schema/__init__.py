"""SQLite schema for the tournament database."""

from .schema_manager import SchemaManager

__all__ = ["SchemaManager"]
