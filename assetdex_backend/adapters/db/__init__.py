"""Database adapters."""
from .schema import migrate_schema, table_has_column
from .sqlite import Sqlite

__all__ = ["Sqlite", "migrate_schema", "table_has_column"]
