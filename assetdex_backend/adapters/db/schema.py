"""
Catalog schema and migrations.

The schema has a single additive migration: catalogs created before tags existed
get a `tags` column (JSON array, default `'[]'`) on their next initialization.
"""
import re
from typing import List

from ...shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)

# Schema definition
SCHEMA = """
-- Catalogued assets, one row per asset folder
CREATE TABLE IF NOT EXISTS assets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    path TEXT NOT NULL UNIQUE,
    image_path TEXT,  -- preview image, NULL when none was found
    tags TEXT DEFAULT '[]'  -- JSON array of strings
);

-- Tombstones: folders the user removed and does not want rediscovered
CREATE TABLE IF NOT EXISTS deleted (
    path TEXT PRIMARY KEY
);
"""

INDEXES = """
CREATE INDEX IF NOT EXISTS idx_assets_name ON assets(name);
CREATE INDEX IF NOT EXISTS idx_assets_path ON assets(path);
"""

# Columns added after the first release: (column_name, definition, backfill_sql)
COLUMN_DEFINITIONS = {
    "assets": [
        ("tags", "tags TEXT DEFAULT '[]'", "UPDATE assets SET tags = '[]' WHERE tags IS NULL"),
    ],
}

_SAFE_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _is_safe_identifier(value: str) -> bool:
    return bool(value and isinstance(value, str) and _SAFE_IDENT_RE.match(value))


def _get_table_columns(db, table_name: str) -> Result[List[str]]:
    if not _is_safe_identifier(table_name):
        return Result.Err(ErrorCode.INVALID_INPUT, f"Invalid table name: {table_name}")
    result = db.query(f"PRAGMA table_info('{table_name}')")
    if not result.ok:
        return Result.Err(ErrorCode.DB_ERROR, f"Unable to inspect {table_name}: {result.error}")
    return Result.Ok([row["name"] for row in result.data or []])


def table_has_column(db, table_name: str, column_name: str) -> bool:
    if not _is_safe_identifier(table_name) or not _is_safe_identifier(column_name):
        logger.warning("Invalid identifier in table_has_column: %s.%s", table_name, column_name)
        return False
    columns_result = _get_table_columns(db, table_name)
    if not columns_result.ok:
        logger.warning(
            "Unable to determine columns for %s.%s: %s",
            table_name,
            column_name,
            columns_result.error
        )
        return False

    return column_name in (columns_result.data or [])


def _ensure_column(db, table_name: str, column_name: str, definition: str, backfill: str) -> Result[bool]:
    columns_result = _get_table_columns(db, table_name)
    if not columns_result.ok:
        return columns_result

    if column_name in (columns_result.data or []):
        return Result.Ok(False)

    logger.info("Adding missing column %s.%s", table_name, column_name)
    alter_result = db.execute(f"ALTER TABLE {table_name} ADD COLUMN {definition}")
    if not alter_result.ok:
        return alter_result
    if backfill:
        backfill_result = db.execute(backfill)
        if not backfill_result.ok:
            return backfill_result
    return Result.Ok(True)


def ensure_tables_exist(db) -> Result[bool]:
    logger.debug("Ensuring tables exist...")
    result = db.executescript(SCHEMA)
    if not result.ok:
        logger.error("Failed to ensure base tables: %s", result.error)
    return result


def ensure_columns_exist(db) -> Result[List[str]]:
    """Add any missing columns; returns the `table.column` names that were added."""
    added: List[str] = []
    for table, columns in COLUMN_DEFINITIONS.items():
        for column_name, definition, backfill in columns:
            result = _ensure_column(db, table, column_name, definition, backfill)
            if not result.ok:
                logger.error("Failed to ensure column %s.%s: %s", table, column_name, result.error)
                return Result.Err(result.code, result.error or "Column migration failed")
            if result.data:
                added.append(f"{table}.{column_name}")
    return Result.Ok(added)


def ensure_indexes_exist(db) -> Result[bool]:
    logger.debug("Ensuring indexes exist...")
    result = db.executescript(INDEXES)
    if not result.ok:
        logger.error("Failed to ensure indexes: %s", result.error)
    return result


def migrate_schema(db) -> Result[bool]:
    """
    Bring a catalog database to the current shape.

    Creates missing tables and indexes, then adds columns introduced after the
    first release. Safe to run on every open.

    Args:
        db: Sqlite instance

    Returns:
        Result with success boolean
    """
    result = ensure_tables_exist(db)
    if not result.ok:
        return result

    columns_result = ensure_columns_exist(db)
    if not columns_result.ok:
        return Result.Err(columns_result.code, columns_result.error or "Column migration failed")

    result = ensure_indexes_exist(db)
    if not result.ok:
        return result

    if columns_result.data:
        log_success(logger, f"Schema migrated (added {', '.join(columns_result.data)})")
    else:
        logger.debug("Schema already up to date")
    return Result.Ok(True)
