"""
Catalog store: asset rows and tombstones in one SQLite file.

Invariants kept here:
- `path` is unique across assets; a second insert for the same path fails.
- A tombstoned path is remembered until `reset()`.
- Tags are stored as a compact JSON array and always decode to a list.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence

from ...adapters.db.schema import migrate_schema
from ...adapters.db.sqlite import Sqlite
from ...config import DB_MAX_CONNECTIONS, DB_TIMEOUT
from ...path_utils import descendant_filters
from ...shared import ErrorCode, Result, get_logger
from .models import Asset, AssetPatch, encode_tags

logger = get_logger(__name__)

ASSET_COLUMNS = "id, name, path, image_path, tags"
ORDER_BY = "ORDER BY name COLLATE NOCASE, id"


class CatalogStore:
    """Asset and tombstone persistence over the `Sqlite` adapter."""

    def __init__(
        self,
        db_path: str,
        *,
        max_connections: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.db_path = str(db_path)
        self._max_connections = max_connections if max_connections is not None else DB_MAX_CONNECTIONS
        self._timeout = float(timeout) if timeout is not None else float(DB_TIMEOUT)
        self._db: Optional[Sqlite] = None
        self._init_error: Optional[str] = None

    def initialize(self) -> Result[bool]:
        """Open the database and bring its schema up to date."""
        if self._db is not None:
            return Result.Ok(True)
        try:
            db = Sqlite(self.db_path, max_connections=self._max_connections, timeout=self._timeout)
        except Exception as exc:
            self._init_error = str(exc)
            logger.error("Catalog store unavailable (%s): %s", self.db_path, exc)
            return Result.Err(ErrorCode.STORE_UNAVAILABLE, f"Failed to open catalog: {exc}")

        migrated = migrate_schema(db)
        if not migrated.ok:
            db.close()
            self._init_error = migrated.error
            logger.error("Catalog schema migration failed: %s", migrated.error)
            return Result.Err(ErrorCode.STORE_UNAVAILABLE, f"Failed to prepare catalog: {migrated.error}")

        self._db = db
        self._init_error = None
        return Result.Ok(True)

    @property
    def available(self) -> bool:
        return self._db is not None and not self._db.closed

    @property
    def db(self) -> Optional[Sqlite]:
        return self._db

    def _unavailable(self) -> Result[Any]:
        detail = self._init_error or "Catalog store is not open"
        return Result.Err(ErrorCode.STORE_UNAVAILABLE, detail)

    # --- assets -----------------------------------------------------------

    def insert(
        self,
        name: str,
        path: str,
        image_path: Optional[str] = None,
        tags: Sequence[str] = (),
    ) -> Result[int]:
        """Insert one asset; returns its new id. A duplicate path is rejected."""
        if not self.available:
            return self._unavailable()
        res = self._db.execute(
            "INSERT INTO assets (name, path, image_path, tags) VALUES (?, ?, ?, ?)",
            (name, path, image_path or None, encode_tags(list(tags or []))),
        )
        if not res.ok:
            duplicate = bool(res.meta.get("integrity"))
            return Result.Err(ErrorCode.WRITE_FAILED, f"Failed to insert asset: {res.error}", duplicate=duplicate)
        return Result.Ok(int(res.data))

    def get(self, asset_id: int) -> Result[Asset]:
        if not self.available:
            return self._unavailable()
        res = self._db.query(f"SELECT {ASSET_COLUMNS} FROM assets WHERE id = ?", (int(asset_id),))
        if not res.ok:
            return Result.Err(ErrorCode.READ_FAILED, f"Failed to read asset: {res.error}")
        if not res.data:
            return Result.Err(ErrorCode.NOT_FOUND, f"Asset not found: {asset_id}")
        return Result.Ok(Asset.from_row(res.data[0]))

    def list(self, offset: int, limit: int) -> Result[list[Asset]]:
        """Assets in catalog order (name, case-insensitive, then id)."""
        return self.select_where("", (), offset, limit)

    def select_where(self, where_sql: str, params: Sequence[Any], offset: int, limit: int) -> Result[list[Asset]]:
        """
        Page of assets matching a WHERE clause built by the caller.

        `where_sql` must only contain bound placeholders, never user text.
        """
        if not self.available:
            return self._unavailable()
        where = f"WHERE {where_sql} " if where_sql else ""
        res = self._db.query(
            f"SELECT {ASSET_COLUMNS} FROM assets {where}{ORDER_BY} LIMIT ? OFFSET ?",
            tuple(params) + (max(0, int(limit)), max(0, int(offset))),
        )
        if not res.ok:
            return Result.Err(ErrorCode.READ_FAILED, f"Failed to list assets: {res.error}")
        return Result.Ok([Asset.from_row(row) for row in res.data or []])

    def count_where(self, where_sql: str, params: Sequence[Any]) -> Result[int]:
        if not self.available:
            return self._unavailable()
        where = f" WHERE {where_sql}" if where_sql else ""
        res = self._db.query(f"SELECT COUNT(*) AS n FROM assets{where}", tuple(params))
        if not res.ok or not res.data:
            return Result.Err(ErrorCode.READ_FAILED, f"Failed to count assets: {res.error}")
        return Result.Ok(int(res.data[0]["n"] or 0))

    def count(self) -> int:
        """Total number of assets; 0 when the store cannot be read."""
        res = self.count_where("", ())
        if not res.ok:
            logger.debug("Asset count unavailable: %s", res.error)
            return 0
        return int(res.data or 0)

    def update(self, asset_id: int, patch: AssetPatch) -> Result[int]:
        """
        Apply a partial update in one statement.

        Returns the affected row count; an id that matches nothing still succeeds
        with 0.
        """
        if patch is None or patch.is_empty():
            return Result.Err(ErrorCode.INVALID_INPUT, "No fields to update")
        if not self.available:
            return self._unavailable()
        assignments = patch.assignments()
        set_sql = ", ".join(f"{column} = ?" for column, _ in assignments)
        params = tuple(value for _, value in assignments) + (int(asset_id),)
        res = self._db.execute(f"UPDATE assets SET {set_sql} WHERE id = ?", params)
        if not res.ok:
            return Result.Err(
                ErrorCode.WRITE_FAILED,
                f"Failed to update asset: {res.error}",
                duplicate=bool(res.meta.get("integrity")),
            )
        return Result.Ok(int(res.data or 0))

    def delete(self, asset_id: int) -> Result[int]:
        """Delete by id; an unknown id is not an error."""
        if not self.available:
            return self._unavailable()
        res = self._db.execute("DELETE FROM assets WHERE id = ?", (int(asset_id),))
        if not res.ok:
            return Result.Err(ErrorCode.WRITE_FAILED, f"Failed to delete asset: {res.error}")
        return Result.Ok(int(res.data or 0))

    def path_exists(self, path: str) -> bool:
        if not self.available:
            return False
        res = self._db.query("SELECT 1 AS hit FROM assets WHERE path = ? LIMIT 1", (path,))
        return bool(res.ok and res.data)

    def delete_under(self, parent: str) -> int:
        """
        Remove assets whose path lies strictly below `parent`.

        Returns the number of rows removed (0 on failure).
        """
        if not self.available:
            return 0
        removed = 0
        for prefix, pattern in descendant_filters(parent):
            # LIKE narrows the scan; substr keeps the prefix match case-sensitive.
            res = self._db.execute(
                "DELETE FROM assets WHERE path LIKE ? ESCAPE '\\' AND substr(path, 1, ?) = ?",
                (pattern, len(prefix), prefix),
            )
            if not res.ok:
                logger.warning("Failed to remove nested assets under %s: %s", parent, res.error)
                continue
            removed += int(res.data or 0)
        return removed

    # --- tombstones -------------------------------------------------------

    def tombstone(self, path: str) -> Result[bool]:
        """Remember `path` as deleted; repeating it is harmless."""
        if not self.available:
            return self._unavailable()
        res = self._db.execute("INSERT OR IGNORE INTO deleted (path) VALUES (?)", (path,))
        if not res.ok:
            return Result.Err(ErrorCode.WRITE_FAILED, f"Failed to record deleted path: {res.error}")
        return Result.Ok(True)

    def is_tombstoned(self, path: str) -> bool:
        if not self.available:
            return False
        res = self._db.query("SELECT 1 AS hit FROM deleted WHERE path = ? LIMIT 1", (path,))
        return bool(res.ok and res.data)

    def tombstones(self) -> list[str]:
        if not self.available:
            return []
        res = self._db.query("SELECT path FROM deleted ORDER BY path")
        if not res.ok:
            return []
        return [str(row["path"]) for row in res.data or []]

    def reset(self) -> Result[bool]:
        """Forget every asset and tombstone."""
        if not self.available:
            return self._unavailable()
        res = self._db.executescript("DELETE FROM assets; DELETE FROM deleted;")
        if not res.ok:
            return Result.Err(ErrorCode.WRITE_FAILED, f"Failed to reset catalog: {res.error}")
        logger.info("Catalog reset")
        return Result.Ok(True)

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
