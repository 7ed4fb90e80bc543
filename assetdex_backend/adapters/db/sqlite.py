"""
SQLite database connection manager.

Implementation note:
- This adapter uses `aiosqlite` internally, on a dedicated event-loop thread.
- The public API is synchronous: catalog operations block until the statement
  has completed, and aiohttp handlers offload them via `asyncio.to_thread(...)`.

Critical guarantee:
- The adapter never raises to callers; it returns `Result(...)`.
"""

from __future__ import annotations

import asyncio
import random
import threading
import time
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Dict, List, Optional

import aiosqlite
import sqlite3

from ...config import DB_MAX_CONNECTIONS, DB_QUERY_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000
# Negative cache_size is in KiB. -16000 ~= 16 MiB cache.
SQLITE_CACHE_SIZE_KIB = -16000


class _AsyncLoopThread:
    def __init__(self):
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    def start(self) -> asyncio.AbstractEventLoop:
        if self._loop and self._thread and self._thread.is_alive():
            return self._loop

        self._ready.clear()

        def _run():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            self._loop = loop
            self._ready.set()
            try:
                loop.run_forever()
            finally:
                pending = asyncio.all_tasks(loop)
                for task in pending:
                    task.cancel()
                if pending:
                    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
                loop.close()

        self._thread = threading.Thread(target=_run, name="assetdex-db", daemon=True)
        self._thread.start()
        self._ready.wait(timeout=10.0)
        if not self._loop:
            raise RuntimeError("Failed to start DB async loop thread")
        return self._loop

    def run(self, coro):
        loop = self.start()
        fut = asyncio.run_coroutine_threadsafe(coro, loop)
        return fut.result()

    def stop(self):
        loop = self._loop
        if not loop or loop.is_closed():
            return
        loop.call_soon_threadsafe(loop.stop)
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=5.0)
        self._loop = None
        self._thread = None


class Sqlite:
    """
    Connection pool manager for SQLite (aiosqlite-backed).

    Synchronous API, async execution on a dedicated loop thread. Every statement
    runs in autocommit mode; there are no multi-statement transactions.
    """

    def __init__(self, db_path: str, max_connections: Optional[int] = None, timeout: float = 30.0):
        self.db_path = Path(db_path)
        max_conn = int(max_connections) if max_connections is not None else int(DB_MAX_CONNECTIONS or 4)
        self._max_connections = max(1, max_conn)
        self._pool: "Queue[aiosqlite.Connection]" = Queue(maxsize=self._max_connections)
        self._initialized = False
        self._closed = False
        self._lock = threading.Lock()
        self._timeout = float(timeout)
        self._query_timeout = float(DB_QUERY_TIMEOUT) if DB_QUERY_TIMEOUT is not None else 0.0
        self._lock_retry_attempts = 6
        self._lock_retry_base_seconds = 0.05
        self._lock_retry_max_seconds = 0.75

        self._loop_thread = _AsyncLoopThread()
        # Created on the loop thread during initialization.
        self._sem: Optional[asyncio.Semaphore] = None
        self._write_lock: Optional[asyncio.Lock] = None

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _is_locked_error(self, exc: Exception) -> bool:
        msg = str(exc).lower()
        return (
            "database is locked" in msg
            or "database table is locked" in msg
            or "database schema is locked" in msg
            or "busy" in msg
        )

    async def _sleep_backoff(self, attempt: int):
        base = float(self._lock_retry_base_seconds)
        max_s = float(self._lock_retry_max_seconds)
        delay = min(max_s, base * (2 ** max(0, attempt)))
        delay = delay + (random.random() * 0.03)
        await asyncio.sleep(delay)

    async def _apply_connection_pragmas(self, conn: aiosqlite.Connection):
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA cache_size={SQLITE_CACHE_SIZE_KIB}")
        await conn.execute("PRAGMA temp_store=MEMORY")
        await conn.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        await conn.execute("PRAGMA foreign_keys=ON")

    async def _create_connection(self) -> aiosqlite.Connection:
        # Autocommit mode: each statement is its own transaction.
        conn = await aiosqlite.connect(str(self.db_path), timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        await self._apply_connection_pragmas(conn)
        return conn

    async def _acquire_connection_async(self) -> aiosqlite.Connection:
        if self._sem is None:
            raise RuntimeError("Database pool is not initialized")
        await self._sem.acquire()
        try:
            try:
                conn = self._pool.get_nowait()
            except Empty:
                conn = await self._create_connection()
            return conn
        except Exception:
            self._sem.release()
            raise

    async def _release_connection_async(self, conn: aiosqlite.Connection):
        try:
            if not conn:
                return
            if not self._pool.full() and not self._closed:
                self._pool.put_nowait(conn)
            else:
                await conn.close()
        finally:
            if self._sem is not None:
                self._sem.release()

    async def _ensure_initialized_async(self):
        if self._initialized:
            return
        if self._sem is None:
            self._sem = asyncio.Semaphore(self._max_connections)
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        # Open one connection first; mark initialized only after it succeeds.
        conn = await self._acquire_connection_async()
        try:
            await conn.commit()
        finally:
            await self._release_connection_async(conn)
        with self._lock:
            self._initialized = True
        logger.info("Database initialized: %s", self.db_path)

    def _init_db(self):
        try:
            self._loop_thread.run(self._ensure_initialized_async())
        except Exception as exc:
            logger.error("Failed to initialize database: %s", exc)
            self._loop_thread.stop()
            raise

    @staticmethod
    def _rows_to_dicts(rows: Any) -> List[Dict[str, Any]]:
        return [dict(r) for r in rows or []]

    @staticmethod
    def _statement_head(query: str) -> str:
        q = str(query or "").lstrip()
        if not q:
            return ""
        return q.split(None, 1)[0].upper()

    @classmethod
    def _is_write_sql(cls, query: str) -> bool:
        head = cls._statement_head(query)
        if not head:
            return False
        return head not in ("SELECT", "PRAGMA", "WITH", "EXPLAIN")

    async def _with_query_timeout(self, coro):
        timeout = float(self._query_timeout or 0)
        if timeout > 0:
            try:
                return await asyncio.wait_for(coro, timeout=timeout)
            except asyncio.TimeoutError:
                return Result.Err(ErrorCode.TIMEOUT, "Database operation timed out")
        return await coro

    async def _execute_async(self, query: str, params: Optional[tuple], fetch: bool) -> Result[Any]:
        await self._ensure_initialized_async()
        conn = await self._acquire_connection_async()
        try:
            return await self._execute_on_conn_async(conn, query, params, fetch)
        finally:
            await self._release_connection_async(conn)

    async def _execute_on_conn_async(
        self,
        conn: aiosqlite.Connection,
        query: str,
        params: Optional[tuple],
        fetch: bool,
    ) -> Result[Any]:
        try:
            lock = self._write_lock
            if self._is_write_sql(query) and lock is not None:
                async with lock:
                    return await self._execute_on_conn_locked_async(conn, query, params, fetch)
            return await self._execute_on_conn_locked_async(conn, query, params, fetch)
        except sqlite3.IntegrityError as exc:
            logger.debug("Integrity error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Integrity error: {exc}", integrity=True)
        except sqlite3.OperationalError as exc:
            if "interrupted" in str(exc).lower():
                return Result.Err(ErrorCode.TIMEOUT, "Database operation interrupted (query timeout)")
            logger.error("Operational error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Operational error: {exc}")
        except Exception as exc:
            logger.error("Unexpected database error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def _execute_on_conn_locked_async(
        self,
        conn: aiosqlite.Connection,
        query: str,
        params: Optional[tuple],
        fetch: bool,
    ) -> Result[Any]:
        head = self._statement_head(query)
        for attempt in range(self._lock_retry_attempts + 1):
            try:
                cursor = await conn.execute(query, params or ())
                try:
                    if fetch:
                        rows = await cursor.fetchall()
                        return Result.Ok(self._rows_to_dicts(rows))
                    # lastrowid is connection-wide in sqlite3; only trust it for inserts.
                    if head in ("INSERT", "REPLACE"):
                        last_id = getattr(cursor, "lastrowid", None)
                        if last_id and cursor.rowcount:
                            return Result.Ok(last_id)
                    rowcount = getattr(cursor, "rowcount", None)
                    return Result.Ok(rowcount if rowcount is not None and rowcount >= 0 else 0)
                finally:
                    await cursor.close()
            except sqlite3.OperationalError as exc:
                if self._is_locked_error(exc) and attempt < self._lock_retry_attempts:
                    await self._sleep_backoff(attempt)
                    continue
                raise
        return Result.Err(ErrorCode.DB_ERROR, "Database is locked")

    def _run(self, coro) -> Result[Any]:
        if self._closed:
            coro.close()
            return Result.Err(ErrorCode.DB_ERROR, "Database is closed")
        try:
            return self._loop_thread.run(self._with_query_timeout(coro))
        except Exception as exc:
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    def execute(self, query: str, params: Optional[tuple] = None, fetch: bool = False) -> Result[Any]:
        """
        Execute one SQL statement on the DB loop thread (sync).

        Writes return the new row id for inserts and the affected row count otherwise.
        """
        return self._run(self._execute_async(query, params, fetch))

    def query(self, sql: str, params: Optional[tuple] = None) -> Result[List[Dict[str, Any]]]:
        """Execute a SELECT query and return rows (sync)."""
        return self.execute(sql, params, fetch=True)

    async def _executescript_async(self, script: str) -> Result[bool]:
        await self._ensure_initialized_async()
        conn = await self._acquire_connection_async()
        try:
            lock = self._write_lock
            if lock is not None:
                async with lock:
                    return await self._executescript_on_conn_async(conn, script)
            return await self._executescript_on_conn_async(conn, script)
        finally:
            await self._release_connection_async(conn)

    async def _executescript_on_conn_async(self, conn: aiosqlite.Connection, script: str) -> Result[bool]:
        try:
            for attempt in range(self._lock_retry_attempts + 1):
                try:
                    await conn.executescript(script)
                    return Result.Ok(True)
                except sqlite3.OperationalError as exc:
                    if self._is_locked_error(exc) and attempt < self._lock_retry_attempts:
                        await self._sleep_backoff(attempt)
                        continue
                    raise
        except sqlite3.OperationalError as exc:
            if "interrupted" in str(exc).lower():
                return Result.Err(ErrorCode.TIMEOUT, "Database operation interrupted (query timeout)")
            logger.error("Script execution error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))
        except Exception as exc:
            logger.error("Script execution error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))
        return Result.Err(ErrorCode.DB_ERROR, "Database is locked")

    def executescript(self, script: str) -> Result[bool]:
        """Execute a multi-statement SQL script (sync)."""
        return self._run(self._executescript_async(script))

    def has_table(self, table_name: str) -> bool:
        """Return True if `table_name` exists in sqlite_master."""
        result = self.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (table_name,),
            fetch=True,
        )
        return bool(result.ok and result.data and len(result.data) > 0)

    async def _close_all_async(self):
        while True:
            try:
                conn = self._pool.get_nowait()
            except Empty:
                break
            try:
                await conn.close()
            except Exception as exc:
                logger.debug("Connection close failed: %s", exc)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        """Close connections and stop the DB loop thread (sync)."""
        if self._closed:
            return
        self._closed = True
        try:
            self._loop_thread.run(self._close_all_async())
        except Exception as exc:
            logger.debug("DB close failed: %s", exc)
        finally:
            self._loop_thread.stop()
