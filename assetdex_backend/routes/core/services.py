"""
Service management and initialization.
"""
import asyncio
import threading
from typing import Any, Optional

from assetdex_backend.deps import build_services
from assetdex_backend.shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

_services: Optional[dict[str, Any]] = None
_services_error: Optional[str] = None
_services_db_path: Optional[str] = None
_services_lock: asyncio.Lock | None = None
_services_lock_guard = threading.Lock()


def _get_services_lock() -> asyncio.Lock:
    global _services_lock
    if _services_lock is not None:
        return _services_lock
    with _services_lock_guard:
        if _services_lock is None:
            _services_lock = asyncio.Lock()
        return _services_lock


def configure_services(db_path: Optional[str]) -> None:
    """Set the catalog path used the next time services are built."""
    global _services_db_path
    _services_db_path = db_path


async def dispose_services() -> None:
    """Close the catalog (and its database connections) if it was opened."""
    global _services
    if not _services:
        return

    catalog = _services.get("catalog")
    if catalog is not None:
        try:
            await asyncio.to_thread(catalog.close)
            logger.debug("Catalog closed successfully")
        except Exception as exc:
            logger.warning("Error closing catalog: %s", exc, exc_info=True)

    _services = None


async def _build_services(force: bool = False):
    global _services, _services_error
    async with _get_services_lock():
        if _services and not force:
            return _services

        if force:
            await dispose_services()

        try:
            services_result = await build_services(_services_db_path)
        except Exception as exc:
            _services_error = str(exc)
            logger.error("Failed to initialize services: %s", exc, exc_info=True)
            _services = None
            return None

        if not services_result.ok:
            _services_error = services_result.error or "Initialization failed"
            logger.error("Failed to initialize services: %s", _services_error)
            _services = None
            return None

        _services = services_result.data
        _services_error = None
        return _services


async def _require_services() -> tuple[dict[str, Any] | None, Result[Any] | None]:
    services = await _build_services()
    if services:
        return services, None
    return None, Result.Err(
        ErrorCode.SERVICE_UNAVAILABLE,
        "Services are unavailable",
        detail=_services_error or "Initialization failed"
    )


def get_services_error():
    """Get the current services error if any."""
    return _services_error
