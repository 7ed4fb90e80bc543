"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""

import asyncio
from typing import Optional

from .config import DB_MAX_CONNECTIONS, DB_PATH, DB_TIMEOUT
from .features.catalog import AssetCatalog
from .shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)


async def build_services(db_path: Optional[str] = None) -> Result[dict]:
    """
    Build all services (DI container).

    Args:
        db_path: Path to the catalog database (default: from config.DB_PATH)

    Returns:
        Result[dict] of service instances (`catalog`, `db`)
    """
    if db_path is None:
        db_path = DB_PATH

    logger.info("Opening catalog: %s", db_path)
    opened = await asyncio.to_thread(
        AssetCatalog.open,
        db_path,
        max_connections=DB_MAX_CONNECTIONS,
        timeout=DB_TIMEOUT,
    )
    if not opened.ok or opened.data is None:
        logger.error("Failed to open catalog: %s", opened.error)
        return Result.Err(ErrorCode.STORE_UNAVAILABLE, opened.error or "Failed to open catalog")

    catalog = opened.data
    services = {
        "catalog": catalog,
        "db": catalog.store.db,
    }
    log_success(logger, "Services ready")
    return Result.Ok(services)
