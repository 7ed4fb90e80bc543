"""
Configuration for AssetDex.

Every setting reads an `ASSETDEX_*` environment variable once at import time and
falls back to a default when unset or invalid.
"""
import os
import logging
from pathlib import Path

from .utils import env_bool, split_csv

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def _env_path(default: Path, *names: str) -> Path:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        return Path(raw).expanduser().resolve(strict=False)
    except (OSError, RuntimeError):
        logger.warning("Failed to resolve %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default


# Catalog database
DB_PATH = str(_env_path(Path.cwd() / "assetdex.sqlite", "ASSETDEX_DB_PATH"))
DB_TIMEOUT = _env_float(30.0, "ASSETDEX_DB_TIMEOUT", min_value=1.0, max_value=300.0)
DB_MAX_CONNECTIONS = _env_int(4, "ASSETDEX_DB_MAX_CONNECTIONS", min_value=1, max_value=64)
DB_QUERY_TIMEOUT = _env_float(60.0, "ASSETDEX_DB_QUERY_TIMEOUT", min_value=1.0, max_value=600.0)

# Catalog defaults (each catalog handle owns a copy it can change at runtime)
DEFAULT_PAGE_SIZE = _env_int(50, "ASSETDEX_PAGE_SIZE", min_value=1, max_value=10_000)
DEFAULT_PREVIEW_NAMES = split_csv(_env_raw("ASSETDEX_PREVIEW_NAMES", default="Preview,Asset"))
DEFAULT_USE_FIRST_IMAGE = _env_bool(False, "ASSETDEX_USE_FIRST_IMAGE")
DEFAULT_USE_FOLDER_NAME = _env_bool(True, "ASSETDEX_USE_FOLDER_NAME")
METADATA_FILENAME = _env_raw("ASSETDEX_METADATA_FILENAME", default="Asset.json") or "Asset.json"

# Virtual path roots (user:// and res:// are translated before reaching the catalog)
USER_ROOT = str(_env_path(Path.home() / ".local" / "share" / "assetdex", "ASSETDEX_USER_ROOT"))
RES_ROOT = str(_env_path(Path.cwd(), "ASSETDEX_RES_ROOT"))

# Search abuse guards (each token adds one LIKE condition)
SEARCH_MAX_QUERY_LENGTH = _env_int(4096, "ASSETDEX_SEARCH_MAX_QUERY_LENGTH", min_value=256, max_value=65536)
SEARCH_MAX_TOKENS = _env_int(64, "ASSETDEX_SEARCH_MAX_TOKENS", min_value=8, max_value=512)

# HTTP server
HOST = _env_raw("ASSETDEX_HOST", default="127.0.0.1") or "127.0.0.1"
PORT = _env_int(8189, "ASSETDEX_PORT", min_value=1, max_value=65535)
TO_THREAD_TIMEOUT_S = _env_float(30.0, "ASSETDEX_TO_THREAD_TIMEOUT", min_value=1.0, max_value=300.0)
SCAN_TIMEOUT_S = _env_float(600.0, "ASSETDEX_SCAN_TIMEOUT", min_value=1.0, max_value=86_400.0)
MAX_JSON_SIZE = _env_int(1024 * 1024, "ASSETDEX_MAX_JSON_SIZE", min_value=1024, max_value=64 * 1024 * 1024)

# Include masked exception detail in API error messages
DEBUG = _env_bool(False, "ASSETDEX_DEBUG")
