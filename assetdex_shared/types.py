"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final

# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    OK = "OK"

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"

    # Catalog store
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    WRITE_FAILED = "WRITE_FAILED"
    READ_FAILED = "READ_FAILED"

    # Feature / service availability
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Server / infrastructure
    DB_ERROR = "DB_ERROR"
    TIMEOUT = "TIMEOUT"

    # Filesystem walk
    DIR_NOT_FOUND = "DIR_NOT_FOUND"
    NOT_A_DIRECTORY = "NOT_A_DIRECTORY"
    SCAN_FAILED = "SCAN_FAILED"

# Preview image extensions, in the order the folder-name pass tries them.
IMAGE_EXTENSIONS: Final[tuple[str, ...]] = ("png", "jpeg", "jpg", "bmp", "tga", "webp", "svg")
_IMAGE_EXTENSION_SET: Final[frozenset[str]] = frozenset(IMAGE_EXTENSIONS)

def is_image_filename(filename: str) -> bool:
    """
    Check whether a file name carries a supported preview image extension.

    Args:
        filename: File name or path

    Returns:
        True when the extension (case-insensitive) is a supported image type
    """
    ext = os.path.splitext(filename)[1].lower().lstrip(".")
    return ext in _IMAGE_EXTENSION_SET
