"""Shared utilities for AssetDex."""
from .log import get_logger, log_structured, log_success, request_id_var
from .result import Result
from .time import elapsed_ms, now, timer
from .types import IMAGE_EXTENSIONS, ErrorCode, is_image_filename

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "now",
    "elapsed_ms",
    "timer",
    "ErrorCode",
    "IMAGE_EXTENSIONS",
    "is_image_filename",
]
