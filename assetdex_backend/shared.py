"""Backend-facing alias for shared utilities.

Backend modules import from here so the shared package location stays a single
import line per module.
"""

from __future__ import annotations

import assetdex_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
request_id_var = _root_shared.request_id_var
IMAGE_EXTENSIONS = _root_shared.IMAGE_EXTENSIONS
is_image_filename = _root_shared.is_image_filename
timer = _root_shared.timer
now = _root_shared.now
elapsed_ms = _root_shared.elapsed_ms

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "IMAGE_EXTENSIONS",
    "is_image_filename",
    "timer",
    "now",
    "elapsed_ms",
]
