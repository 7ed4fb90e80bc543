"""
Response utilities for route handlers.
"""

import math
import re

from aiohttp import web

from assetdex_backend import config
from assetdex_backend.shared import Result

_DETAIL_MAX_CHARS = 200
_WINDOWS_PATH_RE = re.compile(r"[A-Za-z]:\\[^\s'\"]+")
_POSIX_PATH_RE = re.compile(r"(?<![\w:/.])/[^\s'\"]+")


def mask_catalog_paths(text: str) -> str:
    """
    Rewrite filesystem paths in `text` for clients.

    Paths under the `user://` and `res://` roots keep their virtual form, so a
    failed scan of `res://props` still says which folder it was. Any other
    absolute path (catalog file, temp files) becomes `[path]`.
    """
    roots = [(config.USER_ROOT, "user://"), (config.RES_ROOT, "res://")]
    # Longest root first when one root lies inside the other.
    for root, scheme in sorted(roots, key=lambda item: len(item[0] or ""), reverse=True):
        base = str(root or "").rstrip("/\\")
        if len(base) > 1:
            text = re.sub(re.escape(base) + r"(?:[/\\]|(?=[\s'\"]|$))", scheme, text)
    text = _WINDOWS_PATH_RE.sub("[path]", text)
    return _POSIX_PATH_RE.sub("[path]", text)


def safe_error_message(exc: Exception, generic_message: str) -> str:
    """
    Return a safe message for clients.

    Only `generic_message` by default. With `ASSETDEX_DEBUG` set, the exception
    text is appended after `mask_catalog_paths`.
    """
    if not config.DEBUG or exc is None:
        return generic_message
    detail = mask_catalog_paths(" ".join(str(exc).split()))
    if not detail:
        return generic_message
    return f"{generic_message}: {detail[:_DETAIL_MAX_CHARS]}"


def _json_response(result: Result, status: int | None = None):
    """
    Convert Result to JSON response.

    Args:
        result: Result object
        status: HTTP status code (optional, auto-determined if None)

    Returns:
        aiohttp web.Response
    """
    # Business / validation errors return HTTP 200 with {ok:false,...}.
    # Use explicit status only for genuine server bugs/unhandled exceptions.
    if status is None:
        status = 200

    payload = _sanitize_json_payload(
        {
            "ok": result.ok,
            "data": result.data,
            "error": result.error,
            "code": result.code,
            "meta": result.meta,
        }
    )
    return web.json_response(payload, status=status)


def _sanitize_json_payload(value):
    """
    Normalize payload values so they are always valid strict JSON.
    - Converts NaN/Infinity floats to None.
    - Recurses through dict/list/tuple containers.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _sanitize_json_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_payload(v) for v in value]
    return value
