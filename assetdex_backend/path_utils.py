"""
Shared path normalization helpers.
"""

from __future__ import annotations

import os
from pathlib import Path

from . import config

VIRTUAL_SCHEMES = ("user://", "res://")


def _scheme_root(scheme: str) -> str:
    if scheme == "user://":
        return config.USER_ROOT
    return config.RES_ROOT


def resolve_virtual_path(value: str) -> str:
    """
    Translate `user://` and `res://` paths to real filesystem paths.

    Any other value is returned unchanged.
    """
    raw = str(value or "")
    for scheme in VIRTUAL_SCHEMES:
        if raw.startswith(scheme):
            rest = raw[len(scheme):].lstrip("/\\")
            root = _scheme_root(scheme)
            return os.path.join(root, rest) if rest else root
    return raw


def normalize_dir(value: str) -> str | None:
    """
    Absolute form of a directory path without resolving symlinks.

    Returns None for empty values or values containing NUL bytes.
    """
    if not value:
        return None
    raw = resolve_virtual_path(str(value).strip())
    if not raw or "\x00" in raw:
        return None
    try:
        normalized = os.path.abspath(os.path.expanduser(raw))
    except (OSError, ValueError):
        return None
    if len(normalized) > 1:
        normalized = normalized.rstrip("/\\") or normalized
    return normalized


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so `value` matches literally with ESCAPE '\\'."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def descendant_filters(parent: str) -> list[tuple[str, str]]:
    """
    (prefix, LIKE pattern) pairs selecting strict descendants of `parent`.

    Each prefix ends with a path separator so `/a/b` never matches `/a/bc`.
    LIKE folds ASCII case, so callers must also compare the exact prefix.
    """
    base = str(parent or "").rstrip("/\\")
    separators = ["/"]
    if os.sep not in separators:
        separators.append(os.sep)
    return [(base + sep, escape_like(base + sep) + "%") for sep in separators]


def basename(path: str) -> str:
    """Final path component, ignoring trailing separators."""
    return Path(str(path).rstrip("/\\") or str(path)).name
