"""
Preview image discovery.

A directory's preview image is chosen by three passes in strict priority order:

1. Preview names: each configured pattern in order, against the directory's files
   in listing order. A pattern starting with `^` is a regular expression searched
   in the full file name; anything else is compared case-insensitively to the
   file's stem.
2. Folder name: `<folder>.<ext>` for each supported extension, in fixed order.
3. First image: the first file with a supported extension, when enabled.

Only regular files with a supported image extension are ever chosen.
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ...path_utils import basename
from ...shared import IMAGE_EXTENSIONS, get_logger, is_image_filename
from .models import LiteralPattern, PreviewPattern, RegexPattern, ScanConfig

logger = get_logger(__name__)

# Global inline flags must lead the expression on current Python; `^(?i)name`
# is accepted by other regex engines, so hoist the flag group in front.
_LEADING_FLAGS_RE = re.compile(r"^\^(\(\?[aiLmsux]+\))")


def _hoist_inline_flags(source: str) -> str:
    match = _LEADING_FLAGS_RE.match(source)
    if not match:
        return source
    return match.group(1) + "^" + source[match.end():]


def compile_preview_patterns(names: Iterable[str]) -> tuple[list[PreviewPattern], list[str]]:
    """
    Decide once, per name, whether it is a literal or a regular expression.

    Returns:
        (patterns, rejected) where `rejected` lists regex names that failed to compile.
    """
    patterns: list[PreviewPattern] = []
    rejected: list[str] = []
    for raw in names or []:
        if not isinstance(raw, str) or raw == "":
            continue
        if raw.startswith("^"):
            try:
                compiled = re.compile(_hoist_inline_flags(raw))
            except re.error as exc:
                logger.warning("Ignoring invalid preview pattern %r: %s", raw, exc)
                rejected.append(raw)
                continue
            patterns.append(RegexPattern(source=raw, compiled=compiled))
        else:
            patterns.append(LiteralPattern(text=raw))
    return patterns, rejected


def list_files(directory: str) -> list[str]:
    """
    Names of regular files directly inside `directory`, in listing order.

    Raises OSError when the directory cannot be listed.
    """
    names: list[str] = []
    with os.scandir(directory) as it:
        for entry in it:
            try:
                if entry.is_file():
                    names.append(entry.name)
            except OSError:
                continue
    return names


def _match_preview_names(files: Sequence[str], patterns: Sequence[PreviewPattern]) -> Optional[str]:
    for pattern in patterns:
        for name in files:
            if not is_image_filename(name):
                continue
            if pattern.matches(name, Path(name).stem):
                return name
    return None


def _match_folder_name(files: Sequence[str], folder: str) -> Optional[str]:
    by_lower = {}
    for name in files:
        by_lower.setdefault(name.lower(), name)
    for ext in IMAGE_EXTENSIONS:
        hit = by_lower.get(f"{folder}.{ext}".lower())
        if hit is not None:
            return hit
    return None


def _first_image(files: Sequence[str]) -> Optional[str]:
    for name in files:
        if is_image_filename(name):
            return name
    return None


def resolve_preview(
    directory: str,
    files: Sequence[str],
    config: ScanConfig,
    *,
    force_first_image: bool = False,
) -> Optional[str]:
    """
    Pick the preview image for `directory` from its file names.

    Args:
        directory: Directory path (absolute)
        files: Regular-file names in listing order (see `list_files`)
        config: Discovery settings
        force_first_image: Enable the first-image pass regardless of settings

    Returns:
        Absolute path of the chosen image, or None
    """
    chosen = _match_preview_names(files, config.preview_patterns)

    if chosen is None and config.use_folder_name:
        folder = basename(directory)
        if folder:
            chosen = _match_folder_name(files, folder)

    if chosen is None and (config.use_first_image or force_first_image):
        chosen = _first_image(files)

    if chosen is None:
        return None
    return os.path.join(directory, chosen)
