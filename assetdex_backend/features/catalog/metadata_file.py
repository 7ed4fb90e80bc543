"""
Per-folder metadata file (`Asset.json`) reading and writing.

File shape:
    {
      "path": "/abs/folder",
      "name": "Display name",
      "image_path": "/abs/folder/preview.png",
      "tags": ["tag", ...]
    }

`path` and `name` are required strings; `image_path` and `tags` are optional.
"""
from __future__ import annotations

import json
import os
from typing import Any, Optional

from ...shared import ErrorCode, Result, get_logger
from .models import Asset, is_string_list

logger = get_logger(__name__)


def parse_metadata(payload: Any) -> Optional[Asset]:
    """Validate a decoded metadata document; None when its shape is wrong."""
    if not isinstance(payload, dict):
        return None
    name = payload.get("name")
    path = payload.get("path")
    if not isinstance(name, str) or not isinstance(path, str):
        return None
    image_path = payload.get("image_path")
    if image_path is not None and not isinstance(image_path, str):
        return None
    tags = payload.get("tags", [])
    if tags is None:
        tags = []
    if not is_string_list(tags):
        return None
    return Asset(name=name, path=path, image_path=image_path or None, tags=list(tags))


def is_complete(asset: Optional[Asset]) -> bool:
    """A metadata file describes an asset verbatim only when name and path are non-empty."""
    return bool(asset is not None and asset.name and asset.path)


def read_metadata_file(file_path: str) -> Optional[Asset]:
    """
    Read and validate a metadata file.

    Missing, unreadable, non-JSON and wrongly shaped files all yield None.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, ValueError) as exc:
        logger.debug("Unreadable metadata file %s: %s", file_path, exc)
        return None
    return parse_metadata(payload)


def write_metadata_file(file_path: str, asset: Asset) -> Result[bool]:
    """
    Write `asset` as a pretty-printed metadata file with a stable key order.

    A missing preview is written as an empty string.
    """
    document = {
        "path": asset.path,
        "name": asset.name,
        "image_path": asset.image_path or "",
        "tags": list(asset.tags),
    }
    content = json.dumps(document, ensure_ascii=False, indent=2) + "\n"
    tmp_path = f"{file_path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp_path, file_path)
    except OSError as exc:
        logger.warning("Failed to write metadata file %s: %s", file_path, exc)
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        return Result.Err(ErrorCode.WRITE_FAILED, f"Failed to write metadata file: {exc}")
    return Result.Ok(True)
