"""
Catalog data types.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from ...config import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_USE_FIRST_IMAGE,
    DEFAULT_USE_FOLDER_NAME,
    METADATA_FILENAME,
)


class _Unset:
    """Marker for patch fields that were not supplied."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def encode_tags(tags: Any) -> str:
    """Serialize tags as a compact JSON array of strings."""
    values = [str(t) for t in (tags or []) if isinstance(t, str)]
    return json.dumps(values, ensure_ascii=False, separators=(",", ":"))


def decode_tags(raw: Any) -> list[str]:
    """
    Decode the stored tags column.

    NULL, malformed JSON, and non-array values all decode to `[]`; non-string
    items are dropped.
    """
    if raw is None or raw == "":
        return []
    try:
        parsed = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return [t for t in parsed if isinstance(t, str)]


def is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


@dataclass
class Asset:
    """One catalogued asset folder."""

    name: str
    path: str
    image_path: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Asset":
        image_path = row.get("image_path")
        return cls(
            id=int(row["id"]) if row.get("id") is not None else None,
            name=str(row.get("name") or ""),
            path=str(row.get("path") or ""),
            image_path=str(image_path) if image_path else None,
            tags=decode_tags(row.get("tags")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Client-facing form; a missing preview is reported as an empty string."""
        out: dict[str, Any] = {}
        if self.id is not None:
            out["id"] = self.id
        out["name"] = self.name
        out["path"] = self.path
        out["image_path"] = self.image_path or ""
        out["tags"] = list(self.tags)
        return out


@dataclass
class AssetPatch:
    """
    Partial update for an asset.

    Fields left as `UNSET` are not touched. `image_path=None` (or `""`) clears the
    stored preview.
    """

    name: Any = UNSET
    path: Any = UNSET
    image_path: Any = UNSET
    tags: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AssetPatch":
        """
        Build a patch from a JSON-like mapping.

        Unknown keys are ignored. `name` and `path` must be strings, `image_path`
        a string or null, and `tags` a list of strings; values of any other type
        are ignored.
        """
        patch = cls()
        if not isinstance(data, Mapping):
            return patch
        if isinstance(data.get("name"), str):
            patch.name = data["name"]
        if isinstance(data.get("path"), str):
            patch.path = data["path"]
        if "image_path" in data and (data["image_path"] is None or isinstance(data["image_path"], str)):
            patch.image_path = data["image_path"]
        if is_string_list(data.get("tags")):
            patch.tags = list(data["tags"])
        return patch

    def is_empty(self) -> bool:
        return all(v is UNSET for v in (self.name, self.path, self.image_path, self.tags))

    def assignments(self) -> list[tuple[str, Any]]:
        """(column, bound value) pairs for every supplied field, in column order."""
        out: list[tuple[str, Any]] = []
        if self.name is not UNSET:
            out.append(("name", self.name))
        if self.path is not UNSET:
            out.append(("path", self.path))
        if self.image_path is not UNSET:
            out.append(("image_path", self.image_path or None))
        if self.tags is not UNSET:
            out.append(("tags", encode_tags(self.tags)))
        return out


@dataclass(frozen=True)
class LiteralPattern:
    """Preview name compared case-insensitively against a file's stem."""

    text: str

    def matches(self, filename: str, stem: str) -> bool:
        return stem.lower() == self.text.lower()


@dataclass(frozen=True)
class RegexPattern:
    """Preview name given as a regular expression, searched in the full file name."""

    source: str
    compiled: re.Pattern = field(compare=False)

    def matches(self, filename: str, stem: str) -> bool:
        return self.compiled.search(filename) is not None


PreviewPattern = Union[LiteralPattern, RegexPattern]


@dataclass
class ScanConfig:
    """Discovery settings owned by one catalog handle."""

    preview_patterns: list[PreviewPattern] = field(default_factory=list)
    use_first_image: bool = DEFAULT_USE_FIRST_IMAGE
    use_folder_name: bool = DEFAULT_USE_FOLDER_NAME
    page_size: int = DEFAULT_PAGE_SIZE
    metadata_filename: str = METADATA_FILENAME

    @property
    def preview_names(self) -> list[str]:
        return [p.text if isinstance(p, LiteralPattern) else p.source for p in self.preview_patterns]


@dataclass
class Page:
    """One page of assets plus the paging arithmetic that produced it."""

    items: list[Asset]
    page_number: int
    page_size: int
    total_pages: int

    @classmethod
    def empty(cls, page_number: int, page_size: int, total_pages: int = 0) -> "Page":
        return cls(items=[], page_number=page_number, page_size=page_size, total_pages=total_pages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_number": self.page_number,
            "page_size": self.page_size,
            "num_of_pages": self.total_pages,
            "assets": [a.to_dict() for a in self.items],
        }


def total_pages(count: int, page_size: int) -> int:
    """Ceiling division; zero items means zero pages."""
    size = max(1, int(page_size))
    return (max(0, int(count)) + size - 1) // size
