"""
Directory scanner - discovers asset folders and records them in the catalog.

Walk rules, per directory in depth-first pre-order:

1. Tombstoned: skip it and everything below.
2. Already catalogued: skip it and everything below.
3. Metadata file present: drop catalogued assets nested below it, then read the
   file. A complete file is inserted as-is and the subtree is skipped.
4. Otherwise look for a preview image. When a metadata file was present it is
   rewritten with the discovered values (this is a filesystem write).
5. Image found: insert the folder as an asset and skip the subtree. No image but
   a metadata file: skip the subtree. Otherwise descend.

Symlinked directories are never followed.
"""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Optional

from ...path_utils import basename
from ...shared import ErrorCode, Result, elapsed_ms, get_logger, log_structured, log_success, now
from .metadata_file import is_complete, read_metadata_file, write_metadata_file
from .models import Asset, ScanConfig
from .preview import list_files, resolve_preview
from .store import CatalogStore

logger = get_logger(__name__)


@dataclass
class ScanStats:
    root: str
    directories: int = 0
    added: int = 0
    pruned_indexed: int = 0
    pruned_tombstoned: int = 0
    metadata_rewritten: int = 0
    nested_removed: int = 0
    errors: int = 0
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _child_directories(directory: str) -> list[str]:
    """Real (non-symlink) subdirectories, in listing order."""
    children: list[str] = []
    with os.scandir(directory) as it:
        for entry in it:
            try:
                if entry.is_dir(follow_symlinks=False):
                    children.append(entry.path)
            except OSError:
                continue
    return children


class CatalogScanner:
    """Walks a directory tree and fills a `CatalogStore`."""

    def __init__(self, store: CatalogStore):
        self._store = store

    def scan(self, root: str, config: ScanConfig) -> Result[dict[str, Any]]:
        """
        Discover assets under `root`.

        Side effects: inserts catalog rows, deletes rows nested below metadata
        folders, and rewrites incomplete metadata files on disk. Nothing is rolled
        back if the walk stops early.

        Returns:
            Result with scan statistics, or DIR_NOT_FOUND / NOT_A_DIRECTORY /
            SCAN_FAILED when the root itself cannot be walked.
        """
        if not self._store.available:
            return Result.Err(ErrorCode.STORE_UNAVAILABLE, "Catalog store is not open")

        root_path = os.path.abspath(str(root))
        if not os.path.exists(root_path):
            return Result.Err(ErrorCode.DIR_NOT_FOUND, f"Directory not found: {root_path}")
        if not os.path.isdir(root_path):
            return Result.Err(ErrorCode.NOT_A_DIRECTORY, f"Not a directory: {root_path}")

        stats = ScanStats(root=root_path)
        start = now()
        logger.info("Scanning %s", root_path)

        stack = [root_path]
        while stack:
            directory = stack.pop()
            try:
                children = self._visit(directory, config, stats)
            except OSError as exc:
                if directory == root_path:
                    logger.error("Cannot read scan root %s: %s", root_path, exc)
                    return Result.Err(ErrorCode.SCAN_FAILED, f"Cannot read directory: {exc}")
                stats.errors += 1
                logger.debug("Skipping unreadable directory %s: %s", directory, exc)
                continue
            # Reversed so the first listed child is visited first.
            stack.extend(reversed(children))

        stats.duration_ms = elapsed_ms(start)
        log_success(logger, f"Scan complete: {stats.added} asset(s) added under {root_path}")
        log_structured(logger, logging.DEBUG, "scan_summary", **stats.to_dict())
        return Result.Ok(stats.to_dict())

    def _visit(self, directory: str, config: ScanConfig, stats: ScanStats) -> list[str]:
        """Process one directory; returns the children to descend into."""
        stats.directories += 1
        store = self._store

        if store.is_tombstoned(directory):
            stats.pruned_tombstoned += 1
            return []
        if store.path_exists(directory):
            stats.pruned_indexed += 1
            return []

        metadata_path = os.path.join(directory, config.metadata_filename)
        has_metadata = os.path.isfile(metadata_path)
        if has_metadata:
            stats.nested_removed += store.delete_under(directory)
            described = read_metadata_file(metadata_path)
            if is_complete(described):
                self._insert(described, stats)
                return []

        files = list_files(directory)
        folder_name = basename(directory) or directory
        image_path = resolve_preview(directory, files, config, force_first_image=has_metadata)

        if has_metadata:
            discovered = Asset(name=folder_name, path=directory, image_path=image_path, tags=[])
            if write_metadata_file(metadata_path, discovered).ok:
                stats.metadata_rewritten += 1
            else:
                stats.errors += 1

        if image_path:
            self._insert(Asset(name=folder_name, path=directory, image_path=image_path, tags=[]), stats)
            return []
        if has_metadata:
            return []
        return _child_directories(directory)

    def _insert(self, asset: Optional[Asset], stats: ScanStats) -> None:
        if asset is None:
            return
        res = self._store.insert(asset.name, asset.path, asset.image_path, asset.tags)
        if res.ok:
            stats.added += 1
            logger.debug("Catalogued %s", asset.path)
        else:
            stats.errors += 1
            logger.debug("Skipped %s: %s", asset.path, res.error)
