"""
Catalog service - the operation surface handed to embedders and HTTP routes.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ...config import DEFAULT_PREVIEW_NAMES
from ...path_utils import normalize_dir, resolve_virtual_path
from ...shared import ErrorCode, Result, get_logger, timer
from .models import AssetPatch, ScanConfig, total_pages
from .preview import compile_preview_patterns
from .query import QueryEngine
from .scanner import CatalogScanner
from .store import CatalogStore

logger = get_logger(__name__)


class AssetCatalog:
    """
    One catalog handle: a store, its discovery settings, and the last error.

    Operations return `Result`; the code of the most recent failure is also kept
    in `last_error` for callers that only poll `get_error()`.
    """

    def __init__(self, db_path: str, *, config: Optional[ScanConfig] = None, **store_options: Any):
        self.db_path = resolve_virtual_path(str(db_path))
        self.config = config or ScanConfig()
        if config is None:
            patterns, _ = compile_preview_patterns(DEFAULT_PREVIEW_NAMES)
            self.config.preview_patterns = patterns
        self.last_error: str = ErrorCode.OK.value
        self.store = CatalogStore(self.db_path, **store_options)
        self.queries = QueryEngine(self.store)
        self.scanner = CatalogScanner(self.store)

        opened = self.store.initialize()
        if not opened.ok:
            self.last_error = ErrorCode.STORE_UNAVAILABLE.value

    @classmethod
    def open(cls, db_path: str, **kwargs: Any) -> Result["AssetCatalog"]:
        """Open a catalog, failing with STORE_UNAVAILABLE if the file cannot be used."""
        catalog = cls(db_path, **kwargs)
        if not catalog.store.available:
            return Result.Err(ErrorCode.STORE_UNAVAILABLE, f"Catalog store unavailable: {catalog.db_path}")
        return Result.Ok(catalog)

    def _track(self, result: Result[Any], failure_code: Optional[ErrorCode] = None) -> Result[Any]:
        if result.ok:
            if result.meta.get("degraded"):
                self.last_error = ErrorCode.READ_FAILED.value
            return result
        if result.code in (ErrorCode.STORE_UNAVAILABLE.value, ErrorCode.INVALID_INPUT.value):
            self.last_error = result.code
        else:
            self.last_error = (failure_code.value if failure_code else result.code)
        return result

    # --- configuration ----------------------------------------------------

    @property
    def page_size(self) -> int:
        return self.config.page_size

    def set_page_size(self, size: int) -> None:
        self.config.page_size = max(1, int(size))

    @property
    def preview_names(self) -> list[str]:
        return self.config.preview_names

    def set_preview_names(self, names: Iterable[str]) -> Result[list[str]]:
        """
        Replace the preview-name patterns.

        Invalid regular expressions are dropped; the valid names are still applied
        and the result reports INVALID_INPUT with the rejected ones.
        """
        patterns, rejected = compile_preview_patterns(list(names or []))
        self.config.preview_patterns = patterns
        if rejected:
            return self._track(
                Result.Err(ErrorCode.INVALID_INPUT, "Invalid preview pattern(s)", rejected=rejected)
            )
        return Result.Ok(self.config.preview_names)

    @property
    def use_first_image(self) -> bool:
        return self.config.use_first_image

    def set_use_first_image(self, enabled: bool) -> None:
        self.config.use_first_image = bool(enabled)

    @property
    def use_folder_name(self) -> bool:
        return self.config.use_folder_name

    def set_use_folder_name(self, enabled: bool) -> None:
        self.config.use_folder_name = bool(enabled)

    def settings(self) -> dict[str, Any]:
        return {
            "page_size": self.config.page_size,
            "preview_names": self.config.preview_names,
            "use_first_image": self.config.use_first_image,
            "use_folder_name": self.config.use_folder_name,
            "metadata_filename": self.config.metadata_filename,
        }

    # --- discovery --------------------------------------------------------

    def find_assets(self, path: str) -> Result[dict[str, Any]]:
        """
        Scan `path` for asset folders.

        This writes to disk: incomplete metadata files under `path` are rewritten.
        """
        self.last_error = ErrorCode.OK.value
        root = normalize_dir(path)
        if root is None:
            return self._track(Result.Err(ErrorCode.INVALID_INPUT, "A directory path is required"))
        with timer(f"scan {root}", logger):
            result = self.scanner.scan(root, self.config)
        return self._track(result, ErrorCode.READ_FAILED)

    # --- assets -----------------------------------------------------------

    def add_asset(
        self,
        name: str,
        path: str,
        image_path: Optional[str] = "",
        tags: Sequence[str] = (),
    ) -> Result[int]:
        self.last_error = ErrorCode.OK.value
        if not isinstance(name, str) or not name or not isinstance(path, str) or not path:
            return self._track(Result.Err(ErrorCode.INVALID_INPUT, "Asset name and path are required"))
        result = self.store.insert(name, resolve_virtual_path(path), image_path or None, list(tags or []))
        return self._track(result, ErrorCode.WRITE_FAILED)

    def get_asset(self, asset_id: int) -> Result[dict[str, Any]]:
        self.last_error = ErrorCode.OK.value
        result = self.store.get(asset_id)
        return self._track(result).map(lambda asset: asset.to_dict())

    def get_assets(self, page: int = 1) -> Result[dict[str, Any]]:
        self.last_error = ErrorCode.OK.value
        result = self.queries.paginate(page, self.config.page_size)
        return self._track(result).map(lambda p: p.to_dict())

    def search(self, query: str, page: int = 1) -> Result[dict[str, Any]]:
        self.last_error = ErrorCode.OK.value
        result = self.queries.search(query, page, self.config.page_size)
        return self._track(result).map(lambda p: p.to_dict())

    def update_asset(self, asset_id: int, changes: Union[AssetPatch, Mapping[str, Any]]) -> Result[int]:
        """Apply a partial update; an id that matches no asset still succeeds."""
        self.last_error = ErrorCode.OK.value
        patch = changes if isinstance(changes, AssetPatch) else AssetPatch.from_mapping(changes)
        if patch.is_empty():
            return self._track(Result.Err(ErrorCode.INVALID_INPUT, "No recognized fields to update"))
        if isinstance(patch.path, str):
            patch.path = resolve_virtual_path(patch.path)
        return self._track(self.store.update(asset_id, patch), ErrorCode.WRITE_FAILED)

    def delete_asset(self, asset_id: int, remember_deleted: bool = False) -> Result[int]:
        """
        Delete an asset. With `remember_deleted`, its folder is tombstoned so later
        scans skip it.
        """
        self.last_error = ErrorCode.OK.value
        path: Optional[str] = None
        if remember_deleted:
            found = self.store.get(asset_id)
            if found.ok and found.data is not None:
                path = found.data.path

        result = self.store.delete(asset_id)
        if not result.ok:
            return self._track(result, ErrorCode.WRITE_FAILED)

        if path:
            marked = self.store.tombstone(path)
            if not marked.ok:
                logger.warning("Asset %s deleted but its path was not remembered: %s", asset_id, marked.error)
        return result

    # --- aggregates -------------------------------------------------------

    def get_asset_count(self) -> int:
        return self.store.count()

    def get_pages(self) -> int:
        return total_pages(self.store.count(), self.config.page_size)

    def get_error(self) -> str:
        return self.last_error

    def stats(self) -> dict[str, Any]:
        count = self.store.count()
        return {
            "count": count,
            "pages": total_pages(count, self.config.page_size),
            "page_size": self.config.page_size,
            "last_error": self.last_error,
            "available": self.store.available,
        }

    def reset(self) -> Result[bool]:
        """Remove all assets and forget all deleted paths."""
        self.last_error = ErrorCode.OK.value
        return self._track(self.store.reset(), ErrorCode.WRITE_FAILED)

    def close(self) -> None:
        self.store.close()
