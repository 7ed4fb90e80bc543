"""
Catalog feature - asset discovery, storage, and search.
"""
from .models import Asset, AssetPatch, Page, ScanConfig, UNSET
from .query import QueryEngine
from .scanner import CatalogScanner
from .service import AssetCatalog
from .store import CatalogStore

__all__ = [
    "Asset",
    "AssetPatch",
    "AssetCatalog",
    "CatalogScanner",
    "CatalogStore",
    "Page",
    "QueryEngine",
    "ScanConfig",
    "UNSET",
]
