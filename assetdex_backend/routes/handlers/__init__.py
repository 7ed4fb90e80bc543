"""
Route handlers.
"""
from .assets import register_asset_routes
from .scan import register_scan_routes
from .search import register_search_routes
from .settings import register_settings_routes

__all__ = [
    "register_asset_routes",
    "register_scan_routes",
    "register_search_routes",
    "register_settings_routes",
]
