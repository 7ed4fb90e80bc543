"""
Standalone HTTP server for a catalog.

Usage:
    python -m assetdex_backend.server --db ./assetdex.sqlite --port 8189
"""
from __future__ import annotations

import argparse
from typing import Optional, Sequence

from aiohttp import web

from .config import DB_PATH, HOST, PORT
from .routes import register_all_routes
from .routes.core import _build_services, configure_services, dispose_services
from .shared import get_logger

logger = get_logger(__name__)


async def _on_startup(_app: web.Application) -> None:
    # Open the catalog before the first request.
    await _build_services()


async def _on_cleanup(_app: web.Application) -> None:
    await dispose_services()


def create_app(db_path: Optional[str] = None) -> web.Application:
    """Build the aiohttp application serving the catalog at `db_path`."""
    configure_services(db_path or DB_PATH)
    app = web.Application()
    register_all_routes(app)
    app.on_startup.append(_on_startup)
    app.on_cleanup.append(_on_cleanup)
    return app


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="assetdex", description="Serve an asset catalog over HTTP.")
    parser.add_argument("--db", default=DB_PATH, help="catalog database file (default: %(default)s)")
    parser.add_argument("--host", default=HOST, help="bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=PORT, help="bind port (default: %(default)s)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    logger.info("Starting AssetDex on %s:%s (catalog: %s)", args.host, args.port, args.db)
    web.run_app(create_app(args.db), host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    main()
