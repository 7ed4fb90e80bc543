"""
Route registration system.
Collects all catalog route handlers and installs them on an aiohttp app.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable

from aiohttp import web

from assetdex_backend.shared import get_logger, request_id_var

from .handlers import (
    register_asset_routes,
    register_scan_routes,
    register_search_routes,
    register_settings_routes,
)

API_PREFIX = "/assetdex/"
_APP_KEY_ROUTES_REGISTERED: web.AppKey[bool] = web.AppKey("_assetdex_routes_registered", bool)

logger = get_logger(__name__)


def _get_request_id(request: web.Request) -> str:
    rid = (request.headers.get("X-Request-ID") or "").strip()
    return rid[:64] or uuid.uuid4().hex[:12]


@web.middleware
async def request_context_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Tag log lines with a request id and echo it back in `X-Request-ID`."""
    rid = _get_request_id(request)
    token = request_id_var.set(rid)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers["X-Request-ID"] = rid
        raise
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = rid
    return response


@web.middleware
async def security_headers_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Apply strict security headers to API responses only."""
    response = await handler(request)
    if not (request.path or "").startswith(API_PREFIX):
        return response

    # API responses should never be treated as a document.
    response.headers.setdefault("Content-Security-Policy", "default-src 'none'")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Cache-Control", "no-store")
    return response


def build_route_table() -> web.RouteTableDef:
    routes = web.RouteTableDef()
    register_asset_routes(routes)
    register_search_routes(routes)
    register_scan_routes(routes)
    register_settings_routes(routes)
    return routes


def register_all_routes(app: web.Application) -> web.Application:
    """Install middlewares and catalog routes on `app` (once)."""
    if app.get(_APP_KEY_ROUTES_REGISTERED):
        logger.debug("Routes already registered")
        return app
    app.middlewares.append(request_context_middleware)
    app.middlewares.append(security_headers_middleware)
    routes = build_route_table()
    app.add_routes(routes)
    app[_APP_KEY_ROUTES_REGISTERED] = True
    logger.info("Registered %d catalog route(s)", len(list(routes)))
    return app
