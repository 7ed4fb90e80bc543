import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from assetdex_backend import server
from assetdex_backend.routes import registry
from assetdex_backend.routes.core import services


def _route_keys(app: web.Application) -> set[tuple[str, str]]:
    keys = set()
    for route in app.router.routes():
        info = route.resource.get_info() if route.resource else {}
        path = info.get("path") or info.get("formatter")
        keys.add((route.method, path))
    return keys


def test_register_all_routes_is_idempotent() -> None:
    app = web.Application()
    registry.register_all_routes(app)
    registry.register_all_routes(app)

    assert len(app.middlewares) == 2
    keys = _route_keys(app)
    for expected in [
        ("GET", "/assetdex/assets"),
        ("POST", "/assetdex/assets"),
        ("GET", "/assetdex/assets/{asset_id}"),
        ("PATCH", "/assetdex/assets/{asset_id}"),
        ("DELETE", "/assetdex/assets/{asset_id}"),
        ("GET", "/assetdex/search"),
        ("POST", "/assetdex/scan"),
        ("GET", "/assetdex/config"),
        ("POST", "/assetdex/config"),
        ("GET", "/assetdex/stats"),
        ("POST", "/assetdex/reset"),
    ]:
        assert expected in keys


@pytest.mark.asyncio
async def test_request_id_is_echoed() -> None:
    async def _handler(_request):
        return web.json_response({"ok": True})

    req = make_mocked_request("GET", "/assetdex/stats", headers={"X-Request-ID": "abc123"})
    resp = await registry.request_context_middleware(req, _handler)
    assert resp.headers["X-Request-ID"] == "abc123"

    req = make_mocked_request("GET", "/assetdex/stats")
    resp = await registry.request_context_middleware(req, _handler)
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_security_headers_only_on_api_paths() -> None:
    async def _handler(_request):
        return web.Response(text="ok")

    api = await registry.security_headers_middleware(make_mocked_request("GET", "/assetdex/stats"), _handler)
    assert api.headers["X-Content-Type-Options"] == "nosniff"
    assert api.headers["Cache-Control"] == "no-store"

    other = await registry.security_headers_middleware(make_mocked_request("GET", "/index.html"), _handler)
    assert "X-Content-Type-Options" not in other.headers


def test_create_app_configures_catalog_path(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(services, "_services_db_path", None)
    db_path = str(tmp_path / "served.db")

    app = server.create_app(db_path)

    assert services._services_db_path == db_path
    assert server._on_startup in app.on_startup
    assert server._on_cleanup in app.on_cleanup
    assert ("GET", "/assetdex/search") in _route_keys(app)


def test_parse_args(tmp_path) -> None:
    args = server._parse_args(["--db", str(tmp_path / "x.db"), "--port", "9001", "--host", "0.0.0.0"])
    assert args.db == str(tmp_path / "x.db")
    assert args.port == 9001
    assert args.host == "0.0.0.0"
