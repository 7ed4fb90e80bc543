import json

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from assetdex_backend.routes.handlers import assets as assets_mod
from assetdex_backend.routes.handlers import scan as scan_mod
from assetdex_backend.routes.handlers import search as search_mod
from assetdex_backend.routes.handlers import settings as settings_mod
from assetdex_backend.shared import Result

PNG = b"\x89PNG\r\n\x1a\n"


def _build_app(module, register_name: str) -> web.Application:
    app = web.Application()
    routes = web.RouteTableDef()
    getattr(module, register_name)(routes)
    app.add_routes(routes)
    return app


async def _call(app: web.Application, method: str, path: str, match_info=None) -> dict:
    req = make_mocked_request(method, path, app=app, match_info=match_info or {})
    match = await app.router.resolve(req)
    resp = await match.handler(req)
    assert resp.status == 200
    return json.loads(resp.text)


def _serve(monkeypatch, module, catalog, body=None) -> None:
    async def _require_services():
        return {"catalog": catalog}, None

    async def _read_json(_request):
        return Result.Ok(body or {})

    monkeypatch.setattr(module, "_require_services", _require_services)
    if hasattr(module, "_read_json"):
        monkeypatch.setattr(module, "_read_json", _read_json)


@pytest.fixture
def assets_app():
    return _build_app(assets_mod, "register_asset_routes")


@pytest.mark.asyncio
async def test_services_unavailable(monkeypatch, assets_app) -> None:
    async def _require_services():
        return None, Result.Err("SERVICE_UNAVAILABLE", "down")

    monkeypatch.setattr(assets_mod, "_require_services", _require_services)
    body = await _call(assets_app, "GET", "/assetdex/assets")
    assert body["ok"] is False
    assert body["code"] == "SERVICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_add_then_list_and_get(monkeypatch, assets_app, catalog) -> None:
    _serve(monkeypatch, assets_mod, catalog, {"name": "Rock", "path": "/lib/Rock", "tags": ["stone"]})

    added = await _call(assets_app, "POST", "/assetdex/assets")
    assert added["ok"] is True
    asset_id = added["data"]["id"]

    listed = await _call(assets_app, "GET", "/assetdex/assets?page=1")
    assert listed["data"]["num_of_pages"] == 1
    assert [a["name"] for a in listed["data"]["assets"]] == ["Rock"]

    got = await _call(assets_app, "GET", f"/assetdex/assets/{asset_id}", {"asset_id": str(asset_id)})
    assert got["data"]["tags"] == ["stone"]
    assert got["data"]["image_path"] == ""


@pytest.mark.asyncio
async def test_add_validates_body(monkeypatch, assets_app, catalog) -> None:
    _serve(monkeypatch, assets_mod, catalog, {"name": "Rock", "path": "/lib/Rock", "tags": "stone"})
    body = await _call(assets_app, "POST", "/assetdex/assets")
    assert body["code"] == "INVALID_INPUT"

    _serve(monkeypatch, assets_mod, catalog, {"name": "Rock"})
    body = await _call(assets_app, "POST", "/assetdex/assets")
    assert body["code"] == "INVALID_INPUT"
    assert catalog.get_asset_count() == 0


@pytest.mark.asyncio
async def test_get_rejects_bad_id(monkeypatch, assets_app, catalog) -> None:
    _serve(monkeypatch, assets_mod, catalog)
    body = await _call(assets_app, "GET", "/assetdex/assets/abc", {"asset_id": "abc"})
    assert body["code"] == "INVALID_INPUT"

    body = await _call(assets_app, "GET", "/assetdex/assets/77", {"asset_id": "77"})
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_patch_and_delete(monkeypatch, assets_app, catalog) -> None:
    asset_id = catalog.add_asset("Rock", "/lib/Rock").data
    match_info = {"asset_id": str(asset_id)}

    _serve(monkeypatch, assets_mod, catalog, {"name": "Boulder", "unknown": 1})
    patched = await _call(assets_app, "PATCH", f"/assetdex/assets/{asset_id}", match_info)
    assert patched["data"] == {"id": asset_id, "updated": 1}
    assert catalog.get_asset(asset_id).data["name"] == "Boulder"

    _serve(monkeypatch, assets_mod, catalog, {"unknown": 1})
    rejected = await _call(assets_app, "PATCH", f"/assetdex/assets/{asset_id}", match_info)
    assert rejected["code"] == "INVALID_INPUT"

    deleted = await _call(assets_app, "DELETE", f"/assetdex/assets/{asset_id}?remember=1", match_info)
    assert deleted["data"] == {"id": asset_id, "deleted": 1, "remembered": True}
    assert catalog.store.tombstones() == ["/lib/Rock"]


@pytest.mark.asyncio
async def test_stats_and_reset(monkeypatch, assets_app, catalog) -> None:
    catalog.add_asset("Rock", "/lib/Rock")
    _serve(monkeypatch, assets_mod, catalog)

    stats = await _call(assets_app, "GET", "/assetdex/stats")
    assert stats["data"]["count"] == 1
    assert stats["data"]["last_error"] == "OK"

    reset = await _call(assets_app, "POST", "/assetdex/reset")
    assert reset["ok"] is True
    assert catalog.get_asset_count() == 0


@pytest.mark.asyncio
async def test_search_route(monkeypatch, catalog) -> None:
    catalog.add_asset("Wizard", "/lib/wizard", tags=["magic"])
    catalog.add_asset("Robot", "/lib/robot", tags=["scifi"])
    app = _build_app(search_mod, "register_search_routes")
    _serve(monkeypatch, search_mod, catalog)

    body = await _call(app, "GET", "/assetdex/search?q=tag%3Amagic")
    assert [a["name"] for a in body["data"]["assets"]] == ["Wizard"]

    body = await _call(app, "GET", "/assetdex/search?q=")
    assert body["data"]["assets"] == []
    assert body["data"]["num_of_pages"] == 0


@pytest.mark.asyncio
async def test_scan_route(monkeypatch, catalog, make_tree) -> None:
    root = make_tree({"Rock/Preview.png": PNG})
    app = _build_app(scan_mod, "register_scan_routes")

    _serve(monkeypatch, scan_mod, catalog, {"path": str(root)})
    body = await _call(app, "POST", "/assetdex/scan")
    assert body["ok"] is True
    assert body["data"]["added"] == 1

    _serve(monkeypatch, scan_mod, catalog, {"path": str(root / "missing")})
    body = await _call(app, "POST", "/assetdex/scan")
    assert body["code"] == "DIR_NOT_FOUND"

    _serve(monkeypatch, scan_mod, catalog, {})
    body = await _call(app, "POST", "/assetdex/scan")
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_settings_routes(monkeypatch, catalog) -> None:
    app = _build_app(settings_mod, "register_settings_routes")
    _serve(monkeypatch, settings_mod, catalog, {"page_size": 10, "use_first_image": "true"})

    body = await _call(app, "POST", "/assetdex/config")
    assert body["data"]["page_size"] == 10
    assert body["data"]["use_first_image"] is True

    _serve(monkeypatch, settings_mod, catalog, {"preview_names": ["Cover", "^(["]})
    body = await _call(app, "POST", "/assetdex/config")
    assert body["code"] == "INVALID_INPUT"
    assert body["meta"]["rejected"] == ["^(["]
    assert catalog.preview_names == ["Cover"]

    _serve(monkeypatch, settings_mod, catalog, {"page_size": 0})
    body = await _call(app, "POST", "/assetdex/config")
    assert body["code"] == "INVALID_INPUT"

    body = await _call(app, "GET", "/assetdex/config")
    assert body["data"]["page_size"] == 10
    assert body["data"]["preview_names"] == ["Cover"]
