"""
Asset CRUD endpoints.
"""
from aiohttp import web

from assetdex_backend.features.catalog import AssetPatch
from assetdex_backend.shared import ErrorCode, Result, get_logger
from assetdex_backend.utils import parse_bool, parse_int

from ..core import _json_response, _offload, _read_json, _require_services

logger = get_logger(__name__)


def _asset_id_from(request: web.Request) -> Result[int]:
    raw = request.match_info.get("asset_id", "")
    asset_id = parse_int(raw, -1)
    if asset_id < 0:
        return Result.Err(ErrorCode.INVALID_INPUT, f"Invalid asset id: {raw!r}")
    return Result.Ok(asset_id)


def register_asset_routes(routes: web.RouteTableDef) -> None:
    """Register list/get/add/update/delete routes for catalogued assets."""

    @routes.get("/assetdex/assets")
    async def list_assets(request: web.Request) -> web.Response:
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        page = parse_int(request.query.get("page", "1"), 1)
        result = await _offload(svc["catalog"].get_assets, page, label="List assets")
        return _json_response(result)

    @routes.get("/assetdex/assets/{asset_id}")
    async def get_asset(request: web.Request) -> web.Response:
        asset_id = _asset_id_from(request)
        if not asset_id.ok:
            return _json_response(asset_id)
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(svc["catalog"].get_asset, asset_id.data, label="Get asset")
        return _json_response(result)

    @routes.post("/assetdex/assets")
    async def add_asset(request: web.Request) -> web.Response:
        """
        Add an asset manually.

        Body: {"name": str, "path": str, "image_path"?: str, "tags"?: [str]}
        """
        body = await _read_json(request)
        if not body.ok:
            return _json_response(body)
        data = body.data or {}
        name = data.get("name")
        path = data.get("path")
        image_path = data.get("image_path") or ""
        tags = data.get("tags") or []
        if not isinstance(name, str) or not isinstance(path, str) or not name or not path:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Fields 'name' and 'path' are required"))
        if not isinstance(image_path, str):
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Field 'image_path' must be a string"))
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Field 'tags' must be a list of strings"))

        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(svc["catalog"].add_asset, name, path, image_path, tags, label="Add asset")
        return _json_response(result.map(lambda new_id: {"id": new_id}))

    @routes.patch("/assetdex/assets/{asset_id}")
    async def update_asset(request: web.Request) -> web.Response:
        """Partially update an asset; only supplied fields change."""
        asset_id = _asset_id_from(request)
        if not asset_id.ok:
            return _json_response(asset_id)
        body = await _read_json(request)
        if not body.ok:
            return _json_response(body)
        patch = AssetPatch.from_mapping(body.data or {})
        if patch.is_empty():
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "No recognized fields to update"))

        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(svc["catalog"].update_asset, asset_id.data, patch, label="Update asset")
        if result.ok:
            result = Result.Ok({"id": asset_id.data, "updated": int(result.data or 0)})
        return _json_response(result)

    @routes.delete("/assetdex/assets/{asset_id}")
    async def delete_asset(request: web.Request) -> web.Response:
        """Delete an asset; `?remember=1` keeps later scans from re-adding its folder."""
        asset_id = _asset_id_from(request)
        if not asset_id.ok:
            return _json_response(asset_id)
        remember = parse_bool(request.query.get("remember", ""), False)

        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(svc["catalog"].delete_asset, asset_id.data, remember, label="Delete asset")
        if result.ok:
            result = Result.Ok({"id": asset_id.data, "deleted": int(result.data or 0), "remembered": remember})
        return _json_response(result)

    @routes.get("/assetdex/stats")
    async def catalog_stats(_request: web.Request) -> web.Response:
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(svc["catalog"].stats, label="Catalog stats")
        return _json_response(result)

    @routes.post("/assetdex/reset")
    async def reset_catalog(_request: web.Request) -> web.Response:
        """Remove every asset and forget deleted folders."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(svc["catalog"].reset, label="Reset catalog")
        return _json_response(result)
