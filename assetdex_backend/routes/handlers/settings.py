"""
Catalog settings endpoints (page size, preview names, discovery flags).
"""
from aiohttp import web

from assetdex_backend.shared import ErrorCode, Result
from assetdex_backend.utils import parse_bool, parse_int

from ..core import _json_response, _offload, _read_json, _require_services


def _apply_settings(catalog, data: dict) -> Result[dict]:
    rejected: list[str] = []
    if "page_size" in data:
        size = parse_int(data.get("page_size"), 0)
        if size < 1:
            return Result.Err(ErrorCode.INVALID_INPUT, "page_size must be a positive integer")
        catalog.set_page_size(size)
    if "preview_names" in data:
        names = data.get("preview_names")
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            return Result.Err(ErrorCode.INVALID_INPUT, "preview_names must be a list of strings")
        applied = catalog.set_preview_names(names)
        if not applied.ok:
            rejected = list(applied.meta.get("rejected") or [])
    if "use_first_image" in data:
        catalog.set_use_first_image(parse_bool(data.get("use_first_image"), catalog.use_first_image))
    if "use_folder_name" in data:
        catalog.set_use_folder_name(parse_bool(data.get("use_folder_name"), catalog.use_folder_name))
    if rejected:
        return Result.Err(ErrorCode.INVALID_INPUT, "Invalid preview pattern(s)", rejected=rejected, settings=catalog.settings())
    return Result.Ok(catalog.settings())


def register_settings_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/assetdex/config")
    async def get_settings(_request: web.Request) -> web.Response:
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        return _json_response(Result.Ok(svc["catalog"].settings()))

    @routes.post("/assetdex/config")
    async def update_settings(request: web.Request) -> web.Response:
        """
        Update discovery settings.

        Body keys (all optional): page_size, preview_names, use_first_image, use_folder_name.
        """
        body = await _read_json(request)
        if not body.ok:
            return _json_response(body)
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        result = await _offload(_apply_settings, svc["catalog"], body.data or {}, label="Update settings")
        return _json_response(result)
