"""
Scan endpoint.
"""
from aiohttp import web

from assetdex_backend.config import SCAN_TIMEOUT_S
from assetdex_backend.shared import ErrorCode, Result, get_logger

from ..core import _json_response, _offload, _read_json, _require_services

logger = get_logger(__name__)


def register_scan_routes(routes: web.RouteTableDef) -> None:
    @routes.post("/assetdex/scan")
    async def scan_directory(request: web.Request) -> web.Response:
        """
        Scan a directory tree for asset folders.

        Body: {"path": "/abs/dir" | "user://..." | "res://..."}

        Incomplete metadata files found during the walk are rewritten on disk.
        """
        body = await _read_json(request)
        if not body.ok:
            return _json_response(body)
        path = (body.data or {}).get("path")
        if not isinstance(path, str) or not path.strip():
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Field 'path' is required"))

        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        logger.info("Scan requested")
        result = await _offload(svc["catalog"].find_assets, path, timeout=SCAN_TIMEOUT_S, label="Scan")
        return _json_response(result)
