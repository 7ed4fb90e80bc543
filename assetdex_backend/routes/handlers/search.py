"""
Search endpoint.
"""
from aiohttp import web

from assetdex_backend.utils import parse_int

from ..core import _json_response, _offload, _require_services


def register_search_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/assetdex/search")
    async def search_assets(request: web.Request) -> web.Response:
        """
        Search assets.

        Query params:
            q: whitespace-separated terms; `tag:<text>` restricts to tags
            page: 1-based page number (default 1)
        """
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        query = request.query.get("q", "")
        page = parse_int(request.query.get("page", "1"), 1)
        result = await _offload(svc["catalog"].search, query, page, label="Search")
        return _json_response(result)
