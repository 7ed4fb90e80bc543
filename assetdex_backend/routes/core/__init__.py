"""
Core utilities for route handlers.
"""
from .offload import _offload
from .request_json import _read_json
from .response import _json_response, safe_error_message
from .services import (
    _build_services,
    _require_services,
    configure_services,
    dispose_services,
    get_services_error,
)

__all__ = [
    "_json_response",
    "safe_error_message",
    "_read_json",
    "_offload",
    "_require_services",
    "_build_services",
    "configure_services",
    "dispose_services",
    "get_services_error",
]
