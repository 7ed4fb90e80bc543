import json

from assetdex_backend import config
from assetdex_backend.routes.core import _json_response, safe_error_message
from assetdex_backend.routes.core.response import mask_catalog_paths
from assetdex_backend.shared import ErrorCode, Result


def _use_roots(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "USER_ROOT", str(tmp_path / "user"))
    monkeypatch.setattr(config, "RES_ROOT", str(tmp_path / "project"))


def test_generic_message_without_debug(monkeypatch) -> None:
    monkeypatch.setattr(config, "DEBUG", False)
    exc = OSError("unable to open /srv/private/catalog.db")
    assert safe_error_message(exc, "Scan failed") == "Scan failed"


def test_debug_detail_keeps_virtual_roots(monkeypatch, tmp_path) -> None:
    _use_roots(monkeypatch, tmp_path)
    monkeypatch.setattr(config, "DEBUG", True)
    exc = PermissionError(f"[Errno 13] Permission denied: '{tmp_path / 'project' / 'props' / 'Rock'}'")

    msg = safe_error_message(exc, "Scan failed")

    assert msg == "Scan failed: [Errno 13] Permission denied: 'res://props/Rock'"
    assert str(tmp_path) not in msg


def test_debug_detail_masks_other_paths(monkeypatch, tmp_path) -> None:
    _use_roots(monkeypatch, tmp_path)
    monkeypatch.setattr(config, "DEBUG", True)

    msg = safe_error_message(OSError("unable to open /srv/private/catalog.db\nretry later"), "Open failed")

    assert msg == "Open failed: unable to open [path] retry later"
    assert safe_error_message(None, "Open failed") == "Open failed"
    assert safe_error_message(OSError(""), "Open failed") == "Open failed"


def test_mask_catalog_paths(monkeypatch, tmp_path) -> None:
    _use_roots(monkeypatch, tmp_path)
    user_db = tmp_path / "user" / "catalog.db"
    assert mask_catalog_paths(f"cannot open {user_db}") == "cannot open user://catalog.db"
    assert mask_catalog_paths(f"root {tmp_path / 'project'}") == "root res://"
    assert mask_catalog_paths(f"sibling {tmp_path / 'project2'}/x") == "sibling [path]"
    assert mask_catalog_paths(r"locked C:\Assets\Rock") == "locked [path]"
    assert mask_catalog_paths("no paths here") == "no paths here"


def test_json_response_envelope() -> None:
    resp = _json_response(Result.Err(ErrorCode.NOT_FOUND, "Asset not found: 7"))
    assert resp.status == 200
    body = json.loads(resp.text)
    assert body == {"ok": False, "data": None, "error": "Asset not found: 7", "code": "NOT_FOUND", "meta": {}}

    ok = json.loads(_json_response(Result.Ok({"ratio": float("nan")})).text)
    assert ok["data"] == {"ratio": None}
