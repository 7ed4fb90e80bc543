import json

import pytest

from assetdex_backend.features.catalog import Asset
from assetdex_backend.features.catalog.metadata_file import (
    is_complete,
    parse_metadata,
    read_metadata_file,
    write_metadata_file,
)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "text",
        {"name": "Rock"},
        {"path": "/lib/Rock"},
        {"name": 1, "path": "/lib/Rock"},
        {"name": "Rock", "path": "/lib/Rock", "image_path": 3},
        {"name": "Rock", "path": "/lib/Rock", "tags": "stone"},
        {"name": "Rock", "path": "/lib/Rock", "tags": ["stone", 2]},
    ],
)
def test_parse_rejects_wrong_shapes(payload) -> None:
    assert parse_metadata(payload) is None


def test_parse_accepts_optional_fields_missing() -> None:
    asset = parse_metadata({"name": "Rock", "path": "/lib/Rock"})
    assert asset == Asset(name="Rock", path="/lib/Rock", image_path=None, tags=[])


def test_parse_treats_empty_image_as_missing() -> None:
    asset = parse_metadata({"name": "Rock", "path": "/lib/Rock", "image_path": "", "tags": ["stone"]})
    assert asset.image_path is None
    assert asset.tags == ["stone"]


def test_completeness_needs_name_and_path() -> None:
    assert is_complete(Asset(name="Rock", path="/lib/Rock"))
    assert not is_complete(Asset(name="", path="/lib/Rock"))
    assert not is_complete(Asset(name="Rock", path=""))
    assert not is_complete(None)


def test_read_missing_or_broken_file(tmp_path) -> None:
    assert read_metadata_file(str(tmp_path / "Asset.json")) is None
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert read_metadata_file(str(broken)) is None


def test_write_uses_stable_layout(tmp_path) -> None:
    target = tmp_path / "Asset.json"
    asset = Asset(name="Rock", path="/lib/Rock", image_path=None, tags=["stone"])

    res = write_metadata_file(str(target), asset)

    assert res.ok
    text = target.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert list(json.loads(text).keys()) == ["path", "name", "image_path", "tags"]
    assert json.loads(text)["image_path"] == ""
    assert '\n  "path": "/lib/Rock"' in text
    assert not (tmp_path / "Asset.json.tmp").exists()


def test_written_file_reads_back(tmp_path) -> None:
    target = tmp_path / "Asset.json"
    asset = Asset(name="Rock", path="/lib/Rock", image_path="/lib/Rock/Rock.png", tags=["stone", "grey"])
    assert write_metadata_file(str(target), asset).ok
    assert read_metadata_file(str(target)) == asset


def test_write_failure_is_reported(tmp_path) -> None:
    target = tmp_path / "missing" / "Asset.json"
    res = write_metadata_file(str(target), Asset(name="Rock", path="/lib/Rock"))
    assert not res.ok
    assert res.code == "WRITE_FAILED"
