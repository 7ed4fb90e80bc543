import pytest

from assetdex_backend.routes.core import request_json as rq


class _DummyContent:
    def __init__(self, chunks, exc=None):
        self._chunks = chunks
        self._exc = exc

    async def iter_chunked(self, _size):
        if self._exc is not None:
            raise self._exc
        for chunk in self._chunks:
            yield chunk


class _DummyRequest:
    def __init__(self, headers=None, chunks=None, exc=None):
        self.headers = headers or {}
        self.content = _DummyContent(chunks or [], exc=exc)


def test_content_length_errors() -> None:
    assert rq._content_length_error(_DummyRequest(headers={"Content-Length": "999"}), 100) is not None
    assert rq._content_length_error(_DummyRequest(headers={"Content-Length": "50"}), 100) is None
    assert rq._content_length_error(_DummyRequest(headers={"Content-Length": "abc"}), 100) is not None
    assert rq._content_length_error(_DummyRequest(headers={}), 100) is None


def test_decode_and_parse_json_dict() -> None:
    ok = rq._decode_and_parse_json_dict(b'{"path":"/lib"}')
    assert ok.ok and ok.data == {"path": "/lib"}

    empty = rq._decode_and_parse_json_dict(b"")
    assert empty.ok and empty.data == {}

    bad_utf = rq._decode_and_parse_json_dict(b"\xff")
    assert not bad_utf.ok and bad_utf.code == "INVALID_JSON"

    bad_json = rq._decode_and_parse_json_dict(b"{")
    assert not bad_json.ok and bad_json.code == "INVALID_JSON"

    not_obj = rq._decode_and_parse_json_dict(b"[]")
    assert not not_obj.ok


@pytest.mark.asyncio
async def test_read_request_body_limited_behaviors() -> None:
    res = await rq._read_request_body_limited(_DummyRequest(chunks=[b"{", b'"a":1', b"}"]), 100)
    assert res.ok
    assert res.data == b'{"a":1}'

    too_big = await rq._read_request_body_limited(_DummyRequest(chunks=[b"x" * 101]), 100)
    assert not too_big.ok and too_big.code == "INVALID_INPUT"

    broken = await rq._read_request_body_limited(_DummyRequest(exc=RuntimeError("boom")), 100)
    assert not broken.ok and broken.code == "INVALID_JSON"


@pytest.mark.asyncio
async def test_read_json_end_to_end() -> None:
    req = _DummyRequest(headers={"Content-Length": "9"}, chunks=[b'{"k":"v"}'])
    res = await rq._read_json(req)
    assert res.ok
    assert res.data == {"k": "v"}

    oversized = _DummyRequest(headers={"Content-Length": str(10 * 1024 * 1024 * 1024)})
    res2 = await rq._read_json(oversized)
    assert not res2.ok
    assert res2.meta.get("size") == 10 * 1024 * 1024 * 1024
