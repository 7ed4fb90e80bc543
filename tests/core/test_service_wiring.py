import pytest

from assetdex_backend.deps import build_services
from assetdex_backend.routes.core import services


@pytest.mark.asyncio
async def test_build_services_opens_catalog(tmp_path) -> None:
    res = await build_services(str(tmp_path / "wired.db"))
    assert res.ok, res.error
    catalog = res.data["catalog"]
    try:
        assert res.data["db"] is catalog.store.db
        assert catalog.get_asset_count() == 0
    finally:
        catalog.close()


@pytest.mark.asyncio
async def test_build_services_reports_unusable_path(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    res = await build_services(str(blocker / "wired.db"))
    assert not res.ok
    assert res.code == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_require_services_caches_and_disposes(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(services, "_services", None)
    monkeypatch.setattr(services, "_services_lock", None)
    monkeypatch.setattr(services, "_services_error", None)
    monkeypatch.setattr(services, "_services_db_path", str(tmp_path / "cached.db"))

    first, err = await services._require_services()
    assert err is None
    second, _ = await services._require_services()
    assert second is first

    await services.dispose_services()
    assert services._services is None
    assert first["catalog"].store.available is False


@pytest.mark.asyncio
async def test_require_services_reports_failure(monkeypatch, tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    monkeypatch.setattr(services, "_services", None)
    monkeypatch.setattr(services, "_services_lock", None)
    monkeypatch.setattr(services, "_services_error", None)
    monkeypatch.setattr(services, "_services_db_path", str(blocker / "cached.db"))

    svc, err = await services._require_services()

    assert svc is None
    assert err.code == "SERVICE_UNAVAILABLE"
    assert services.get_services_error()
