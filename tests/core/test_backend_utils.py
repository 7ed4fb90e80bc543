from assetdex_backend import config
from assetdex_backend.utils import parse_bool, parse_int, split_csv


def test_parse_bool_values() -> None:
    assert parse_bool("yes") is True
    assert parse_bool(" Off ") is False
    assert parse_bool(1) is True
    assert parse_bool("maybe", default=True) is True
    assert parse_bool(None) is False


def test_parse_int_values() -> None:
    assert parse_int("3", 1) == 3
    assert parse_int(" 7 ", 1) == 7
    assert parse_int("x", 1) == 1
    assert parse_int(None, 5) == 5
    assert parse_int(True, 5) == 5


def test_split_csv() -> None:
    assert split_csv("Preview, Asset ,,Thumb") == ["Preview", "Asset", "Thumb"]
    assert split_csv("") == []
    assert split_csv(None) == []


def test_env_int_clamps_and_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("ASSETDEX_TEST_INT", "0")
    assert config._env_int(50, "ASSETDEX_TEST_INT", min_value=1) == 1
    monkeypatch.setenv("ASSETDEX_TEST_INT", "100000")
    assert config._env_int(50, "ASSETDEX_TEST_INT", max_value=500) == 500
    monkeypatch.setenv("ASSETDEX_TEST_INT", "abc")
    assert config._env_int(50, "ASSETDEX_TEST_INT") == 50
    monkeypatch.delenv("ASSETDEX_TEST_INT")
    assert config._env_int(50, "ASSETDEX_TEST_INT") == 50


def test_env_float_and_bool(monkeypatch) -> None:
    monkeypatch.setenv("ASSETDEX_TEST_FLOAT", "2.5")
    assert config._env_float(1.0, "ASSETDEX_TEST_FLOAT") == 2.5
    monkeypatch.setenv("ASSETDEX_TEST_FLOAT", "nope")
    assert config._env_float(1.0, "ASSETDEX_TEST_FLOAT") == 1.0

    monkeypatch.setenv("ASSETDEX_TEST_BOOL", "off")
    assert config._env_bool(True, "ASSETDEX_TEST_BOOL") is False
    monkeypatch.delenv("ASSETDEX_TEST_BOOL")
    assert config._env_bool(True, "ASSETDEX_TEST_BOOL") is True


def test_env_raw_skips_blank_values(monkeypatch) -> None:
    monkeypatch.setenv("ASSETDEX_TEST_A", "   ")
    monkeypatch.setenv("ASSETDEX_TEST_B", " value ")
    assert config._env_raw("ASSETDEX_TEST_A", "ASSETDEX_TEST_B") == "value"
    assert config._env_raw("ASSETDEX_TEST_MISSING", default="d") == "d"
