from __future__ import annotations

import pytest

from bungalow_rates.app import database
from bungalow_rates.app.config import (
    DEFAULT_VALUE_SCALE,
    FULL_COMPACTION_ENV,
    VALUE_SCALE_ENV,
    RateSettings,
)


def test_settings_default_when_environment_is_empty(monkeypatch):
    monkeypatch.delenv(VALUE_SCALE_ENV, raising=False)
    monkeypatch.delenv(FULL_COMPACTION_ENV, raising=False)

    settings = RateSettings.from_env()

    assert settings.value_scale == DEFAULT_VALUE_SCALE
    assert settings.full_compaction is False


@pytest.mark.parametrize("raw, expected", [("1", True), ("yes", True), ("On", True), ("0", False), ("", False)])
def test_full_compaction_flag(monkeypatch, raw, expected):
    monkeypatch.setenv(FULL_COMPACTION_ENV, raw)

    assert RateSettings.from_env().full_compaction is expected


def test_value_scale_from_environment(monkeypatch):
    monkeypatch.setenv(VALUE_SCALE_ENV, "2")

    assert RateSettings.from_env().value_scale == 2


@pytest.mark.parametrize("raw", ["two", "-1"])
def test_invalid_value_scale_is_rejected(monkeypatch, raw):
    monkeypatch.setenv(VALUE_SCALE_ENV, raw)

    with pytest.raises(ValueError, match=VALUE_SCALE_ENV):
        RateSettings.from_env()


def test_sqlite_engines_allow_cross_thread_use():
    assert database.build_engine_kwargs("sqlite:///rates.db") == {
        "connect_args": {"check_same_thread": False}
    }


def test_server_engines_read_pool_settings(monkeypatch):
    monkeypatch.setenv(database.POOL_SIZE_ENV, "12")

    kwargs = database.build_engine_kwargs("postgresql://rates@db/rates")

    assert kwargs["pool_size"] == 12
    assert kwargs["max_overflow"] == database.DEFAULT_MAX_OVERFLOW
    assert kwargs["pool_pre_ping"] is True


def test_require_postgres_refuses_sqlite(monkeypatch):
    monkeypatch.setenv(database.REQUIRE_POSTGRES_ENV, "1")

    with pytest.raises(RuntimeError, match="REQUIRE_POSTGRES"):
        database._resolve_database_url("sqlite:///rates.db")
    with pytest.raises(RuntimeError, match="REQUIRE_POSTGRES"):
        database._resolve_database_url(None)
