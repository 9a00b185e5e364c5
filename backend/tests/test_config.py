from __future__ import annotations

import pytest

from dtr_reconciler import config
from dtr_reconciler.config import DEFAULT_WINDOWS, load_settings
from dtr_reconciler.errors import ConfigError

_ENV_NAMES = (
    "DTR_MAX_RANGE_DAYS",
    "DTR_WORKERS",
    "DTR_WORKDAY_MINUTES",
    "DTR_LATE_ON_BACKFILLED",
    "DTR_ABSENT_REQUIRES_NO_EXCEPTIONS",
    "DTR_DEFAULT_AM_IN_WINDOW",
    "DTR_DEFAULT_AM_OUT_WINDOW",
    "DTR_DEFAULT_PM_IN_WINDOW",
    "DTR_DEFAULT_PM_OUT_WINDOW",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "_DOTENV_LOADED", True)
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment():
    settings = load_settings()
    assert settings.max_range_days == 366
    assert settings.workers == 1
    assert settings.workday_minutes == 480
    assert settings.late_on_backfilled is True
    assert settings.absent_requires_no_exceptions is False
    assert settings.default_windows == DEFAULT_WINDOWS


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DTR_MAX_RANGE_DAYS", "31")
    monkeypatch.setenv("DTR_WORKERS", "4")
    monkeypatch.setenv("DTR_LATE_ON_BACKFILLED", "no")
    monkeypatch.setenv("DTR_ABSENT_REQUIRES_NO_EXCEPTIONS", "On")
    monkeypatch.setenv("DTR_DEFAULT_AM_IN_WINDOW", "05:30-10:00")

    settings = load_settings()

    assert settings.max_range_days == 31
    assert settings.workers == 4
    assert settings.late_on_backfilled is False
    assert settings.absent_requires_no_exceptions is True
    assert settings.default_windows["am_in"] == (330, 600)
    assert settings.default_windows["pm_out"] == DEFAULT_WINDOWS["pm_out"]


def test_blank_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("DTR_WORKERS", "  ")
    assert load_settings().workers == 1


@pytest.mark.parametrize(
    "name, value",
    [
        ("DTR_MAX_RANGE_DAYS", "a year"),
        ("DTR_MAX_RANGE_DAYS", "0"),
        ("DTR_WORKERS", "-2"),
        ("DTR_LATE_ON_BACKFILLED", "maybe"),
        ("DTR_DEFAULT_PM_OUT_WINDOW", "18:00-14:00"),
        ("DTR_DEFAULT_AM_OUT_WINDOW", "11:00"),
    ],
)
def test_invalid_values_raise_config_error(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings()


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setattr(config, "_SETTINGS", None)
    first = config.get_settings()
    monkeypatch.setenv("DTR_WORKERS", "8")
    assert config.get_settings() is first
