from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

_BACKEND_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_DOTENV_LOADED = False

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}
_WINDOW_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")

# Used only when a slot has a nominal time but no configured start/end.
DEFAULT_WINDOWS: dict[str, tuple[int, int]] = {
    "am_in": (4 * 60, 11 * 60 + 59),
    "am_out": (11 * 60, 12 * 60 + 30),
    "pm_in": (12 * 60 + 31, 14 * 60),
    "pm_out": (14 * 60 + 1, 23 * 60 + 59),
}


@dataclass(frozen=True)
class Settings:
    max_range_days: int = 366
    workers: int = 1
    workday_minutes: int = 480
    late_on_backfilled: bool = True
    absent_requires_no_exceptions: bool = False
    default_windows: dict[str, tuple[int, int]] = field(
        default_factory=lambda: dict(DEFAULT_WINDOWS)
    )


def ensure_backend_env_loaded() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)
    _DOTENV_LOADED = True


def _to_int(name: str, value: str | None, default: int, *, minimum: int = 0) -> int:
    if value is None:
        return default
    text = value.strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _to_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    text = value.strip().lower()
    if not text:
        return default
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {value!r}")


def _to_window(name: str, value: str | None, default: tuple[int, int]) -> tuple[int, int]:
    if value is None or not value.strip():
        return default
    match = _WINDOW_PATTERN.match(value)
    if not match:
        raise ConfigError(f"{name} must look like HH:MM-HH:MM, got {value!r}")
    start_h, start_m, end_h, end_m = (int(part) for part in match.groups())
    start = start_h * 60 + start_m
    end = end_h * 60 + end_m
    if start_m > 59 or end_m > 59 or end >= 24 * 60 or start > end:
        raise ConfigError(f"{name} is not a valid same-day window: {value!r}")
    return start, end


def load_settings() -> Settings:
    ensure_backend_env_loaded()
    windows = {
        slot: _to_window(f"DTR_DEFAULT_{slot.upper()}_WINDOW", os.getenv(f"DTR_DEFAULT_{slot.upper()}_WINDOW"), default)
        for slot, default in DEFAULT_WINDOWS.items()
    }
    settings = Settings(
        max_range_days=_to_int("DTR_MAX_RANGE_DAYS", os.getenv("DTR_MAX_RANGE_DAYS"), 366, minimum=1),
        workers=_to_int("DTR_WORKERS", os.getenv("DTR_WORKERS"), 1, minimum=1),
        workday_minutes=_to_int("DTR_WORKDAY_MINUTES", os.getenv("DTR_WORKDAY_MINUTES"), 480, minimum=1),
        late_on_backfilled=_to_bool("DTR_LATE_ON_BACKFILLED", os.getenv("DTR_LATE_ON_BACKFILLED"), True),
        absent_requires_no_exceptions=_to_bool(
            "DTR_ABSENT_REQUIRES_NO_EXCEPTIONS",
            os.getenv("DTR_ABSENT_REQUIRES_NO_EXCEPTIONS"),
            False,
        ),
        default_windows=windows,
    )
    logger.debug(
        "DTR settings: max_range_days=%s workers=%s workday_minutes=%s",
        settings.max_range_days,
        settings.workers,
        settings.workday_minutes,
    )
    return settings


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS
