from __future__ import annotations

from datetime import time
from typing import Iterable

from .config import Settings, get_settings
from .models import SLOTS, PunchEvent, ShiftWindow, Slot, SlotWindow
from .timeutils import minutes_to_time

# Last departure wins for the closing punch; every other slot takes first arrival.
_LATEST_WINS = {Slot.PM_OUT}


def resolve_bounds(
    window: SlotWindow,
    slot: Slot,
    *,
    settings: Settings | None = None,
) -> tuple[int, int] | None:
    if not window.active:
        return None
    start = window.window_start
    end = window.window_end
    if start is None or end is None:
        if window.nominal is None:
            return None
        default_start, default_end = (settings or get_settings()).default_windows[slot.value]
        start = default_start if start is None else start
        end = default_end if end is None else end
    return start, end


def _punch_minutes(punches: Iterable[PunchEvent | int]) -> list[int]:
    minutes: list[int] = []
    for punch in punches:
        value = punch if isinstance(punch, int) else punch.minutes
        if value is not None:
            minutes.append(value)
    return minutes


def extract_slot(
    punches: Iterable[PunchEvent | int],
    window: SlotWindow,
    slot: Slot,
    *,
    settings: Settings | None = None,
) -> time | None:
    bounds = resolve_bounds(window, slot, settings=settings)
    if bounds is None:
        return None
    start, end = bounds

    candidates = [value for value in _punch_minutes(punches) if start <= value <= end]
    if not candidates:
        return None
    chosen = max(candidates) if slot in _LATEST_WINS else min(candidates)
    return minutes_to_time(chosen)


def extract_slots(
    punches: Iterable[PunchEvent | int],
    shift: ShiftWindow,
    *,
    settings: Settings | None = None,
) -> dict[Slot, time | None]:
    settings = settings or get_settings()
    minutes = _punch_minutes(punches)
    return {
        slot: extract_slot(minutes, shift.window(slot), slot, settings=settings)
        for slot in SLOTS
    }
