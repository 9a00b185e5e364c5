from __future__ import annotations

from datetime import time
from typing import Mapping

from .config import Settings, get_settings
from .models import SLOTS, Provenance, ShiftWindow, Slot
from .timeutils import time_to_minutes

IN_SLOTS = frozenset({Slot.AM_IN, Slot.PM_IN})
OUT_SLOTS = frozenset({Slot.AM_OUT, Slot.PM_OUT})


def slot_lateness(value: time | None, nominal: int | None, slot: Slot) -> int:
    if value is None or nominal is None:
        return 0
    actual = time_to_minutes(value)
    if slot in IN_SLOTS:
        return max(0, actual - nominal)
    # Leaving before the scheduled time counts against the employee.
    return max(0, nominal - actual)


def compute_lateness(
    slot_values: Mapping[Slot, time | None],
    shift: ShiftWindow,
    *,
    provenance: Mapping[Slot, Provenance] | None = None,
    settings: Settings | None = None,
) -> int:
    settings = settings or get_settings()
    total = 0
    for slot in SLOTS:
        window = shift.window(slot)
        if not window.active:
            continue
        if (
            not settings.late_on_backfilled
            and provenance is not None
            and provenance.get(slot, Provenance.NONE) is not Provenance.NONE
        ):
            continue
        total += slot_lateness(slot_values.get(slot), window.nominal, slot)
    return total
