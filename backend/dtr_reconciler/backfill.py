from __future__ import annotations

from datetime import time
from typing import Iterable, Mapping

from .models import SLOTS, FixLogRecord, OutOfOfficeRecord, Provenance, ShiftWindow, Slot
from .timeutils import minutes_to_time


def _out_of_office_covers(records: Iterable[OutOfOfficeRecord], nominal: int) -> bool:
    for record in records:
        if not record.is_approved:
            continue
        interval = record.interval()
        if interval is not None and interval[0] <= nominal <= interval[1]:
            return True
    return False


def backfill(
    slot_values: Mapping[Slot, time | None],
    out_of_office: Iterable[OutOfOfficeRecord],
    fix_log: FixLogRecord | None,
    shift: ShiftWindow,
) -> tuple[dict[Slot, time | None], dict[Slot, Provenance]]:
    """Fill missing slots from approved records, remembering where each value came from.

    A real punch is never replaced. An approved out-of-office interval that
    covers the slot's nominal time wins over an approved fix-log correction.
    Fix-logs still awaiting approval never change a value.
    """
    out_of_office = tuple(out_of_office)
    approved_fix = fix_log if fix_log is not None and fix_log.is_approved else None

    values: dict[Slot, time | None] = {}
    provenance: dict[Slot, Provenance] = {}
    for slot in SLOTS:
        value = slot_values.get(slot)
        source = Provenance.NONE
        window = shift.window(slot)
        if not window.active:
            value = None
        elif value is None:
            if window.nominal is not None and _out_of_office_covers(out_of_office, window.nominal):
                value = minutes_to_time(window.nominal)
                source = Provenance.OUT_OF_OFFICE
            elif approved_fix is not None and approved_fix.value_for(slot) is not None:
                value = minutes_to_time(approved_fix.value_for(slot))
                source = Provenance.FIX_LOG
        values[slot] = value
        provenance[slot] = source
    return values, provenance
