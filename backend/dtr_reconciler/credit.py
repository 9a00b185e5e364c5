from __future__ import annotations

from datetime import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from .matching import DayMatches
from .models import ExceptionKind, ShiftWindow, Slot

_TWO_PLACES = Decimal("0.01")
_ZERO = Decimal("0")
FULL_DAY = Decimal("1.00")

# Priority used when more than one approved record could force a full day.
OVERRIDE_ORDER: tuple[ExceptionKind, ...] = (
    ExceptionKind.TRAVEL,
    ExceptionKind.COMP_DAY_OFF,
    ExceptionKind.FIX_LOG,
    ExceptionKind.OUT_OF_OFFICE,
)


def round_credit(value: Decimal) -> Decimal:
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def _present(slot_values: Mapping[Slot, time | None], slot: Slot) -> bool:
    return slot_values.get(slot) is not None


def compute_day_credit(slot_values: Mapping[Slot, time | None], shift: ShiftWindow) -> Decimal:
    am_in = _present(slot_values, Slot.AM_IN)
    am_out = _present(slot_values, Slot.AM_OUT)
    pm_in = _present(slot_values, Slot.PM_IN)
    pm_out = _present(slot_values, Slot.PM_OUT)
    am_weight = shift.am_credit
    pm_weight = shift.pm_credit

    if shift.combined_mode:
        half = shift.ampm_credit / 2
        credit = (half if am_in else _ZERO) + (half if pm_out else _ZERO)
        return round_credit(credit)

    am_complete = am_in and am_out
    pm_complete = pm_in and pm_out

    # One full half-day plus a dangling punch on the other half.
    if am_in and not am_out and pm_complete:
        return round_credit(am_weight + pm_weight)
    if am_complete and not pm_in and pm_out:
        return round_credit(am_weight + pm_weight)
    if not am_in and am_out and pm_complete:
        return round_credit((am_weight + pm_weight) / 2)
    if am_complete and pm_in and not pm_out:
        return round_credit((am_weight + pm_weight) / 2)
    if am_in and not am_out and not pm_in and pm_out:
        return round_credit(am_weight + pm_weight)

    credit = _ZERO
    if am_complete:
        credit += am_weight
    if pm_complete:
        credit += pm_weight
    return round_credit(credit)


def override_kind(matches: DayMatches) -> ExceptionKind | None:
    approved = {
        ExceptionKind.TRAVEL: bool(matches.travel),
        ExceptionKind.COMP_DAY_OFF: bool(matches.comp_day_off),
        ExceptionKind.FIX_LOG: matches.approved_fix_log is not None,
        ExceptionKind.OUT_OF_OFFICE: bool(matches.out_of_office),
    }
    for kind in OVERRIDE_ORDER:
        if approved[kind]:
            return kind
    return None


def apply_credit_overrides(
    base: Decimal,
    matches: DayMatches,
    *,
    is_weekend: bool,
    is_holiday: bool,
) -> tuple[Decimal, ExceptionKind | None]:
    kind = override_kind(matches)
    if kind is not None:
        return FULL_DAY, kind
    if (is_weekend or is_holiday) and base == _ZERO:
        return round_credit(_ZERO), None
    return round_credit(base), None
