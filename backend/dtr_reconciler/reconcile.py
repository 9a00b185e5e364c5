from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from .backfill import backfill
from .config import Settings, get_settings
from .credit import apply_credit_overrides, compute_day_credit, round_credit
from .lateness import compute_lateness
from .matching import group_records, resolve_day
from .models import (
    SLOTS,
    ApprovalStatus,
    AttendanceTotals,
    DailyAttendanceRow,
    EmployeeKeys,
    ExceptionKind,
    ExceptionRecord,
    Provenance,
    PunchEvent,
    ReconciliationResult,
    ShiftWindow,
    Slot,
    UnscheduledResult,
)
from .remarks import compose_remarks
from .timeutils import date_range, is_weekend, parse_date
from .windows import extract_slots

logger = logging.getLogger(__name__)

_FOUR_PLACES = Decimal("0.0001")
_COUNTED_KINDS = {
    ExceptionKind.OUT_OF_OFFICE: "locator_count",
    ExceptionKind.LEAVE: "leave_count",
    ExceptionKind.TRAVEL: "travel_count",
    ExceptionKind.COMP_DAY_OFF: "cdo_count",
    ExceptionKind.FIX_LOG: "fix_log_count",
}


def _group_punches(punches: Iterable[PunchEvent]) -> dict[date, list[PunchEvent]]:
    by_day: dict[date, list[PunchEvent]] = defaultdict(list)
    dropped = 0
    for punch in punches:
        day = punch.day
        if day is None or punch.minutes is None:
            dropped += 1
            continue
        by_day[day].append(punch)
    if dropped:
        logger.debug("Ignored %s punch events with unreadable timestamps", dropped)
    return by_day


def build_day_row(
    day: date,
    *,
    shift: ShiftWindow,
    employee: EmployeeKeys,
    punches: Sequence[PunchEvent],
    records: Mapping[ExceptionKind, Sequence[ExceptionRecord]],
    today: date,
    settings: Settings,
) -> DailyAttendanceRow:
    matches = resolve_day(records, day, employee)
    raw_values = extract_slots(punches, shift, settings=settings)
    values, provenance = backfill(raw_values, matches.out_of_office, matches.fix_log, shift)

    late_minutes = compute_lateness(values, shift, provenance=provenance, settings=settings)
    weekend = is_weekend(day)
    base_credit = compute_day_credit(values, shift)
    day_credit, override = apply_credit_overrides(
        base_credit,
        matches,
        is_weekend=weekend,
        is_holiday=matches.is_holiday,
    )
    remarks = compose_remarks(
        day,
        matches=matches,
        has_punches=any(value is not None for value in raw_values.values()),
        today=today,
        settings=settings,
    )

    return DailyAttendanceRow(
        date=day,
        am_in=values[Slot.AM_IN],
        am_out=values[Slot.AM_OUT],
        pm_in=values[Slot.PM_IN],
        pm_out=values[Slot.PM_OUT],
        late_minutes=late_minutes,
        day_credit=day_credit,
        remarks=tuple(remarks),
        backfill=provenance,
        is_weekend=weekend,
        holiday_names=matches.holiday_names,
        holiday_label=matches.holiday_label,
        matched_records=matches.matched_records(),
        credit_override=override,
        fix_log_status=matches.fix_log.status if matches.fix_log is not None else None,
    )


def _degraded_row(day: date, exc: Exception) -> DailyAttendanceRow:
    return DailyAttendanceRow(
        date=day,
        backfill={slot: Provenance.NONE for slot in SLOTS},
        is_weekend=is_weekend(day),
        error=str(exc) or exc.__class__.__name__,
    )


def _safe_day_row(day: date, **kwargs: Any) -> DailyAttendanceRow:
    try:
        return build_day_row(day, **kwargs)
    except Exception as exc:
        logger.exception("Failed to reconcile attendance for %s", day.isoformat())
        return _degraded_row(day, exc)


def compute_totals(
    rows: Sequence[DailyAttendanceRow],
    *,
    settings: Settings | None = None,
) -> AttendanceTotals:
    settings = settings or get_settings()
    total_late = sum(row.late_minutes for row in rows)
    total_days = round_credit(sum((row.day_credit for row in rows), Decimal("0")))
    late_days = (Decimal(total_late) / Decimal(settings.workday_minutes)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    net_days = max(Decimal("0"), total_days - late_days).quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP)

    references: dict[ExceptionKind, set[Any]] = defaultdict(set)
    for row in rows:
        for record in row.matched_records:
            if record.kind not in _COUNTED_KINDS or record.status is not ApprovalStatus.APPROVED:
                continue
            references[record.kind].add(record.reference or (row.date, None))

    counts = {field: len(references[kind]) for kind, field in _COUNTED_KINDS.items()}
    return AttendanceTotals(
        total_late_minutes=total_late,
        total_days=total_days,
        late_days_equivalent=late_days,
        net_days=net_days,
        days_present=sum(1 for row in rows if row.day_credit > 0),
        days_absent=sum(1 for row in rows if row.is_absent),
        **counts,
    )


def reconcile(
    employee: EmployeeKeys,
    shift: ShiftWindow | None,
    date_from: date | str,
    date_to: date | str,
    *,
    punches: Iterable[PunchEvent] = (),
    records: Iterable[ExceptionRecord] = (),
    today: date | None = None,
    settings: Settings | None = None,
) -> ReconciliationResult | UnscheduledResult:
    settings = settings or get_settings()
    start = parse_date(date_from, field_name="date_from")
    end = parse_date(date_to, field_name="date_to")
    days = date_range(start, end, max_days=settings.max_range_days)

    if shift is None:
        logger.info(
            "No shift schedule for employee obj_id=%s user_id=%s; skipping reconciliation",
            employee.obj_id,
            employee.user_id,
        )
        return UnscheduledResult(employee=employee, date_from=start, date_to=end)

    today = today or date.today()
    punches_by_day = _group_punches(punches)
    grouped = group_records(records)
    common = {
        "shift": shift,
        "employee": employee,
        "records": grouped,
        "today": today,
        "settings": settings,
    }

    if settings.workers > 1 and len(days) > 1:
        with ThreadPoolExecutor(max_workers=settings.workers) as executor:
            futures = [
                executor.submit(_safe_day_row, day, punches=punches_by_day.get(day, []), **common)
                for day in days
            ]
            rows = [future.result() for future in futures]
    else:
        rows = [_safe_day_row(day, punches=punches_by_day.get(day, []), **common) for day in days]
    rows.sort(key=lambda row: row.date)

    totals = compute_totals(rows, settings=settings)
    logger.info(
        "Reconciled %s days (%s to %s) for employee obj_id=%s user_id=%s: credit=%s late=%s",
        len(rows),
        start.isoformat(),
        end.isoformat(),
        employee.obj_id,
        employee.user_id,
        totals.total_days,
        totals.total_late_minutes,
    )
    return ReconciliationResult(
        employee=employee,
        date_from=start,
        date_to=end,
        shift_name=shift.name,
        rows=tuple(rows),
        totals=totals,
    )
