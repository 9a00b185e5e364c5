from __future__ import annotations

from datetime import date
from typing import Iterable

from .config import Settings, get_settings
from .matching import DayMatches
from .models import ApprovalStatus, ExceptionRecord
from .timeutils import is_weekend

WEEKEND = "Weekend"
ABSENT = "Absent"
LOGS_FIXED = "LogsFixed"
FIX_ON_PROCESS = "FixOnProcess"
REMARK_SEPARATOR = "; "

_MISSING_REFERENCE = "N/A"


def _labelled(label: str, records: Iterable[ExceptionRecord]) -> list[str]:
    return [f"{label} ({record.reference or _MISSING_REFERENCE})" for record in records]


def _is_absent(
    day: date,
    *,
    matches: DayMatches,
    has_punches: bool,
    today: date,
    settings: Settings,
) -> bool:
    if has_punches or day >= today:
        return False
    if matches.leave or matches.travel or matches.holidays:
        return False
    if settings.absent_requires_no_exceptions and (
        matches.out_of_office or matches.comp_day_off or matches.approved_fix_log is not None
    ):
        return False
    return True


def compose_remarks(
    day: date,
    *,
    matches: DayMatches,
    has_punches: bool,
    today: date,
    settings: Settings | None = None,
) -> list[str]:
    settings = settings or get_settings()
    remarks: list[str] = []

    if is_weekend(day):
        remarks.append(WEEKEND)
    elif _is_absent(day, matches=matches, has_punches=has_punches, today=today, settings=settings):
        remarks.append(ABSENT)

    dynamic = (
        _labelled("Locator", matches.out_of_office)
        + _labelled("Leave", matches.leave)
        + _labelled("Travel", matches.travel)
        + _labelled("CDO", matches.comp_day_off)
    )
    remarks.extend(dynamic)

    if not dynamic and matches.fix_log is not None:
        if matches.fix_log.status is ApprovalStatus.APPROVED:
            remarks.append(LOGS_FIXED)
        elif matches.fix_log.status is ApprovalStatus.FOR_APPROVAL:
            remarks.append(FIX_ON_PROCESS)

    return remarks
