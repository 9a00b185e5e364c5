from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Protocol, Sequence

from .config import Settings, get_settings
from .matching import matches_employee
from .models import (
    EmployeeKeys,
    ExceptionKind,
    ExceptionRecord,
    HolidayRecord,
    PunchEvent,
    ReconciliationResult,
    ShiftWindow,
    UnscheduledResult,
)
from .reconcile import reconcile
from .timeutils import date_range, parse_date

logger = logging.getLogger(__name__)

FETCHED_KINDS: tuple[ExceptionKind, ...] = (
    ExceptionKind.OUT_OF_OFFICE,
    ExceptionKind.LEAVE,
    ExceptionKind.TRAVEL,
    ExceptionKind.COMP_DAY_OFF,
    ExceptionKind.FIX_LOG,
    ExceptionKind.HOLIDAY,
)


def _served_unfiltered(record: ExceptionRecord) -> bool:
    if not isinstance(record, HolidayRecord):
        return False
    return record.holiday_date is not None or record.recurring


class AttendanceDataSource(Protocol):
    def get_punch_events(
        self, employee: EmployeeKeys, date_from: date, date_to: date
    ) -> Sequence[PunchEvent]: ...

    def get_shift_window(self, employee: EmployeeKeys) -> ShiftWindow | None: ...

    def get_exception_records(
        self, kind: ExceptionKind, employee: EmployeeKeys, date_from: date, date_to: date
    ) -> Sequence[ExceptionRecord]: ...


class InMemoryDataSource:
    """Serves records that the caller has already loaded."""

    def __init__(
        self,
        *,
        shift: ShiftWindow | None = None,
        punches: Iterable[PunchEvent] = (),
        records: Iterable[ExceptionRecord] = (),
    ) -> None:
        self._shift = shift
        self._punches = list(punches)
        self._records = list(records)

    def get_punch_events(
        self, employee: EmployeeKeys, date_from: date, date_to: date
    ) -> list[PunchEvent]:
        keys = employee.keys()
        selected: list[PunchEvent] = []
        for punch in self._punches:
            day = punch.day
            if punch.employee_key in keys and day is not None and date_from <= day <= date_to:
                selected.append(punch)
        return selected

    def get_shift_window(self, employee: EmployeeKeys) -> ShiftWindow | None:
        return self._shift

    def get_exception_records(
        self, kind: ExceptionKind, employee: EmployeeKeys, date_from: date, date_to: date
    ) -> list[ExceptionRecord]:
        selected: list[ExceptionRecord] = []
        for record in self._records:
            if record.kind is not kind or not matches_employee(record, employee):
                continue
            # Stored holiday text and recurring holidays skip the range filter.
            if not _served_unfiltered(record) and not any(
                date_from <= day <= date_to for day in record.dates
            ):
                continue
            selected.append(record)
        return selected


def reconcile_from_source(
    source: AttendanceDataSource,
    employee: EmployeeKeys,
    date_from: date | str,
    date_to: date | str,
    *,
    today: date | None = None,
    settings: Settings | None = None,
) -> ReconciliationResult | UnscheduledResult:
    settings = settings or get_settings()
    start = parse_date(date_from, field_name="date_from")
    end = parse_date(date_to, field_name="date_to")
    date_range(start, end, max_days=settings.max_range_days)

    shift = source.get_shift_window(employee)
    if shift is None:
        return reconcile(employee, None, start, end, settings=settings)

    punches = source.get_punch_events(employee, start, end)
    records: list[ExceptionRecord] = []
    for kind in FETCHED_KINDS:
        fetched = source.get_exception_records(kind, employee, start, end)
        logger.debug("Fetched %s %s records", len(fetched), kind.value)
        records.extend(fetched)

    return reconcile(
        employee,
        shift,
        start,
        end,
        punches=punches,
        records=records,
        today=today,
        settings=settings,
    )
