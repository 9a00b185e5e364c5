from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Sequence

from .models import (
    ApprovalStatus,
    CompDayOffRecord,
    EmployeeKeys,
    ExceptionKind,
    ExceptionRecord,
    FixLogRecord,
    HolidayRecord,
    LeaveRecord,
    MatchedRecord,
    OutOfOfficeRecord,
    TravelRecord,
)

WORK_SUSPENSION = "Work Suspension"


def group_records(records: Iterable[ExceptionRecord]) -> dict[ExceptionKind, list[ExceptionRecord]]:
    grouped: dict[ExceptionKind, list[ExceptionRecord]] = defaultdict(list)
    for record in records:
        grouped[record.kind].append(record)
    return dict(grouped)


def matches_employee(record: ExceptionRecord, employee: EmployeeKeys) -> bool:
    # Holidays apply to everyone.
    if record.kind is ExceptionKind.HOLIDAY:
        return True
    return record.belongs_to(employee)


def find_matches(
    records: Iterable[ExceptionRecord],
    day: date,
    employee: EmployeeKeys,
    *,
    include_pending: bool = False,
) -> list[ExceptionRecord]:
    accepted = {ApprovalStatus.APPROVED}
    if include_pending:
        accepted.add(ApprovalStatus.FOR_APPROVAL)
    return [
        record
        for record in records
        if record.status in accepted and record.covers(day) and matches_employee(record, employee)
    ]


def select_fix_log(records: Sequence[FixLogRecord]) -> FixLogRecord | None:
    for record in records:
        if record.status is ApprovalStatus.APPROVED:
            return record
    for record in records:
        if record.status is ApprovalStatus.FOR_APPROVAL:
            return record
    return None


def holiday_label(names: Sequence[str]) -> str | None:
    cleaned = [name for name in names if name]
    if not cleaned:
        return None
    if any(WORK_SUSPENSION.lower() in name.lower() for name in cleaned):
        return WORK_SUSPENSION
    return ", ".join(cleaned)


@dataclass(frozen=True)
class DayMatches:
    out_of_office: tuple[OutOfOfficeRecord, ...] = ()
    leave: tuple[LeaveRecord, ...] = ()
    travel: tuple[TravelRecord, ...] = ()
    comp_day_off: tuple[CompDayOffRecord, ...] = ()
    fix_log: FixLogRecord | None = None
    holidays: tuple[HolidayRecord, ...] = ()

    @property
    def approved_fix_log(self) -> FixLogRecord | None:
        if self.fix_log is not None and self.fix_log.is_approved:
            return self.fix_log
        return None

    @property
    def holiday_names(self) -> tuple[str, ...]:
        return tuple(holiday.name for holiday in self.holidays if holiday.name)

    @property
    def holiday_label(self) -> str | None:
        return holiday_label(self.holiday_names)

    @property
    def is_holiday(self) -> bool:
        return bool(self.holidays)

    def matched_records(self) -> tuple[MatchedRecord, ...]:
        matched: list[MatchedRecord] = []
        ordered: list[Sequence[ExceptionRecord]] = [
            self.out_of_office,
            self.leave,
            self.travel,
            self.comp_day_off,
            (self.fix_log,) if self.fix_log is not None else (),
            self.holidays,
        ]
        for group in ordered:
            for record in group:
                matched.append(
                    MatchedRecord(kind=record.kind, reference=record.reference, status=record.status)
                )
        return tuple(matched)


def resolve_day(
    records: Mapping[ExceptionKind, Sequence[ExceptionRecord]],
    day: date,
    employee: EmployeeKeys,
) -> DayMatches:
    def _approved(kind: ExceptionKind) -> tuple:
        return tuple(find_matches(records.get(kind, ()), day, employee))

    fix_logs = find_matches(records.get(ExceptionKind.FIX_LOG, ()), day, employee, include_pending=True)
    return DayMatches(
        out_of_office=_approved(ExceptionKind.OUT_OF_OFFICE),
        leave=_approved(ExceptionKind.LEAVE),
        travel=_approved(ExceptionKind.TRAVEL),
        comp_day_off=_approved(ExceptionKind.COMP_DAY_OFF),
        fix_log=select_fix_log(fix_logs),
        holidays=_approved(ExceptionKind.HOLIDAY),
    )
