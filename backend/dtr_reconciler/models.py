from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .timeutils import clock_to_minutes, extract_date, stored_month_day


class Slot(str, Enum):
    AM_IN = "am_in"
    AM_OUT = "am_out"
    PM_IN = "pm_in"
    PM_OUT = "pm_out"


SLOTS: tuple[Slot, ...] = (Slot.AM_IN, Slot.AM_OUT, Slot.PM_IN, Slot.PM_OUT)


class ApprovalStatus(str, Enum):
    FOR_APPROVAL = "ForApproval"
    APPROVED = "Approved"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"


class Provenance(str, Enum):
    NONE = "none"
    OUT_OF_OFFICE = "out_of_office"
    FIX_LOG = "fix_log"


class ExceptionKind(str, Enum):
    OUT_OF_OFFICE = "out_of_office"
    LEAVE = "leave"
    TRAVEL = "travel"
    COMP_DAY_OFF = "comp_day_off"
    FIX_LOG = "fix_log"
    HOLIDAY = "holiday"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


def _id_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


class EmployeeKeys(_Frozen):
    """Both identifiers an upstream record may be keyed by."""

    obj_id: str | None = None
    user_id: str | None = None

    @field_validator("obj_id", "user_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str | None:
        return _id_text(value)

    def keys(self) -> set[str]:
        return {key for key in (self.obj_id, self.user_id) if key}


class PunchEvent(_Frozen):
    employee_key: str
    timestamp: str

    @field_validator("employee_key", "timestamp", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def day(self) -> dt.date | None:
        return extract_date(self.timestamp)

    @property
    def minutes(self) -> int | None:
        return clock_to_minutes(self.timestamp)


class SlotWindow(_Frozen):
    active: bool = False
    window_start: int | None = None
    window_end: int | None = None
    nominal: int | None = None


class ShiftWindow(_Frozen):
    name: str | None = None
    am_in: SlotWindow = SlotWindow()
    am_out: SlotWindow = SlotWindow()
    pm_in: SlotWindow = SlotWindow()
    pm_out: SlotWindow = SlotWindow()
    am_credit: Decimal = Decimal("0.5")
    pm_credit: Decimal = Decimal("0.5")
    ampm_credit: Decimal = Decimal("1.0")

    def window(self, slot: Slot) -> SlotWindow:
        return getattr(self, slot.value)

    def is_active(self, slot: Slot) -> bool:
        return self.window(slot).active

    @property
    def combined_mode(self) -> bool:
        # Single check-in/check-out per day.
        return (
            self.am_in.active
            and self.pm_out.active
            and not self.am_out.active
            and not self.pm_in.active
        )


class ExceptionRecord(_Frozen):
    kind: ExceptionKind
    reference: str | None = None
    status: ApprovalStatus = ApprovalStatus.FOR_APPROVAL
    emp_obj_ids: frozenset[str] = frozenset()
    user_ids: frozenset[str] = frozenset()
    dates: tuple[dt.date, ...] = ()

    @field_validator("emp_obj_ids", "user_ids", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, (str, int)):
            value = [value]
        return frozenset(text for text in (_id_text(item) for item in value) if text)

    @field_validator("reference", mode="before")
    @classmethod
    def _coerce_reference(cls, value: Any) -> str | None:
        return _id_text(value)

    @property
    def is_approved(self) -> bool:
        return self.status is ApprovalStatus.APPROVED

    def belongs_to(self, employee: EmployeeKeys) -> bool:
        if employee.obj_id and employee.obj_id in self.emp_obj_ids:
            return True
        if employee.user_id and employee.user_id in self.user_ids:
            return True
        return False

    def covers(self, day: dt.date) -> bool:
        return day in self.dates


class OutOfOfficeRecord(ExceptionRecord):
    kind: ExceptionKind = ExceptionKind.OUT_OF_OFFICE
    destination: str | None = None
    purpose: str | None = None
    departure: int | None = None
    arrival: int | None = None

    def interval(self) -> tuple[int, int] | None:
        if self.departure is None or self.arrival is None:
            return None
        return min(self.departure, self.arrival), max(self.departure, self.arrival)


class LeaveRecord(ExceptionRecord):
    kind: ExceptionKind = ExceptionKind.LEAVE
    leave_type: str | None = None


class TravelRecord(ExceptionRecord):
    kind: ExceptionKind = ExceptionKind.TRAVEL
    destination: str | None = None
    purpose: str | None = None


class CompDayOffRecord(ExceptionRecord):
    kind: ExceptionKind = ExceptionKind.COMP_DAY_OFF


class FixLogRecord(ExceptionRecord):
    kind: ExceptionKind = ExceptionKind.FIX_LOG
    am_in: int | None = None
    am_out: int | None = None
    pm_in: int | None = None
    pm_out: int | None = None

    def value_for(self, slot: Slot) -> int | None:
        return getattr(self, slot.value)


class HolidayRecord(ExceptionRecord):
    kind: ExceptionKind = ExceptionKind.HOLIDAY
    status: ApprovalStatus = ApprovalStatus.APPROVED
    name: str = ""
    recurring: bool = False
    holiday_date: str | None = None

    def covers(self, day: dt.date) -> bool:
        if self.holiday_date is None:
            if self.recurring:
                return any((held.month, held.day) == (day.month, day.day) for held in self.dates)
            return day in self.dates
        if self.recurring:
            return stored_month_day(self.holiday_date) == (day.month, day.day)
        return extract_date(self.holiday_date) == day


class MatchedRecord(_Frozen):
    kind: ExceptionKind
    reference: str | None = None
    status: ApprovalStatus


class DailyAttendanceRow(_Frozen):
    date: dt.date
    am_in: dt.time | None = None
    am_out: dt.time | None = None
    pm_in: dt.time | None = None
    pm_out: dt.time | None = None
    late_minutes: int = 0
    day_credit: Decimal = Decimal("0.00")
    remarks: tuple[str, ...] = ()
    backfill: dict[Slot, Provenance] = {}
    is_weekend: bool = False
    holiday_names: tuple[str, ...] = ()
    holiday_label: str | None = None
    matched_records: tuple[MatchedRecord, ...] = ()
    credit_override: ExceptionKind | None = None
    fix_log_status: ApprovalStatus | None = None
    error: str | None = None

    @property
    def remarks_text(self) -> str:
        return "; ".join(self.remarks)

    @property
    def is_absent(self) -> bool:
        return "Absent" in self.remarks

    def slot_value(self, slot: Slot) -> dt.time | None:
        return getattr(self, slot.value)


class AttendanceTotals(_Frozen):
    total_late_minutes: int = 0
    total_days: Decimal = Decimal("0.00")
    late_days_equivalent: Decimal = Decimal("0.00")
    net_days: Decimal = Decimal("0.0000")
    days_present: int = 0
    days_absent: int = 0
    locator_count: int = 0
    leave_count: int = 0
    travel_count: int = 0
    cdo_count: int = 0
    fix_log_count: int = 0


class ReconciliationResult(_Frozen):
    employee: EmployeeKeys
    date_from: dt.date
    date_to: dt.date
    shift_name: str | None = None
    rows: tuple[DailyAttendanceRow, ...] = ()
    totals: AttendanceTotals = AttendanceTotals()

    @property
    def scheduled(self) -> bool:
        return True


class UnscheduledResult(_Frozen):
    employee: EmployeeKeys
    date_from: dt.date
    date_to: dt.date
    reason: str = "no shift schedule assigned"

    @property
    def scheduled(self) -> bool:
        return False
