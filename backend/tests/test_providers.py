from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from conftest import EMPLOYEE, MONDAY, OTHER_EMPLOYEE, TODAY, punch, punches_on

from dtr_reconciler.errors import DateRangeError
from dtr_reconciler.models import (
    CompDayOffRecord,
    ExceptionKind,
    HolidayRecord,
    LeaveRecord,
    ReconciliationResult,
    UnscheduledResult,
)
from dtr_reconciler.providers import InMemoryDataSource, reconcile_from_source


class RecordingSource(InMemoryDataSource):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls: list[str] = []

    def get_punch_events(self, employee, date_from, date_to):
        self.calls.append("punches")
        return super().get_punch_events(employee, date_from, date_to)

    def get_exception_records(self, kind, employee, date_from, date_to):
        self.calls.append(kind.value)
        return super().get_exception_records(kind, employee, date_from, date_to)


def test_in_memory_source_filters_by_employee_and_range():
    source = InMemoryDataSource(
        punches=[
            punch("2025-03-03 08:00:00"),
            punch("2025-03-03 08:00:00", employee_key="EMP-1"),
            punch("2025-03-03 08:00:00", employee_key="202"),
            punch("2025-04-03 08:00:00"),
        ],
        records=[
            LeaveRecord(reference="LV-1", status="Approved", emp_obj_ids={"EMP-1"}, dates=(MONDAY,)),
            LeaveRecord(reference="LV-2", status="Approved", emp_obj_ids={"EMP-1"}, dates=(date(2025, 5, 1),)),
            LeaveRecord(reference="LV-3", status="Approved", emp_obj_ids={"EMP-2"}, dates=(MONDAY,)),
            HolidayRecord(name="Christmas Day", recurring=True, holiday_date="2019-12-25"),
        ],
    )
    punches = source.get_punch_events(EMPLOYEE, MONDAY, date(2025, 3, 9))
    assert len(punches) == 2

    leaves = source.get_exception_records(ExceptionKind.LEAVE, EMPLOYEE, MONDAY, date(2025, 3, 9))
    assert [record.reference for record in leaves] == ["LV-1"]
    holidays = source.get_exception_records(ExceptionKind.HOLIDAY, OTHER_EMPLOYEE, MONDAY, date(2025, 3, 9))
    assert [record.name for record in holidays] == ["Christmas Day"]


def test_reconcile_from_source(standard_shift, settings):
    source = RecordingSource(
        shift=standard_shift,
        punches=punches_on(MONDAY, "07:58", "12:00", "12:55", "17:00"),
        records=[
            CompDayOffRecord(reference="CDO-1", status="Approved", emp_obj_ids={"EMP-1"}, dates=(date(2025, 3, 4),)),
        ],
    )
    result = reconcile_from_source(source, EMPLOYEE, "2025-03-03", "2025-03-04", today=TODAY, settings=settings)

    assert isinstance(result, ReconciliationResult)
    assert result.shift_name == "Regular 8-5"
    assert [row.day_credit for row in result.rows] == [Decimal("1.00"), Decimal("1.00")]
    # CDO alone does not suppress Absent unless configured to.
    assert result.rows[1].remarks == ("Absent", "CDO (CDO-1)")
    assert result.totals.cdo_count == 1
    assert source.calls == [
        "punches",
        "out_of_office",
        "leave",
        "travel",
        "comp_day_off",
        "fix_log",
        "holiday",
    ]


def test_unscheduled_employee_skips_fetching(settings):
    source = RecordingSource(shift=None, punches=punches_on(MONDAY, "08:00"))
    result = reconcile_from_source(source, EMPLOYEE, MONDAY, MONDAY, settings=settings)
    assert isinstance(result, UnscheduledResult)
    assert source.calls == []


def test_bad_range_fails_before_fetching(standard_shift, settings):
    source = RecordingSource(shift=standard_shift)
    with pytest.raises(DateRangeError):
        reconcile_from_source(source, EMPLOYEE, "2025-03-10", "2025-03-01", settings=settings)
    assert source.calls == []


def test_in_memory_source_filters_dated_holidays_by_range():
    source = InMemoryDataSource(
        records=[
            HolidayRecord(name="Founding Day", dates=(MONDAY,)),
            HolidayRecord(name="Rizal Day", dates=(date(2025, 12, 30),)),
            HolidayRecord(name="Anniversary", recurring=True, dates=(date(2019, 12, 8),)),
        ],
    )
    holidays = source.get_exception_records(ExceptionKind.HOLIDAY, EMPLOYEE, MONDAY, date(2025, 3, 9))
    assert [record.name for record in holidays] == ["Founding Day", "Anniversary"]
