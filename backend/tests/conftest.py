from __future__ import annotations

from datetime import date

import pytest

from dtr_reconciler.config import Settings
from dtr_reconciler.models import EmployeeKeys, PunchEvent, ShiftWindow, SlotWindow

EMPLOYEE = EmployeeKeys(obj_id="EMP-1", user_id="101")
OTHER_EMPLOYEE = EmployeeKeys(obj_id="EMP-2", user_id="202")
TODAY = date(2025, 4, 1)
MONDAY = date(2025, 3, 3)
SATURDAY = date(2025, 3, 8)


def hm(text: str) -> int:
    hours, minutes = text.split(":")
    return int(hours) * 60 + int(minutes)


def window(nominal: str, start: str, end: str) -> SlotWindow:
    return SlotWindow(active=True, window_start=hm(start), window_end=hm(end), nominal=hm(nominal))


def punch(timestamp: str, employee_key: str = "101") -> PunchEvent:
    return PunchEvent(employee_key=employee_key, timestamp=timestamp)


def punches_on(day: date, *clocks: str) -> list[PunchEvent]:
    return [punch(f"{day.isoformat()} {clock}:00") for clock in clocks]


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def standard_shift() -> ShiftWindow:
    return ShiftWindow(
        name="Regular 8-5",
        am_in=window("08:00", "06:00", "10:00"),
        am_out=window("12:00", "11:30", "12:30"),
        pm_in=window("13:00", "12:31", "13:30"),
        pm_out=window("17:00", "16:00", "20:00"),
    )


@pytest.fixture
def combined_shift() -> ShiftWindow:
    return ShiftWindow(
        name="Straight 8-5",
        am_in=window("08:00", "06:00", "11:59"),
        pm_out=window("17:00", "13:00", "23:59"),
    )
