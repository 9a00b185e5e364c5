from .adapters import (
    cdo_from_rows,
    fix_logs_from_rows,
    holidays_from_rows,
    leaves_from_rows,
    locators_from_rows,
    normalize_status,
    punches_from_rows,
    shift_from_assignments,
    travels_from_rows,
)
from .config import Settings, get_settings, load_settings
from .errors import ConfigError, DateRangeError, ReconcilerError
from .models import (
    ApprovalStatus,
    AttendanceTotals,
    DailyAttendanceRow,
    EmployeeKeys,
    ExceptionKind,
    Provenance,
    PunchEvent,
    ReconciliationResult,
    ShiftWindow,
    Slot,
    SlotWindow,
    UnscheduledResult,
)
from .providers import AttendanceDataSource, InMemoryDataSource, reconcile_from_source
from .reconcile import reconcile

__all__ = [
    "ApprovalStatus",
    "AttendanceDataSource",
    "AttendanceTotals",
    "ConfigError",
    "DailyAttendanceRow",
    "DateRangeError",
    "EmployeeKeys",
    "ExceptionKind",
    "InMemoryDataSource",
    "Provenance",
    "PunchEvent",
    "ReconcilerError",
    "ReconciliationResult",
    "Settings",
    "ShiftWindow",
    "Slot",
    "SlotWindow",
    "UnscheduledResult",
    "cdo_from_rows",
    "fix_logs_from_rows",
    "get_settings",
    "holidays_from_rows",
    "leaves_from_rows",
    "load_settings",
    "locators_from_rows",
    "normalize_status",
    "punches_from_rows",
    "reconcile",
    "reconcile_from_source",
    "shift_from_assignments",
    "travels_from_rows",
]
