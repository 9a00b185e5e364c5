"""Normalisation of upstream rows into typed records.

Upstream sources disagree on field casing and shape (``LOCUSERID`` vs
``userid``, nested ``leaveDates`` vs a flat ``LEAVEDATE``, travel dates as a
list, a comma string or JSON). Every tolerance lives here so the engine only
ever sees the canonical models.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence

from .config import Settings, get_settings
from .models import (
    ApprovalStatus,
    CompDayOffRecord,
    ExceptionRecord,
    FixLogRecord,
    HolidayRecord,
    LeaveRecord,
    OutOfOfficeRecord,
    PunchEvent,
    ShiftWindow,
    Slot,
    SlotWindow,
    TravelRecord,
)
from .timeutils import clock_to_minutes, extract_clock, extract_date
from .windows import resolve_bounds

logger = logging.getLogger(__name__)

_PUNCH_TIME_CANDIDATES = ("CHECKTIME", "checktime", "check_time", "DATE", "date")
_EMP_OBJID_CANDIDATES = ("emp_objid", "EMP_OBJID", "employee_objid", "empObjId")
_USER_ID_CANDIDATES = ("USERID", "userid", "user_id", "userId")

_LOCATOR_REF_CANDIDATES = ("locatorno", "LOCNO", "loc_no", "objid")
_LOCATOR_STATUS_CANDIDATES = ("locstatus", "LOCSTATUS", "status")
_LOCATOR_USER_CANDIDATES = ("LOCUSERID", "locuserid") + _USER_ID_CANDIDATES
_LOCATOR_DATE_CANDIDATES = ("locatordate", "LOCDATE", "locdate")
_LOCATOR_DEPARTURE_CANDIDATES = ("loctimedeparture", "LOCTIMEDEPARTURE", "locdeparture")
_LOCATOR_ARRIVAL_CANDIDATES = ("loctimearrival", "LOCTIMEARRIVAL", "locarrival")

_LEAVE_REF_CANDIDATES = ("LEAVEREFNO", "leaveno", "leave_no", "objid")
_LEAVE_STATUS_CANDIDATES = ("leavestatus", "LEAVESTATUS", "status")
_LEAVE_DATE_CANDIDATES = ("LEAVEDATE", "leavedate", "leave_date")
_LEAVE_TYPE_CANDIDATES = ("LeaveName", "leavetypename", "leavetype")

_TRAVEL_REF_CANDIDATES = ("travelno", "travel_no", "TRAVELNO", "travel_objid", "objid")
_TRAVEL_STATUS_CANDIDATES = ("travelstatus", "TRAVELSTATUS", "status")
_TRAVEL_DATE_CANDIDATES = ("traveldate", "TRAVELDATE")

_CDO_REF_CANDIDATES = ("cdono", "cdo_no", "CDONO", "cdo_id", "id")
_CDO_STATUS_CANDIDATES = ("cdostatus", "CDOSTATUS")
_CDO_DATE_STATUS_CANDIDATES = ("cdodatestatus", "CDODATESTATUS")
_CDO_DATE_CANDIDATES = ("cdodate", "CDODATE")
_CDO_USEDATE_LIST_CANDIDATES = ("usedates", "useDates", "cdo_usedates", "dates")

_FIX_REF_CANDIDATES = ("fixid", "FIXID", "fixno")
_FIX_STATUS_CANDIDATES = ("fixstatus", "FIXSTATUS", "status")
_FIX_DATE_CANDIDATES = ("checktimedate", "CHECKTIMEDATE", "fixdate")

_HOLIDAY_NAME_CANDIDATES = ("holidayname", "HOLIDAYNAME", "name")
_HOLIDAY_DATE_CANDIDATES = ("HOLIDAYDATE", "holidaydate", "holiday_date", "HolidayDate", "date")
_HOLIDAY_RECURRING_CANDIDATES = ("isrecurring", "ISRECURRING", "is_recurring", "recurring")

_STATUS_ALIASES = {
    "approved": ApprovalStatus.APPROVED,
    "forapproval": ApprovalStatus.FOR_APPROVAL,
    "pending": ApprovalStatus.FOR_APPROVAL,
    "returned": ApprovalStatus.RETURNED,
    "cancelled": ApprovalStatus.CANCELLED,
    "canceled": ApprovalStatus.CANCELLED,
}
_TRUE_TEXT = {"1", "true", "yes", "y"}


def _pick_value(row: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    lowered = {str(key).lower(): key for key in row}
    for candidate in candidates:
        key = lowered.get(candidate.lower())
        if key is None:
            continue
        value = row[key]
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_credit(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite() or parsed < 0:
        return None
    return parsed


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (bytes, bytearray)):
        return any(value)
    return str(value).strip().lower() in _TRUE_TEXT


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def normalize_status(value: Any) -> ApprovalStatus:
    if isinstance(value, ApprovalStatus):
        return value
    text = _clean_text(value)
    if text is None:
        return ApprovalStatus.FOR_APPROVAL
    key = text.lower().replace(" ", "").replace("_", "")
    return _STATUS_ALIASES.get(key, ApprovalStatus.FOR_APPROVAL)


def _collect_dates(values: Iterable[Any], *, source: str, reference: str | None) -> tuple[date, ...]:
    dates: list[date] = []
    for value in values:
        parsed = extract_date(value)
        if parsed is None:
            logger.debug("Discarded unreadable %s date %r (ref=%s)", source, value, reference)
            continue
        if parsed not in dates:
            dates.append(parsed)
    return tuple(sorted(dates))


def _identifiers(
    row: Mapping[str, Any],
    *,
    obj_id_candidates: Sequence[str] = _EMP_OBJID_CANDIDATES,
    user_id_candidates: Sequence[str] = _USER_ID_CANDIDATES,
) -> tuple[set[str], set[str]]:
    obj_ids = {text for text in [_clean_text(_pick_value(row, obj_id_candidates))] if text}
    user_ids = {text for text in [_clean_text(_pick_value(row, user_id_candidates))] if text}
    return obj_ids, user_ids


def _has_owner(record: ExceptionRecord, source: str) -> bool:
    if record.emp_obj_ids or record.user_ids:
        return True
    logger.warning("Discarded %s record %s without an employee identifier", source, record.reference)
    return False


def punches_from_rows(rows: Iterable[Mapping[str, Any]], employee_key: Any) -> list[PunchEvent]:
    punches: list[PunchEvent] = []
    dropped = 0
    for row in rows:
        value = _pick_value(row, _PUNCH_TIME_CANDIDATES)
        if value is None or extract_date(value) is None or extract_clock(value) is None:
            dropped += 1
            continue
        punches.append(PunchEvent(employee_key=employee_key, timestamp=str(value)))
    if dropped:
        logger.debug("Dropped %s malformed punch rows for employee %s", dropped, employee_key)
    return punches


def _shift_mode(row: Mapping[str, Any]) -> str:
    return str(_pick_value(row, ("shifttimemode", "SHIFTTIMEMODE", "mode")) or "").strip().upper()


def _slot_window(
    row: Mapping[str, Any],
    prefix: str,
    slot: Slot,
    settings: Settings,
) -> SlotWindow:
    nominal = clock_to_minutes(_pick_value(row, (prefix,)))
    if nominal is None:
        return SlotWindow()
    window = SlotWindow(
        active=True,
        window_start=clock_to_minutes(_pick_value(row, (f"{prefix}_start",))),
        window_end=clock_to_minutes(_pick_value(row, (f"{prefix}_end",))),
        nominal=nominal,
    )
    bounds = resolve_bounds(window, slot, settings=settings)
    if bounds is None:
        return window
    return window.model_copy(update={"window_start": bounds[0], "window_end": bounds[1]})


def shift_from_assignments(
    rows: Iterable[Mapping[str, Any]],
    settings: Settings | None = None,
) -> ShiftWindow | None:
    """Combine assigned shift rows into one schedule.

    The most recent AM (or AMPM) row supplies the morning, the most recent PM
    (or AMPM) row supplies the afternoon. An AMPM row contributes only its
    check-in to the morning and its check-out to the afternoon, which leaves
    the shift in combined mode.
    """
    settings = settings or get_settings()
    assigned = [
        row
        for row in rows
        if _pick_value(row, ("is_used",)) is None or _to_bool(_pick_value(row, ("is_used",)))
    ]
    assigned.sort(
        key=lambda row: str(_pick_value(row, ("assignment_date", "createddate")) or ""),
        reverse=True,
    )

    am_row = next((row for row in assigned if _shift_mode(row) in {"AM", "AMPM"}), None)
    pm_row = next((row for row in assigned if _shift_mode(row) in {"PM", "AMPM"}), None)
    if am_row is None and pm_row is None:
        return None

    fields: dict[str, Any] = {}
    if am_row is not None:
        fields["am_in"] = _slot_window(am_row, "shift_checkin", Slot.AM_IN, settings)
        if _shift_mode(am_row) == "AM":
            fields["am_out"] = _slot_window(am_row, "shift_checkout", Slot.AM_OUT, settings)
    if pm_row is not None:
        if _shift_mode(pm_row) == "PM":
            fields["pm_in"] = _slot_window(pm_row, "shift_checkin", Slot.PM_IN, settings)
        fields["pm_out"] = _slot_window(pm_row, "shift_checkout", Slot.PM_OUT, settings)

    for mode, field_name in (("AM", "am_credit"), ("PM", "pm_credit"), ("AMPM", "ampm_credit")):
        source = next((row for row in assigned if _shift_mode(row) == mode), None)
        credit = _to_credit(_pick_value(source, ("credits", "CREDITS"))) if source else None
        if credit is not None:
            fields[field_name] = credit

    names: list[str] = []
    for row in assigned:
        name = _clean_text(_pick_value(row, ("shiftname", "SHIFTNAME")))
        if name and name not in names:
            names.append(name)
    if names:
        fields["name"] = " / ".join(names)

    shift = ShiftWindow(**fields)
    if not (shift.am_in.active or shift.pm_in.active or shift.pm_out.active):
        logger.info("Assigned shift rows carry no usable check-in times")
        return None
    return shift


def locators_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[OutOfOfficeRecord]:
    records: list[OutOfOfficeRecord] = []
    for row in rows:
        reference = _clean_text(_pick_value(row, _LOCATOR_REF_CANDIDATES))
        obj_ids, user_ids = _identifiers(row, user_id_candidates=_LOCATOR_USER_CANDIDATES)
        record = OutOfOfficeRecord(
            reference=reference,
            status=normalize_status(_pick_value(row, _LOCATOR_STATUS_CANDIDATES)),
            emp_obj_ids=obj_ids,
            user_ids=user_ids,
            dates=_collect_dates(
                [_pick_value(row, _LOCATOR_DATE_CANDIDATES)], source="locator", reference=reference
            ),
            destination=_clean_text(_pick_value(row, ("locdestination", "LOCDESTINATION"))),
            purpose=_clean_text(_pick_value(row, ("locpurpose", "LOCPURPOSE"))),
            departure=clock_to_minutes(_pick_value(row, _LOCATOR_DEPARTURE_CANDIDATES)),
            arrival=clock_to_minutes(_pick_value(row, _LOCATOR_ARRIVAL_CANDIDATES)),
        )
        if _has_owner(record, "locator"):
            records.append(record)
    return records


def _leave_dates(row: Mapping[str, Any]) -> list[Any]:
    nested = _pick_value(row, ("leaveDates", "leave_dates", "LEAVEDATES"))
    values: list[Any] = []
    for item in _as_list(nested):
        if isinstance(item, Mapping):
            values.append(_pick_value(item, _LEAVE_DATE_CANDIDATES))
        else:
            values.append(item)
    if not values:
        values.append(_pick_value(row, _LEAVE_DATE_CANDIDATES))
    return values


def leaves_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[LeaveRecord]:
    records: list[LeaveRecord] = []
    for row in rows:
        reference = _clean_text(_pick_value(row, _LEAVE_REF_CANDIDATES))
        obj_ids, user_ids = _identifiers(row)
        record = LeaveRecord(
            reference=reference,
            status=normalize_status(_pick_value(row, _LEAVE_STATUS_CANDIDATES)),
            emp_obj_ids=obj_ids,
            user_ids=user_ids,
            dates=_collect_dates(_leave_dates(row), source="leave", reference=reference),
            leave_type=_clean_text(_pick_value(row, _LEAVE_TYPE_CANDIDATES)),
        )
        if _has_owner(record, "leave"):
            records.append(record)
    return records


def _split_travel_dates(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    text = str(value).strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError:
            logger.debug("travel_dates is not valid JSON: %r", text)
        else:
            return _as_list(parsed)
    return [part for part in text.split(",") if part.strip()]


def _travel_dates(row: Mapping[str, Any]) -> list[Any]:
    values: list[Any] = []
    values.extend(_split_travel_dates(_pick_value(row, ("travel_dates", "travelDates"))))
    values.extend(_as_list(_pick_value(row, ("normalizedTravelDates",))))
    values.append(_pick_value(row, _TRAVEL_DATE_CANDIDATES))
    return [value for value in values if value is not None]


def _travel_participants(row: Mapping[str, Any]) -> tuple[set[str], set[str]]:
    obj_ids, user_ids = _identifiers(row)

    for employee in _as_list(_pick_value(row, ("employees",))):
        if isinstance(employee, Mapping):
            obj_id = _clean_text(_pick_value(employee, ("objid",) + _EMP_OBJID_CANDIDATES))
            user_id = _clean_text(_pick_value(employee, _USER_ID_CANDIDATES))
            if obj_id:
                obj_ids.add(obj_id)
            if user_id:
                user_ids.add(user_id)

    for obj_id in _as_list(_pick_value(row, ("participantEmpObjIds",))):
        text = _clean_text(obj_id)
        if text:
            obj_ids.add(text)
    for user_id in _as_list(_pick_value(row, ("participantUserIds",))):
        text = _clean_text(user_id)
        if text:
            user_ids.add(text)

    # "objid:name|objid:name"
    employees_data = _pick_value(row, ("employees_data",))
    if isinstance(employees_data, str):
        for entry in employees_data.split("|"):
            obj_id = entry.split(":")[0].strip()
            if obj_id:
                obj_ids.add(obj_id)

    return obj_ids, user_ids


def travels_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[TravelRecord]:
    records: list[TravelRecord] = []
    for row in rows:
        reference = _clean_text(_pick_value(row, _TRAVEL_REF_CANDIDATES))
        obj_ids, user_ids = _travel_participants(row)
        record = TravelRecord(
            reference=reference,
            status=normalize_status(_pick_value(row, _TRAVEL_STATUS_CANDIDATES)),
            emp_obj_ids=obj_ids,
            user_ids=user_ids,
            dates=_collect_dates(_travel_dates(row), source="travel", reference=reference),
            destination=_clean_text(_pick_value(row, ("traveldestination", "TRAVELDESTINATION"))),
            purpose=_clean_text(_pick_value(row, ("purpose", "travelpurpose"))),
        )
        if _has_owner(record, "travel"):
            records.append(record)
    return records


def cdo_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[CompDayOffRecord]:
    """One record per CDO use-date; a use-date without its own status inherits the CDO's."""
    records: list[CompDayOffRecord] = []
    for row in rows:
        reference = _clean_text(_pick_value(row, _CDO_REF_CANDIDATES))
        obj_ids, user_ids = _identifiers(row)
        parent_status = _pick_value(row, _CDO_STATUS_CANDIDATES)

        use_dates = _pick_value(row, _CDO_USEDATE_LIST_CANDIDATES)
        entries = [item for item in _as_list(use_dates) if isinstance(item, Mapping)] or [row]
        for entry in entries:
            status = _pick_value(entry, _CDO_DATE_STATUS_CANDIDATES) or parent_status
            record = CompDayOffRecord(
                reference=reference,
                status=normalize_status(status),
                emp_obj_ids=obj_ids,
                user_ids=user_ids,
                dates=_collect_dates(
                    [_pick_value(entry, _CDO_DATE_CANDIDATES)], source="CDO", reference=reference
                ),
            )
            if _has_owner(record, "CDO"):
                records.append(record)
    return records


def fix_logs_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[FixLogRecord]:
    records: list[FixLogRecord] = []
    for row in rows:
        reference = _clean_text(_pick_value(row, _FIX_REF_CANDIDATES))
        obj_ids, user_ids = _identifiers(row)
        record = FixLogRecord(
            reference=reference,
            status=normalize_status(_pick_value(row, _FIX_STATUS_CANDIDATES)),
            emp_obj_ids=obj_ids,
            user_ids=user_ids,
            dates=_collect_dates(
                [_pick_value(row, _FIX_DATE_CANDIDATES)], source="fix log", reference=reference
            ),
            am_in=clock_to_minutes(_pick_value(row, ("am_checkin", "AM_CHECKIN"))),
            am_out=clock_to_minutes(_pick_value(row, ("am_checkout", "AM_CHECKOUT"))),
            pm_in=clock_to_minutes(_pick_value(row, ("pm_checkin", "PM_CHECKIN"))),
            pm_out=clock_to_minutes(_pick_value(row, ("pm_checkout", "PM_CHECKOUT"))),
        )
        if _has_owner(record, "fix log"):
            records.append(record)
    return records


def holidays_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[HolidayRecord]:
    records: list[HolidayRecord] = []
    for row in rows:
        raw_date = _pick_value(row, _HOLIDAY_DATE_CANDIDATES)
        name = _clean_text(_pick_value(row, _HOLIDAY_NAME_CANDIDATES)) or ""
        if raw_date is None or extract_date(raw_date) is None:
            logger.debug("Discarded holiday %r without a readable date", name)
            continue
        raw_status = _pick_value(row, ("status", "STATUS"))
        active = raw_status is None or _to_bool(raw_status) or normalize_status(raw_status) is ApprovalStatus.APPROVED
        records.append(
            HolidayRecord(
                reference=_clean_text(_pick_value(row, ("id", "holidayid"))),
                status=ApprovalStatus.APPROVED if active else ApprovalStatus.CANCELLED,
                name=name,
                recurring=_to_bool(_pick_value(row, _HOLIDAY_RECURRING_CANDIDATES)),
                holiday_date=str(raw_date),
            )
        )
    return records
