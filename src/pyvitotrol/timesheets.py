"""Weekly time programs (timesheets).

A timesheet maps each weekday to a list of :class:`Timeslot` on-intervals.
Times are packed as ``hours * 100 + minutes`` (``630`` is 06:30), which
keeps them sortable and readable on the wire.

When writing, days may be given as a single code (``"mon"``) or as an
inclusive range (``"mon-fri"``, ``"sat-mon"`` wrapping past Sunday). Each
weekday may be covered by one key only.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .constants import TIMESHEET_SLOT_VALUE, WEEKDAYS
from .exceptions import (
    BadDayError,
    BadDayRangeError,
    DuplicateDayError,
    UnknownTimesheetError,
    VitotrolValidationError,
)

_WIRE_DAYS: tuple[str, ...] = tuple(day.upper() for day in WEEKDAYS)
_WIRE_DAYS_INDEX: dict[str, int] = {day: idx for idx, day in enumerate(_WIRE_DAYS)}


@dataclass(frozen=True)
class Timeslot:
    """One on-interval of a day, in packed ``HHMM`` times."""

    from_: int
    to: int

    def __str__(self) -> str:
        return f"{self.from_ // 100}:{self.from_ % 100:02d} - {self.to // 100}:{self.to % 100:02d}"

    def to_dict(self) -> dict[str, int]:
        """Serialize to the JSON form ``{"from": ..., "to": ...}``."""
        return {"from": self.from_, "to": self.to}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Timeslot:
        """Build a slot from its JSON form.

        Raises:
            VitotrolValidationError: If a bound is missing or not an integer
        """
        try:
            from_, to = data["from"], data["to"]
        except (KeyError, TypeError) as err:
            raise VitotrolValidationError(f"Bad time slot {data!r}") from err
        for bound in (from_, to):
            if isinstance(bound, bool) or not isinstance(bound, int) or not 0 <= bound <= 0xFFFF:
                raise VitotrolValidationError(f"Bad time slot {data!r}")
        return cls(from_, to)


Timesheet = dict[str, list[Timeslot]]


@dataclass(frozen=True)
class TimesheetRef:
    """Reference description of a timesheet."""

    name: str
    doc: str

    def __str__(self) -> str:
        return f"{self.name}: {self.doc}"


HOT_WATER_LOOP_TIMESHEET = 7193
HOT_WATER_TIMESHEET = 7192
HEATING_TIMESHEET = 7191

TIMESHEETS_REF: dict[int, TimesheetRef] = {
    HOT_WATER_LOOP_TIMESHEET: TimesheetRef(
        "HotWaterLoopTimesheet",
        "Time program for domestic hot water recirculation pump",
    ),
    HOT_WATER_TIMESHEET: TimesheetRef(
        "HotWaterTimesheet",
        "Time program for domestic hot water heating",
    ),
    HEATING_TIMESHEET: TimesheetRef(
        "HeatingTimesheet",
        "Time program for central heating",
    ),
}

TIMESHEETS_NAMES: dict[str, int] = {ref.name: tid for tid, ref in TIMESHEETS_REF.items()}


def resolve_timesheet(name_or_id: str) -> int:
    """Resolve a timesheet name or numeric ID.

    Raises:
        UnknownTimesheetError: If the timesheet is not in the catalog
    """
    if name_or_id in TIMESHEETS_NAMES:
        return TIMESHEETS_NAMES[name_or_id]
    try:
        timesheet_id = int(name_or_id, 0)
    except ValueError:
        raise UnknownTimesheetError(name_or_id) from None
    if timesheet_id not in TIMESHEETS_REF:
        raise UnknownTimesheetError(name_or_id)
    return timesheet_id


def sort_slots(slots: list[Timeslot]) -> list[Timeslot]:
    """Sort slots in place by start time (stable) and return the list."""
    slots.sort(key=lambda slot: slot.from_)
    return slots


def parse_day_spec(spec: str) -> tuple[int, ...]:
    """Expand a day key into weekday indices (Monday is 0).

    Args:
        spec: ``"mon"`` or ``"D1-D2"``, case-insensitive. A range whose
            start comes after its end wraps past Sunday.

    Returns:
        Weekday indices in expansion order

    Raises:
        BadDayError: If a single key is not a weekday code
        BadDayRangeError: If a range does not name two weekdays

    Example:
        >>> parse_day_spec("sat-mon")
        (5, 6, 0)
    """
    key = spec.upper()
    if key in _WIRE_DAYS_INDEX:
        return (_WIRE_DAYS_INDEX[key],)

    parts = key.split("-", 1)
    if len(parts) != 2:
        raise BadDayError(key)
    first, last = (_WIRE_DAYS_INDEX.get(part) for part in parts)
    if first is None or last is None:
        raise BadDayRangeError(key)
    if first > last:
        last += 7
    return tuple(idx % 7 for idx in range(first, last + 1))


def expand_timesheet(data: Mapping[str, Iterable[Timeslot]]) -> dict[int, list[Timeslot]]:
    """Expand day keys of a timesheet to one sorted slot list per weekday.

    Every key is parsed before any day is assigned, then days are assigned
    in input order so the reported duplicate does not depend on anything
    but the order of ``data``.

    Raises:
        BadDayError: If a key is not a weekday code
        BadDayRangeError: If a range key is invalid
        DuplicateDayError: If a weekday is covered by two keys
    """
    specs = [(parse_day_spec(key), slots) for key, slots in data.items()]

    days: dict[int, list[Timeslot]] = {}
    for indices, slots in specs:
        sorted_slots = sort_slots(list(slots))
        for idx in indices:
            if idx in days:
                raise DuplicateDayError(_WIRE_DAYS[idx])
            days[idx] = list(sorted_slots)
    return days


def encode_timesheet_slots(data: Mapping[str, Iterable[Timeslot]]) -> str:
    """Encode a timesheet as ``<Schaltzeit>`` elements.

    Days are emitted Monday to Sunday whatever the order of ``data``;
    slots of a day are numbered from 0 in start time order.

    Raises:
        BadDayError: If a key is not a weekday code
        BadDayRangeError: If a range key is invalid
        DuplicateDayError: If a weekday is covered by two keys
    """
    days = expand_timesheet(data)

    parts: list[str] = []
    for idx, day in enumerate(_WIRE_DAYS):
        for position, slot in enumerate(days.get(idx, ())):
            parts.append(
                "<Schaltzeit>"
                f"<Wochentag>{day}</Wochentag>"
                f"<ZeitVon>{slot.from_:04d}</ZeitVon>"
                f"<ZeitBis>{slot.to:04d}</ZeitBis>"
                f"<Wert>{TIMESHEET_SLOT_VALUE}</Wert>"
                f"<Position>{position}</Position>"
                "</Schaltzeit>"
            )
    return "".join(parts)


def decode_timesheet(entries: Iterable[tuple[str, int, int]]) -> Timesheet:
    """Group ``(weekday, from, to)`` wire entries by lowercase day, sorted."""
    timesheet: Timesheet = {}
    for day, from_, to in entries:
        timesheet.setdefault(day.lower(), []).append(Timeslot(from_, to))
    for slots in timesheet.values():
        sort_slots(slots)
    return timesheet


def timesheet_to_json(timesheet: Mapping[str, Iterable[Timeslot]]) -> str:
    """Render a timesheet as JSON, e.g. ``{"mon": [{"from": 600, "to": 2200}]}``."""
    return json.dumps(
        {day: [slot.to_dict() for slot in slots] for day, slots in timesheet.items()}
    )


def timesheet_from_json(text: str) -> Timesheet:
    """Parse the JSON form produced by :func:`timesheet_to_json`.

    Raises:
        VitotrolValidationError: If the JSON does not describe a timesheet
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise VitotrolValidationError(f"Bad timesheet JSON: {err}") from err
    if not isinstance(data, dict):
        raise VitotrolValidationError("Bad timesheet JSON: an object is expected")

    timesheet: Timesheet = {}
    for day, slots in data.items():
        if not isinstance(slots, list):
            raise VitotrolValidationError(f"Bad timesheet JSON: `{day}' is not a list")
        timesheet[day] = [Timeslot.from_dict(slot) for slot in slots]
    return timesheet
