"""
Availability resolution.

Slots are derived from the business's configured working hours for the
requested weekday, stepped at the configured granularity, and only offered
when the full service duration fits before closing. A slot is removed when
its [start, start + duration) interval overlaps any active (Pending or
Confirmed) appointment of the same business on that date, regardless of
which service the existing appointment is for.

The enumeration itself is a pure function of (working window, duration,
booked intervals); `resolve_slots` only loads the ledger and delegates.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .core.config import get_settings
from .errors import ClosedDayError, SlotConflictError
from .models import Appointment, Business, Service
from .tenancy.queries import list_active_appointments_on

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class BookedInterval:
    """Half-open [start, end) interval in minutes since midnight."""
    start: int
    end: int


@dataclass(frozen=True)
class WorkingWindow:
    open_at: int
    close_at: int


@dataclass
class SlotResolution:
    """Outcome of a slot lookup; `closed` distinguishes a closed day from a full one."""
    slots: List[str] = field(default_factory=list)
    closed: bool = False

    @property
    def fully_booked(self) -> bool:
        return not self.closed and not self.slots


def overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def parse_clock(value: str) -> int:
    """Parse "HH:MM" (24h) into minutes since midnight."""
    match = _CLOCK_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Time must be in HH:MM format (24-hour), got {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_of(value: time) -> int:
    return value.hour * 60 + value.minute


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def working_window(working_hours: Optional[dict], day: date) -> Optional[WorkingWindow]:
    """
    Look up the opening window for the weekday of `day`.

    Returns None when the weekday is absent, disabled, or misconfigured
    (unparseable times or start not before end).
    """
    entry = (working_hours or {}).get(weekday_name(day))
    if not entry or not entry.get("enabled"):
        return None
    try:
        open_at = parse_clock(entry.get("start", ""))
        close_at = parse_clock(entry.get("end", ""))
    except ValueError:
        logger.warning(f"Ignoring malformed working hours for {weekday_name(day)}: {entry}")
        return None
    if open_at >= close_at:
        return None
    return WorkingWindow(open_at=open_at, close_at=close_at)


def booked_intervals(appointments: Iterable[Appointment]) -> List[BookedInterval]:
    intervals = []
    for appointment in appointments:
        start = minutes_of(appointment.time)
        intervals.append(BookedInterval(start=start, end=start + appointment.duration_minutes))
    return intervals


def make_slots(
    window: WorkingWindow,
    duration_minutes: int,
    booked: Iterable[BookedInterval],
    step_minutes: int,
) -> List[str]:
    """Enumerate free slot start times, ascending."""
    booked = list(booked)
    slots: list[str] = []
    cursor = window.open_at

    while cursor + duration_minutes <= window.close_at:
        slot_end = cursor + duration_minutes
        conflict = any(overlap(cursor, slot_end, b.start, b.end) for b in booked)
        if not conflict:
            slots.append(format_clock(cursor))
        cursor += step_minutes

    return slots


def check_slot(
    window: Optional[WorkingWindow],
    start_minutes: int,
    duration_minutes: int,
    booked: Iterable[BookedInterval],
) -> None:
    """
    Validate one requested start time against hours and the ledger.

    Raises ClosedDayError when the day is closed or the service would not
    fit inside the window, SlotConflictError on any overlap.
    """
    if window is None:
        raise ClosedDayError("We're closed on this day")

    end_minutes = start_minutes + duration_minutes
    if start_minutes < window.open_at or end_minutes > window.close_at:
        raise ClosedDayError(
            "Requested time is outside working hours",
            details={
                "open": format_clock(window.open_at),
                "close": format_clock(window.close_at),
            },
        )

    for interval in booked:
        if overlap(start_minutes, end_minutes, interval.start, interval.end):
            raise SlotConflictError(
                "This time slot is already booked",
                details={"time": format_clock(start_minutes)},
            )


async def resolve_slots(
    session: AsyncSession,
    business: Business,
    service: Service,
    day: date,
    step_minutes: Optional[int] = None,
) -> SlotResolution:
    """Compute bookable start times for `service` on `day` from the current ledger."""
    window = working_window(business.working_hours, day)
    if window is None:
        return SlotResolution(closed=True)

    step = step_minutes or get_settings().slot_interval_minutes
    appointments = await list_active_appointments_on(session, business.id, day)
    slots = make_slots(window, service.duration_minutes, booked_intervals(appointments), step)
    return SlotResolution(slots=slots)


async def ensure_slot_bookable(
    session: AsyncSession,
    business: Business,
    day: date,
    start: time,
    duration_minutes: int,
    exclude_appointment_id: Optional[uuid.UUID] = None,
) -> None:
    """Re-check one slot against the ledger as it is right now."""
    appointments = await list_active_appointments_on(
        session, business.id, day, exclude_appointment_id=exclude_appointment_id
    )
    check_slot(
        working_window(business.working_hours, day),
        minutes_of(start),
        duration_minutes,
        booked_intervals(appointments),
    )
