"""
Booking transaction.

Validates and commits new appointments (and moves of existing ones) so that
at most one active appointment ever occupies a given stretch of a business's
time. Three layers serialize writers for the same business and date:

1. an in-process asyncio.Lock per (business_id, date),
2. a row lock on the business inside the database transaction,
3. the partial unique index on (business_id, date, time) for active rows;
   a violation is reported as a slot conflict.

Availability is always re-checked inside the serialized section; slot lists
shown to a customer earlier may be stale.
"""

import asyncio
import logging
import uuid
import weakref
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .availability import ensure_slot_bookable
from .customers import find_or_create_customer
from .errors import InvalidTransitionError, NotFoundError, SlotConflictError
from .models import ACTIVE_SLOT_INDEX, Appointment, AppointmentStatus, Business
from .schemas import AppointmentUpdateRequest, BookingRequest, parse_clock_time, parse_iso_date
from .tenancy.context import resolve_business
from .tenancy.queries import get_appointment_by_id, get_service_by_id, lock_business

logger = logging.getLogger(__name__)


class SlotLocks:
    """Per-(business, date) asyncio locks, dropped once nobody holds them."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[tuple[int, date], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def get(self, business_id: int, day: date) -> asyncio.Lock:
        key = (business_id, day)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, business_id: int, day: date) -> AsyncIterator[None]:
        lock = self.get(business_id, day)
        async with lock:
            yield


slot_locks = SlotLocks()


async def _lock_ledger(session: AsyncSession, business: Business) -> Business:
    locked = await lock_business(session, business.id)
    if not locked:
        raise NotFoundError("Business not found", details={"business": str(business.id)})
    return locked


_SQLITE_SLOT_COLUMNS = "appointments.business_id, appointments.date, appointments.time"


def is_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    # PostgreSQL names the index; SQLite lists its columns.
    return ACTIVE_SLOT_INDEX in message or _SQLITE_SLOT_COLUMNS in message


async def _commit_slot(session: AsyncSession, appointment: Appointment) -> None:
    """Flush and commit, mapping the active-slot index violation to a conflict."""
    business_id = appointment.business_id
    slot = f"{appointment.date} {appointment.time:%H:%M}"
    try:
        await session.flush()
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_slot_violation(exc):
            raise
        logger.warning(
            f"Slot constraint rejected appointment for business_id={business_id} at {slot}: {exc.orig}"
        )
        raise SlotConflictError(
            "This time slot is already booked",
            details={"slot": slot},
        ) from exc


async def book_appointment(
    session: AsyncSession,
    business_ref: int | str,
    request: BookingRequest,
) -> Appointment:
    """
    Book an appointment for a business identified by id or public slug.

    Steps:
        1. Resolve the business (NotFoundError)
        2. Resolve the service within that business (NotFoundError)
        3. Re-check the slot against the live ledger (ClosedDayError, SlotConflictError)
        4. Find or create the customer by phone/email
        5. Insert the appointment as Pending

    Steps 3-5 run inside one serialized transaction. The session is
    committed on success and rolled back on any failure.
    """
    business = await resolve_business(session, business_ref)
    service = await get_service_by_id(session, business.id, request.service_id)
    if not service:
        raise NotFoundError("Service not found", details={"serviceId": request.service_id})

    booking_date = request.booking_date
    start_time = request.start_time

    async with slot_locks.hold(business.id, booking_date):
        try:
            business = await _lock_ledger(session, business)
            await ensure_slot_bookable(
                session, business, booking_date, start_time, service.duration_minutes
            )
            customer = await find_or_create_customer(
                session,
                name=request.customer_name,
                phone=request.customer_phone,
                email=request.customer_email,
            )
        except Exception:
            await session.rollback()
            raise

        appointment = Appointment(
            business_id=business.id,
            customer_id=customer.id,
            service_id=service.id,
            date=booking_date,
            time=start_time,
            duration_minutes=service.duration_minutes,
            status=AppointmentStatus.PENDING,
            notes=request.notes,
        )
        session.add(appointment)
        await _commit_slot(session, appointment)

    await session.refresh(appointment)
    logger.info(
        f"Booked appointment {appointment.id} for business_id={business.id} "
        f"service_id={service.id} on {booking_date} at {request.time}"
    )
    return appointment


async def reschedule_appointment(
    session: AsyncSession,
    business_id: int,
    appointment_id: uuid.UUID,
    changes: AppointmentUpdateRequest,
) -> Appointment:
    """
    Move an appointment to a new date/time and/or edit its notes.

    Only active appointments can move; the new slot is validated like a new
    booking, ignoring the appointment's own current interval.
    """
    appointment = await get_appointment_by_id(session, business_id, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found", details={"appointmentId": str(appointment_id)})

    fields = changes.model_fields_set
    if "notes" in fields:
        appointment.notes = changes.notes

    new_date = parse_iso_date(changes.date) if changes.date else appointment.date
    new_time = parse_clock_time(changes.time) if changes.time else appointment.time
    moving = new_date != appointment.date or new_time != appointment.time

    if not moving:
        await session.commit()
        await session.refresh(appointment)
        return appointment

    if not appointment.is_active():
        current = appointment.status.value
        await session.rollback()
        raise InvalidTransitionError(
            f"A {current} appointment cannot be rescheduled",
            details={"status": current},
        )

    # Lock both days so a move cannot race bookings on either.
    days = sorted({appointment.date, new_date})
    async with slot_locks.hold(business_id, days[0]):
        async with _maybe_hold(business_id, days[1] if len(days) > 1 else None):
            try:
                business = await resolve_business(session, business_id)
                business = await _lock_ledger(session, business)
                await ensure_slot_bookable(
                    session,
                    business,
                    new_date,
                    new_time,
                    appointment.duration_minutes,
                    exclude_appointment_id=appointment.id,
                )
            except Exception:
                await session.rollback()
                raise

            appointment.date = new_date
            appointment.time = new_time
            await _commit_slot(session, appointment)

    await session.refresh(appointment)
    logger.info(f"Rescheduled appointment {appointment.id} to {new_date} at {new_time:%H:%M}")
    return appointment


@asynccontextmanager
async def _maybe_hold(business_id: int, day: Optional[date]) -> AsyncIterator[None]:
    if day is None:
        yield
        return
    async with slot_locks.hold(business_id, day):
        yield
