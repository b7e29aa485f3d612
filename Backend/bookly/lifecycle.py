"""
Appointment lifecycle.

    Pending ──► Confirmed ──► Completed
       │
       └──────► Rejected

Rejected and Completed are terminal. Every transition is owner-initiated and
only touches the status and updated_at. Deletion bypasses the graph.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from .errors import InvalidTransitionError, NotFoundError
from .models import Appointment, AppointmentStatus
from .tenancy.queries import get_appointment_by_id

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.REJECTED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def validate_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change appointment status from {current.value} to {target.value}",
            details={
                "from": current.value,
                "to": target.value,
                "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[current]),
            },
        )


async def transition_appointment(
    session: AsyncSession,
    business_id: int,
    appointment_id: uuid.UUID,
    target: AppointmentStatus,
) -> Appointment:
    """
    Apply an owner-initiated status change.

    No transition moves an appointment from inactive back to active, so the
    ledger's availability never grows new occupants here.
    """
    appointment = await get_appointment_by_id(session, business_id, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found", details={"appointmentId": str(appointment_id)})

    current = appointment.status
    validate_transition(current, target)

    appointment.status = target
    await session.commit()
    await session.refresh(appointment)

    logger.info(f"Appointment {appointment.id} status {current.value} -> {target.value}")
    return appointment


async def delete_appointment(
    session: AsyncSession,
    business_id: int,
    appointment_id: uuid.UUID,
) -> None:
    """Hard-delete an appointment in any state."""
    appointment = await get_appointment_by_id(session, business_id, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found", details={"appointmentId": str(appointment_id)})

    await session.delete(appointment)
    await session.commit()
    logger.info(f"Deleted appointment {appointment_id} for business_id={business_id}")
