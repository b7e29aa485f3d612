"""
Tenant-scoped query helpers.

These functions provide safe, tenant-isolated database queries.
ALL queries for tenant data (Service, Appointment) MUST use these helpers or
include an explicit business_id filter.

Usage:
    from bookly.tenancy.queries import get_service_by_id, list_services, scoped_select

    service = await get_service_by_id(session, ctx.business_id, service_id)
    services = await list_services(session, ctx.business_id)

    # Or using composable helpers:
    stmt = scoped_select(Service, business_id).where(Service.name == "Haircut")
"""

import uuid
from datetime import date
from typing import Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from ..models import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentStatus,
    Business,
    Customer,
    Service,
)

T = TypeVar("T", bound=DeclarativeBase)


# ────────────────────────────────────────────────────────────────
# Composable Query Helpers
# ────────────────────────────────────────────────────────────────

def scoped_select(model: Type[T], business_id: int) -> Select:
    """
    Create a SELECT statement pre-filtered by business_id.

    Usage:
        stmt = scoped_select(Service, ctx.business_id).order_by(Service.name)
        result = await session.execute(stmt)
    """
    return select(model).where(model.business_id == business_id)


def tenant_filter(model: Type[T], business_id: int):
    """Return a SQLAlchemy filter clause for business_id."""
    return model.business_id == business_id


# ────────────────────────────────────────────────────────────────
# Business Queries
# ────────────────────────────────────────────────────────────────

async def get_business_by_id(session: AsyncSession, business_id: int) -> Optional[Business]:
    result = await session.execute(select(Business).where(Business.id == business_id))
    return result.scalar_one_or_none()


async def get_business_by_slug(session: AsyncSession, slug: str) -> Optional[Business]:
    result = await session.execute(select(Business).where(Business.slug == slug))
    return result.scalar_one_or_none()


async def lock_business(session: AsyncSession, business_id: int) -> Optional[Business]:
    """
    Re-read a business with a row lock held until the transaction ends.

    Serializes ledger writers per business on PostgreSQL; SQLite ignores
    FOR UPDATE and relies on its single-writer lock instead.
    """
    result = await session.execute(
        select(Business).where(Business.id == business_id).with_for_update()
    )
    return result.scalar_one_or_none()


# ────────────────────────────────────────────────────────────────
# Service Queries (Tenant-Scoped)
# ────────────────────────────────────────────────────────────────

async def get_service_by_id(
    session: AsyncSession,
    business_id: int,
    service_id: int,
) -> Optional[Service]:
    """Get a service by ID, scoped to business."""
    result = await session.execute(
        select(Service).where(
            Service.id == service_id,
            Service.business_id == business_id,
        )
    )
    return result.scalar_one_or_none()


async def list_services(session: AsyncSession, business_id: int) -> Sequence[Service]:
    """List all services for a business."""
    result = await session.execute(
        scoped_select(Service, business_id).order_by(Service.id)
    )
    return result.scalars().all()


async def find_service_by_name(
    session: AsyncSession,
    business_id: int,
    name: str,
) -> Optional[Service]:
    """Exact-name lookup, scoped to business."""
    result = await session.execute(
        select(Service).where(
            Service.business_id == business_id,
            Service.name == name.strip(),
        )
    )
    return result.scalar_one_or_none()


# ────────────────────────────────────────────────────────────────
# Appointment Queries (Tenant-Scoped)
# ────────────────────────────────────────────────────────────────

async def get_appointment_by_id(
    session: AsyncSession,
    business_id: int,
    appointment_id: uuid.UUID,
) -> Optional[Appointment]:
    """Get an appointment by ID, scoped to business."""
    result = await session.execute(
        select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id,
        )
    )
    return result.scalar_one_or_none()


async def list_active_appointments_on(
    session: AsyncSession,
    business_id: int,
    day: date,
    exclude_appointment_id: Optional[uuid.UUID] = None,
) -> Sequence[Appointment]:
    """
    All Pending/Confirmed appointments of a business on one date.

    Not filtered by service: a business's time is one shared resource.
    """
    query = select(Appointment).where(
        Appointment.business_id == business_id,
        Appointment.date == day,
        Appointment.status.in_(ACTIVE_STATUSES),
    )
    if exclude_appointment_id is not None:
        query = query.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(query.order_by(Appointment.time))
    return result.scalars().all()


async def list_appointments(
    session: AsyncSession,
    business_id: int,
    status: Optional[AppointmentStatus] = None,
    day: Optional[date] = None,
) -> Sequence[tuple[Appointment, Optional[Customer], Optional[Service]]]:
    """
    List appointments with their customer and service, ordered by date/time.

    Service is outer-joined; a deleted service yields None.
    """
    query = (
        select(Appointment, Customer, Service)
        .outerjoin(Customer, Customer.id == Appointment.customer_id)
        .outerjoin(
            Service,
            (Service.id == Appointment.service_id) & (Service.business_id == Appointment.business_id),
        )
        .where(Appointment.business_id == business_id)
    )
    if status is not None:
        query = query.where(Appointment.status == status)
    if day is not None:
        query = query.where(Appointment.date == day)
    result = await session.execute(query.order_by(Appointment.date, Appointment.time))
    return [tuple(row) for row in result.all()]


# ────────────────────────────────────────────────────────────────
# Customer Queries
# ────────────────────────────────────────────────────────────────

async def list_customers_for_business(
    session: AsyncSession,
    business_id: int,
) -> Sequence[Customer]:
    """Distinct customers appearing in a business's appointments."""
    customer_ids = (
        select(Appointment.customer_id)
        .where(Appointment.business_id == business_id)
        .distinct()
    )
    result = await session.execute(
        select(Customer).where(Customer.id.in_(customer_ids)).order_by(Customer.id)
    )
    return result.scalars().all()
