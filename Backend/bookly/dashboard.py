"""Owner dashboard statistics."""

import logging
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .core.config import get_settings
from .models import Appointment, AppointmentStatus, Customer, Service
from .schemas import AppointmentResponse, DashboardStatsResponse
from .tenancy.queries import list_appointments

logger = logging.getLogger(__name__)


def local_now(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(ZoneInfo(tz_name or get_settings().timezone))


def month_start_utc(now: datetime) -> datetime:
    """First instant of `now`'s calendar month, expressed in UTC."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(timezone.utc)


async def compute_dashboard_stats(
    session: AsyncSession,
    business_id: int,
    now: Optional[datetime] = None,
) -> DashboardStatsResponse:
    now = now or local_now()
    today: date = now.date()

    total = await session.scalar(
        select(func.count(Appointment.id)).where(Appointment.business_id == business_id)
    )

    today_count = await session.scalar(
        select(func.count(Appointment.id)).where(
            Appointment.business_id == business_id,
            Appointment.date == today,
        )
    )

    business_customers = (
        select(Appointment.customer_id)
        .where(Appointment.business_id == business_id)
        .distinct()
    )
    new_customers = await session.scalar(
        select(func.count(Customer.id)).where(
            Customer.id.in_(business_customers),
            Customer.created_at >= month_start_utc(now),
        )
    )

    # Completed appointments whose service has since been deleted contribute nothing.
    revenue = await session.scalar(
        select(func.coalesce(func.sum(Service.price_cents), 0))
        .select_from(Appointment)
        .join(
            Service,
            (Service.id == Appointment.service_id) & (Service.business_id == Appointment.business_id),
        )
        .where(
            Appointment.business_id == business_id,
            Appointment.status == AppointmentStatus.COMPLETED,
        )
    )

    rows = await list_appointments(session, business_id, day=today)
    schedule = [AppointmentResponse.from_model(a, c, s) for a, c, s in rows]

    logger.debug(f"Dashboard stats for business_id={business_id}: total={total} today={today_count}")
    return DashboardStatsResponse(
        total_appointments=total or 0,
        today_appointments=today_count or 0,
        new_customers=new_customers or 0,
        revenue_cents=int(revenue or 0),
        today_schedule=schedule,
    )
