from __future__ import annotations

import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import BookingValidationError
from .models import Customer

logger = logging.getLogger(__name__)


def normalize_phone(phone: str | None) -> str:
    """Strip formatting, keeping digits and a leading +."""
    if not phone:
        return ""
    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if not digits:
        return ""
    return f"+{digits}" if phone.startswith("+") else digits


def normalize_email(email: str | None) -> str | None:
    if not email or not email.strip():
        return None
    return email.strip().lower()


async def find_customer(
    session: AsyncSession, phone: str, email: str | None = None
) -> Customer | None:
    """Match on phone first, then on email. Oldest record wins within each key."""
    result = await session.execute(
        select(Customer).where(Customer.phone == phone).order_by(Customer.id).limit(1)
    )
    customer = result.scalar_one_or_none()
    if customer or not email:
        return customer

    result = await session.execute(
        select(Customer).where(Customer.email == email).order_by(Customer.id).limit(1)
    )
    return result.scalar_one_or_none()


async def find_or_create_customer(
    session: AsyncSession, name: str, phone: str, email: str | None = None
) -> Customer:
    """
    Resolve a customer by phone/email, creating one when nothing matches.

    An existing customer is returned as stored; a different name on the new
    request does not overwrite it. Dedup is global across businesses.
    Flushes but does not commit: the caller owns the transaction.
    """
    name = (name or "").strip()
    normalized_phone = normalize_phone(phone)
    normalized_email = normalize_email(email)
    if not name:
        raise BookingValidationError("Customer name is required", details={"field": "customerName"})
    if not normalized_phone:
        raise BookingValidationError("Customer phone is required", details={"field": "customerPhone"})

    customer = await find_customer(session, normalized_phone, normalized_email)
    if customer:
        return customer

    customer = Customer(name=name, phone=normalized_phone, email=normalized_email)
    session.add(customer)
    await session.flush()
    logger.info(f"Created customer id={customer.id}")
    return customer
