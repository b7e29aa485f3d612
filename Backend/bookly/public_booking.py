"""
Public Booking API.

Customer-facing endpoints addressed by the business's public slug. None of
them require authentication.

    POST /businesses                          -> Create a business profile
    GET  /businesses/{slug}                   -> Profile + service catalog
    GET  /businesses/{slug}/available-slots   -> ["HH:MM", ...]
    POST /businesses/{slug}/book              -> Created appointment (Pending)

The slot list is advisory: /book re-validates against the live ledger and
may still answer CONFLICT.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .availability import resolve_slots
from .booking import book_appointment
from .businesses import create_business
from .core.db import get_session
from .core.responses import ErrorResponse
from .errors import BookingValidationError, NotFoundError
from .models import Customer, Service
from .schemas import (
    AppointmentResponse,
    BookingRequest,
    BusinessCreateRequest,
    BusinessResponse,
    PublicBusinessResponse,
    ServiceResponse,
    parse_iso_date,
)
from .tenancy import (
    BusinessContext,
    get_business_by_id,
    get_business_context_from_slug,
    get_service_by_id,
    list_services,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses", tags=["public-booking"])


@router.post("", response_model=BusinessResponse, status_code=status.HTTP_201_CREATED,
             responses={422: {"model": ErrorResponse}})
async def create_business_profile(
    request: BusinessCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create a business; the public slug is derived from its name."""
    business = await create_business(session, request)
    return BusinessResponse.from_model(business)


@router.get("/{slug}", response_model=PublicBusinessResponse,
            responses={404: {"model": ErrorResponse}})
async def get_public_business(
    ctx: BusinessContext = Depends(get_business_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    business = await get_business_by_id(session, ctx.business_id)
    services = await list_services(session, ctx.business_id)
    return PublicBusinessResponse(
        business=BusinessResponse.from_model(business),
        services=[ServiceResponse.from_model(s) for s in services],
    )


@router.get("/{slug}/available-slots", response_model=list[str],
            responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}})
async def get_available_slots(
    service_id: int = Query(..., alias="serviceId"),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    ctx: BusinessContext = Depends(get_business_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    """
    Bookable start times for a service on a date, ascending.

    A closed day and a fully booked day both yield an empty list.
    """
    try:
        day = parse_iso_date(date)
    except ValueError as e:
        raise BookingValidationError(str(e), details={"field": "date"})

    business = await get_business_by_id(session, ctx.business_id)
    service = await get_service_by_id(session, ctx.business_id, service_id)
    if not service:
        raise NotFoundError("Service not found", details={"serviceId": service_id})

    resolution = await resolve_slots(session, business, service, day)
    if resolution.closed:
        logger.debug(f"{ctx.slug} is closed on {day}")
    return resolution.slots


@router.post("/{slug}/book", response_model=AppointmentResponse,
             status_code=status.HTTP_201_CREATED,
             responses={
                 404: {"model": ErrorResponse},
                 409: {"model": ErrorResponse},
                 422: {"model": ErrorResponse},
             })
async def book_public_appointment(
    request: BookingRequest,
    ctx: BusinessContext = Depends(get_business_context_from_slug),
    session: AsyncSession = Depends(get_session),
):
    """Book an appointment as a customer. The appointment starts Pending."""
    appointment = await book_appointment(session, ctx.business_id, request)
    customer = await session.get(Customer, appointment.customer_id)
    service = await session.get(Service, appointment.service_id)
    return AppointmentResponse.from_model(appointment, customer, service)
