"""
Owner routes.

Every endpoint requires a Bearer JWT naming the owner's business; all reads
and writes are scoped to that business.

    GET|PUT    /owner/profile
    GET|POST   /owner/services
    PUT|DELETE /owner/services/{service_id}
    GET|POST   /owner/appointments
    PUT|DELETE /owner/appointments/{appointment_id}
    PATCH      /owner/appointments/{appointment_id}/status
    GET        /owner/customers
    GET        /owner/dashboard/stats
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .booking import book_appointment, reschedule_appointment
from .businesses import update_business_profile
from .catalog import create_service, delete_service, get_services, update_service
from .core.db import get_session
from .core.request_context import OwnerContext, get_owner_context
from .core.responses import ErrorResponse
from .dashboard import compute_dashboard_stats
from .errors import BookingValidationError
from .lifecycle import delete_appointment, transition_appointment
from .models import AppointmentStatus, Customer, Service
from .schemas import (
    AppointmentResponse,
    AppointmentUpdateRequest,
    BookingRequest,
    BusinessResponse,
    BusinessUpdateRequest,
    CustomerResponse,
    DashboardStatsResponse,
    ServiceCreateRequest,
    ServiceResponse,
    ServiceUpdateRequest,
    StatusUpdateRequest,
    parse_iso_date,
)
from .tenancy import get_business_by_id, list_appointments, list_customers_for_business

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/owner",
    tags=["owner"],
    responses={401: {"model": ErrorResponse}},
)


async def _appointment_response(session: AsyncSession, appointment) -> AppointmentResponse:
    customer = await session.get(Customer, appointment.customer_id)
    service = await session.get(Service, appointment.service_id)
    if service is not None and service.business_id != appointment.business_id:
        service = None
    return AppointmentResponse.from_model(appointment, customer, service)


# ────────────────────────────────────────────────────────────────
# Profile
# ────────────────────────────────────────────────────────────────

@router.get("/profile", response_model=BusinessResponse)
async def get_profile(
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    business = await get_business_by_id(session, ctx.business_id)
    return BusinessResponse.from_model(business)


@router.put("/profile", response_model=BusinessResponse,
            responses={409: {"model": ErrorResponse}})
async def update_profile(
    request: BusinessUpdateRequest,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    business = await update_business_profile(session, ctx.business_id, request)
    return BusinessResponse.from_model(business)


# ────────────────────────────────────────────────────────────────
# Services
# ────────────────────────────────────────────────────────────────

@router.get("/services", response_model=list[ServiceResponse])
async def owner_list_services(
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    services = await get_services(session, ctx.business_id)
    return [ServiceResponse.from_model(s) for s in services]


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED,
             responses={409: {"model": ErrorResponse}})
async def owner_create_service(
    request: ServiceCreateRequest,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    service = await create_service(session, ctx.business_id, request)
    return ServiceResponse.from_model(service)


@router.put("/services/{service_id}", response_model=ServiceResponse,
            responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def owner_update_service(
    service_id: int,
    request: ServiceUpdateRequest,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    service = await update_service(session, ctx.business_id, service_id, request)
    return ServiceResponse.from_model(service)


@router.delete("/services/{service_id}", responses={404: {"model": ErrorResponse}})
async def owner_delete_service(
    service_id: int,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    await delete_service(session, ctx.business_id, service_id)
    return {"status": "deleted", "service_id": service_id}


# ────────────────────────────────────────────────────────────────
# Appointments
# ────────────────────────────────────────────────────────────────

@router.get("/appointments", response_model=list[AppointmentResponse])
async def owner_list_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format"),
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    day = None
    if date:
        try:
            day = parse_iso_date(date)
        except ValueError as e:
            raise BookingValidationError(str(e), details={"field": "date"})

    rows = await list_appointments(session, ctx.business_id, status=status_filter, day=day)
    return [AppointmentResponse.from_model(a, c, s) for a, c, s in rows]


@router.post("/appointments", response_model=AppointmentResponse,
             status_code=status.HTTP_201_CREATED,
             responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def owner_create_appointment(
    request: BookingRequest,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    """Create an appointment on a customer's behalf; same rules as public booking."""
    appointment = await book_appointment(session, ctx.business_id, request)
    return await _appointment_response(session, appointment)


@router.put("/appointments/{appointment_id}", response_model=AppointmentResponse,
            responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def owner_update_appointment(
    appointment_id: uuid.UUID,
    request: AppointmentUpdateRequest,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    appointment = await reschedule_appointment(session, ctx.business_id, appointment_id, request)
    return await _appointment_response(session, appointment)


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentResponse,
              responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def owner_update_appointment_status(
    appointment_id: uuid.UUID,
    request: StatusUpdateRequest,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    appointment = await transition_appointment(
        session, ctx.business_id, appointment_id, request.status
    )
    return await _appointment_response(session, appointment)


@router.delete("/appointments/{appointment_id}", responses={404: {"model": ErrorResponse}})
async def owner_delete_appointment(
    appointment_id: uuid.UUID,
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    await delete_appointment(session, ctx.business_id, appointment_id)
    return {"status": "deleted", "appointment_id": str(appointment_id)}


# ────────────────────────────────────────────────────────────────
# Customers & Dashboard
# ────────────────────────────────────────────────────────────────

@router.get("/customers", response_model=list[CustomerResponse])
async def owner_list_customers(
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    customers = await list_customers_for_business(session, ctx.business_id)
    return [CustomerResponse.from_model(c) for c in customers]


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def owner_dashboard_stats(
    ctx: OwnerContext = Depends(get_owner_context),
    session: AsyncSession = Depends(get_session),
):
    return await compute_dashboard_stats(session, ctx.business_id)
