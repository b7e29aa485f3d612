import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .errors import DuplicateServiceError, NotFoundError
from .models import Service
from .schemas import ServiceCreateRequest, ServiceUpdateRequest
from .tenancy.queries import find_service_by_name, get_service_by_id, list_services

logger = logging.getLogger(__name__)


async def _ensure_name_free(
    session: AsyncSession, business_id: int, name: str, exclude_service_id: int | None = None
) -> None:
    existing = await find_service_by_name(session, business_id, name)
    if existing and existing.id != exclude_service_id:
        raise DuplicateServiceError(
            f"Service '{name}' already exists",
            details={"name": name, "serviceId": existing.id},
        )


async def get_services(session: AsyncSession, business_id: int) -> Sequence[Service]:
    return await list_services(session, business_id)


async def create_service(
    session: AsyncSession, business_id: int, request: ServiceCreateRequest
) -> Service:
    await _ensure_name_free(session, business_id, request.name)

    service = Service(
        business_id=business_id,
        name=request.name,
        description=request.description,
        duration_minutes=request.duration_minutes,
        price_cents=request.price_cents,
    )
    session.add(service)
    await session.commit()
    await session.refresh(service)

    logger.info(f"Created service id={service.id} '{service.name}' for business_id={business_id}")
    return service


async def update_service(
    session: AsyncSession, business_id: int, service_id: int, request: ServiceUpdateRequest
) -> Service:
    service = await get_service_by_id(session, business_id, service_id)
    if not service:
        raise NotFoundError("Service not found", details={"serviceId": service_id})

    if request.name is not None:
        name = request.name.strip()
        await _ensure_name_free(session, business_id, name, exclude_service_id=service.id)
        service.name = name
    if request.duration_minutes is not None:
        # Existing appointments keep the duration they were booked with.
        service.duration_minutes = request.duration_minutes
    if request.price_cents is not None:
        service.price_cents = request.price_cents
    if "description" in request.model_fields_set:
        service.description = request.description

    await session.commit()
    await session.refresh(service)
    return service


async def delete_service(session: AsyncSession, business_id: int, service_id: int) -> None:
    """Remove a service. Appointments that reference it stay in the ledger."""
    service = await get_service_by_id(session, business_id, service_id)
    if not service:
        raise NotFoundError("Service not found", details={"serviceId": service_id})

    await session.delete(service)
    await session.commit()
    logger.info(f"Deleted service id={service_id} for business_id={business_id}")
