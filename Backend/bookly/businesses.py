"""
Business profiles and public slugs.

A slug is generated once at creation from the business name and only changes
on an explicit owner edit, which re-checks global uniqueness.
"""

import logging
import re
import unicodedata

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import BookingValidationError, SlugTakenError
from .models import Business
from .schemas import BusinessCreateRequest, BusinessUpdateRequest
from .tenancy.context import resolve_business

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 1000


def slugify(value: str) -> str:
    """
    Generate a URL-safe slug.

    Examples:
        "Bella's Salon" -> "bellas-salon"
        "Café  Beauté" -> "cafe-beaute"
    """
    normalized = unicodedata.normalize("NFKD", value or "")
    ascii_str = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"\s+", "-", ascii_str.strip().lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug[:200]


async def slug_exists(session: AsyncSession, slug: str, exclude_business_id: int | None = None) -> bool:
    query = select(Business.id).where(Business.slug == slug)
    if exclude_business_id is not None:
        query = query.where(Business.id != exclude_business_id)
    result = await session.execute(query)
    return result.first() is not None


async def generate_unique_slug(session: AsyncSession, source: str) -> str:
    """Slugify `source` and append -1, -2, ... until no business holds it."""
    base_slug = slugify(source) or "business"
    candidate = base_slug
    counter = 1

    while await slug_exists(session, candidate):
        candidate = f"{base_slug}-{counter}"
        counter += 1
        if counter > MAX_SLUG_ATTEMPTS:
            raise SlugTakenError(
                "Unable to generate a unique slug",
                details={"slug": base_slug},
            )
    return candidate


def _dump_hours(working_hours) -> dict:
    return {day: hours.model_dump() for day, hours in (working_hours or {}).items()}


async def create_business(session: AsyncSession, request: BusinessCreateRequest) -> Business:
    slug = await generate_unique_slug(session, request.business_name or request.name)
    business = Business(
        name=request.name,
        business_name=request.business_name,
        slug=slug,
        phone=request.phone,
        location=request.location,
        working_hours=_dump_hours(request.working_hours),
    )
    session.add(business)
    await session.commit()
    await session.refresh(business)

    logger.info(f"Created business id={business.id} slug={business.slug}")
    return business


async def update_business_profile(
    session: AsyncSession,
    business_id: int,
    changes: BusinessUpdateRequest,
) -> Business:
    """Apply a partial profile update. Only fields present in the request change."""
    business = await resolve_business(session, business_id)
    fields = changes.model_fields_set

    if "slug" in fields and changes.slug is not None:
        new_slug = slugify(changes.slug)
        if not new_slug:
            raise BookingValidationError("Slug cannot be empty", details={"field": "slug"})
        if new_slug != business.slug:
            if await slug_exists(session, new_slug, exclude_business_id=business.id):
                logger.warning(f"Slug {new_slug!r} already taken; business_id={business.id}")
                raise SlugTakenError("This slug is already in use", details={"slug": new_slug})
            logger.info(f"Business id={business.id} slug {business.slug} -> {new_slug}")
            business.slug = new_slug

    if "name" in fields and changes.name is not None:
        business.name = changes.name.strip()
    if "business_name" in fields:
        business.business_name = changes.business_name
    if "phone" in fields:
        business.phone = changes.phone
    if "location" in fields:
        business.location = changes.location
    if "working_hours" in fields and changes.working_hours is not None:
        business.working_hours = _dump_hours(changes.working_hours)

    await session.commit()
    await session.refresh(business)
    return business
