"""
Multi-tenancy context module.

This module provides the BusinessContext abstraction for tenant isolation.
Every tenant-specific database operation runs against an explicit context
resolved per request; nothing is cached process-wide.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.db import get_session
from ..errors import NotFoundError
from ..models import Business
from .queries import get_business_by_id, get_business_by_slug


logger = logging.getLogger(__name__)


class BusinessResolutionSource(str, Enum):
    """How the business context was determined."""

    URL_SLUG = "url_slug"           # From /businesses/{slug}/ in URL path


@dataclass(frozen=True)
class BusinessContext:
    """
    Immutable context representing the current tenant for a request.

    Attributes:
        business_id: The database ID of the business (businesses.id)
        slug: Public URL slug, e.g. "bella-salon"
        business_name: Display name shown to customers
        source: How this context was determined (for logging)
    """

    business_id: int
    slug: Optional[str] = None
    business_name: Optional[str] = None
    source: BusinessResolutionSource = BusinessResolutionSource.URL_SLUG

    def __post_init__(self):
        if self.business_id <= 0:
            raise ValueError(f"business_id must be positive, got {self.business_id}")

    @classmethod
    def from_business(
        cls,
        business: Business,
        source: BusinessResolutionSource,
    ) -> "BusinessContext":
        return cls(
            business_id=business.id,
            slug=business.slug,
            business_name=business.business_name or business.name,
            source=source,
        )


# ────────────────────────────────────────────────────────────────
# Resolution Functions
# ────────────────────────────────────────────────────────────────

async def resolve_business(session: AsyncSession, business_ref: int | str) -> Business:
    """
    Resolve a business by numeric id or public slug.

    Raises:
        NotFoundError: no such business
    """
    if isinstance(business_ref, int):
        business = await get_business_by_id(session, business_ref)
    else:
        business = await get_business_by_slug(session, business_ref)
    if not business:
        raise NotFoundError("Business not found", details={"business": str(business_ref)})
    return business


async def resolve_business_from_slug(
    session: AsyncSession,
    slug: str,
) -> Optional[BusinessContext]:
    """
    Resolve business context from a URL slug.

    Returns:
        BusinessContext if found, None if slug not found
    """
    business = await get_business_by_slug(session, slug)
    if not business:
        return None
    return BusinessContext.from_business(business, BusinessResolutionSource.URL_SLUG)


# ────────────────────────────────────────────────────────────────
# FastAPI Dependencies
# ────────────────────────────────────────────────────────────────

async def get_business_context_from_slug(
    slug: str = Path(..., min_length=1, max_length=255),
    session: AsyncSession = Depends(get_session),
) -> BusinessContext:
    """
    FastAPI dependency resolving the tenant from the /businesses/{slug} path.

    Usage:
        @router.get("/{slug}")
        async def profile(ctx: BusinessContext = Depends(get_business_context_from_slug)):
            ...
    """
    ctx = await resolve_business_from_slug(session, slug)
    if not ctx:
        raise NotFoundError("Business not found", details={"slug": slug})
    logger.debug(f"Resolved business from slug: {slug} -> business_id={ctx.business_id}")
    return ctx
