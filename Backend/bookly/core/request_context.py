"""
Request Context Resolution Module

This module is the SINGLE SOURCE OF TRUTH for owner identity. All /owner
routes depend on get_owner_context; none read headers themselves.

ARCHITECTURE:
    1. resolve_owner_context() extracts the Bearer token from the request
    2. It verifies the HS256 JWT with the configured secret
    3. The `business_id` claim (or a numeric `sub`) names the owned business
    4. The business must exist; the resolved OwnerContext scopes every query

Token issuance is out of scope here; any issuer sharing JWT_SECRET works.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .db import get_session

logger = logging.getLogger(__name__)


@dataclass
class OwnerContext:
    """Authenticated owner and the single business they manage."""

    business_id: int
    slug: str
    subject: Optional[str] = None

    # Request metadata
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_owner_token(token: str) -> dict:
    """
    Decode and verify an owner JWT.

    Raises:
        jwt.InvalidTokenError: bad signature, expired, or malformed
    """
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def business_id_from_claims(claims: dict) -> Optional[int]:
    raw = claims.get("business_id", claims.get("sub"))
    try:
        business_id = int(raw)
    except (TypeError, ValueError):
        return None
    return business_id if business_id > 0 else None


async def resolve_owner_context(request: Request, session: AsyncSession) -> OwnerContext:
    """
    Resolve the owner identity from a request.

    Raises:
        HTTPException 401: missing/invalid token, or no such business
    """
    # Deferred import to avoid circular dependency
    from ..tenancy.queries import get_business_by_id

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.warning("Authentication failed: No Bearer token found")
        raise _unauthorized("Authentication required. Please sign in.")

    token = auth_header[7:]
    try:
        claims = verify_owner_token(token)
    except jwt.InvalidTokenError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise _unauthorized("Invalid or expired token. Please sign in again.")

    business_id = business_id_from_claims(claims)
    if business_id is None:
        logger.warning("Authentication failed: token carries no business id")
        raise _unauthorized("Token does not identify a business.")

    business = await get_business_by_id(session, business_id)
    if not business:
        logger.warning(f"Authentication failed: business_id={business_id} does not exist")
        raise _unauthorized("Token does not identify a known business.")

    logger.debug(f"Auth via JWT: business_id={business_id}")
    return OwnerContext(
        business_id=business.id,
        slug=business.slug,
        subject=claims.get("sub"),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )


async def get_owner_context(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> OwnerContext:
    """
    FastAPI dependency for owner routes.

        @router.get("/owner/services")
        async def handler(ctx: OwnerContext = Depends(get_owner_context)):
            ...
    """
    return await resolve_owner_context(request, session)
