"""
Core module - configuration, database, owner request context, and error envelopes.
"""
from .config import Settings, get_settings
from .db import get_session, Base, engine, AsyncSessionLocal
from .request_context import (
    OwnerContext,
    resolve_owner_context,
    get_owner_context,
    verify_owner_token,
)
from .responses import (
    ErrorDetail,
    ErrorResponse,
    ErrorCodes,
    error_response,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "get_session",
    "Base",
    "engine",
    "AsyncSessionLocal",
    # Request Context
    "OwnerContext",
    "resolve_owner_context",
    "get_owner_context",
    "verify_owner_token",
    # Responses
    "ErrorDetail",
    "ErrorResponse",
    "ErrorCodes",
    "error_response",
]
