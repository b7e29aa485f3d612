"""
Multi-tenancy package.

This package provides tenant isolation primitives: every business owns its
services and appointments, and every query for them is scoped by
business_id.

Modules:
    context: BusinessContext resolution (URL slug, auth token)
    queries: Tenant-scoped query helpers
"""

from .context import (
    BusinessContext,
    BusinessResolutionSource,
    get_business_context_from_slug,
    resolve_business,
    resolve_business_from_slug,
)

from .queries import (
    # Composable helpers
    scoped_select,
    tenant_filter,
    # Business queries
    get_business_by_id,
    get_business_by_slug,
    lock_business,
    # Service queries
    get_service_by_id,
    list_services,
    find_service_by_name,
    # Appointment queries
    get_appointment_by_id,
    list_active_appointments_on,
    list_appointments,
    # Customer queries
    list_customers_for_business,
)

__all__ = [
    # Context
    "BusinessContext",
    "BusinessResolutionSource",
    "get_business_context_from_slug",
    "resolve_business",
    "resolve_business_from_slug",
    # Query helpers
    "scoped_select",
    "tenant_filter",
    "get_business_by_id",
    "get_business_by_slug",
    "lock_business",
    "get_service_by_id",
    "list_services",
    "find_service_by_name",
    "get_appointment_by_id",
    "list_active_appointments_on",
    "list_appointments",
    "list_customers_for_business",
]
