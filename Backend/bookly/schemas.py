"""
Pydantic request/response models shared by the public and owner routers.

Wire JSON is camelCase (customerName, serviceId, durationMinutes, ...);
snake_case field names are accepted on input as well.
"""

import re
import uuid
from datetime import date as dt_date, datetime, time as dt_time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .availability import WEEKDAY_NAMES, parse_clock
from .models import Appointment, AppointmentStatus, Business, Customer, Service

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def parse_iso_date(value: str) -> dt_date:
    if not isinstance(value, str) or not _ISO_DATE_RE.fullmatch(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValueError("Date must be in YYYY-MM-DD format")


def parse_clock_time(value: str) -> dt_time:
    minutes = parse_clock(value)
    return dt_time(minutes // 60, minutes % 60)


def price_display(price_cents: int) -> str:
    return f"${price_cents / 100:.2f}"


# ────────────────────────────────────────────────────────────────
# Working Hours
# ────────────────────────────────────────────────────────────────

class WorkingDay(CamelModel):
    """Opening hours for one weekday."""
    enabled: bool = False
    start: str = "09:00"
    end: str = "17:00"

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, v: str) -> str:
        parse_clock(v)
        return v.strip()

    @model_validator(mode="after")
    def validate_order(self):
        if self.enabled and parse_clock(self.start) >= parse_clock(self.end):
            raise ValueError("Working hours start must be before end")
        return self


def validate_working_hours(value: Optional[dict]) -> Optional[dict]:
    """Normalize weekday keys to lower case and reject unknown days."""
    if value is None:
        return None
    normalized = {}
    for day, hours in value.items():
        key = str(day).strip().lower()
        if key not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {day!r}")
        normalized[key] = hours
    return normalized


# ────────────────────────────────────────────────────────────────
# Business Profile
# ────────────────────────────────────────────────────────────────

class BusinessCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    business_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    location: Optional[str] = Field(None, max_length=255)
    working_hours: dict[str, WorkingDay] = Field(default_factory=dict)

    @field_validator("working_hours", mode="before")
    @classmethod
    def validate_days(cls, v):
        return validate_working_hours(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class BusinessUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    business_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    location: Optional[str] = Field(None, max_length=255)
    working_hours: Optional[dict[str, WorkingDay]] = None
    slug: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("working_hours", mode="before")
    @classmethod
    def validate_days(cls, v):
        return validate_working_hours(v)


class BusinessResponse(CamelModel):
    id: int
    name: str
    business_name: Optional[str] = None
    slug: str
    phone: Optional[str] = None
    location: Optional[str] = None
    working_hours: dict[str, WorkingDay]

    @classmethod
    def from_model(cls, business: Business) -> "BusinessResponse":
        return cls(
            id=business.id,
            name=business.name,
            business_name=business.business_name,
            slug=business.slug,
            phone=business.phone,
            location=business.location,
            working_hours=business.working_hours or {},
        )


# ────────────────────────────────────────────────────────────────
# Services
# ────────────────────────────────────────────────────────────────

class ServiceCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    duration_minutes: int = Field(..., gt=0, le=1440)
    price_cents: int = Field(..., ge=0)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Service name is required")
        return v


class ServiceUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    duration_minutes: Optional[int] = Field(None, gt=0, le=1440)
    price_cents: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class ServiceResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price_cents: int
    price_display: str  # "$35.00"

    @classmethod
    def from_model(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            name=service.name,
            description=service.description,
            duration_minutes=service.duration_minutes,
            price_cents=service.price_cents,
            price_display=price_display(service.price_cents),
        )


class PublicBusinessResponse(CamelModel):
    """Business profile plus service catalog for the public booking page."""
    business: BusinessResponse
    services: list[ServiceResponse]


# ────────────────────────────────────────────────────────────────
# Booking
# ────────────────────────────────────────────────────────────────

class BookingRequest(CamelModel):
    """
    Request to book an appointment.

    `date` is YYYY-MM-DD and `time` is HH:MM (24h), both business-local.
    """
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=32)
    customer_email: Optional[str] = Field(None, max_length=255)
    service_id: int
    date: str = Field(..., description="Date in YYYY-MM-DD format")
    time: str = Field(..., description="Time in HH:MM format 24-hour")
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not _EMAIL_RE.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        parse_iso_date(v)
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parse_clock(v)
        return v.strip()

    @property
    def booking_date(self) -> dt_date:
        return parse_iso_date(self.date)

    @property
    def start_time(self) -> dt_time:
        return parse_clock_time(self.time)


class AppointmentUpdateRequest(CamelModel):
    """Owner edit: move an active appointment and/or change its notes."""
    date: Optional[str] = None
    time: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_iso_date(v)
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_clock(v)
            v = v.strip()
        return v


class StatusUpdateRequest(CamelModel):
    status: AppointmentStatus


class AppointmentResponse(CamelModel):
    id: uuid.UUID
    business_id: int
    customer_id: int
    service_id: int
    date: str
    time: str
    duration_minutes: int
    status: AppointmentStatus
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    service_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(
        cls,
        appointment: Appointment,
        customer: Optional[Customer] = None,
        service: Optional[Service] = None,
    ) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            business_id=appointment.business_id,
            customer_id=appointment.customer_id,
            service_id=appointment.service_id,
            date=appointment.date.isoformat(),
            time=appointment.time.strftime("%H:%M"),
            duration_minutes=appointment.duration_minutes,
            status=appointment.status,
            notes=appointment.notes,
            customer_name=customer.name if customer else None,
            service_name=service.name if service else None,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


# ────────────────────────────────────────────────────────────────
# Customers & Dashboard
# ────────────────────────────────────────────────────────────────

class CustomerResponse(CamelModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            created_at=customer.created_at,
        )


class DashboardStatsResponse(CamelModel):
    total_appointments: int
    today_appointments: int
    new_customers: int
    revenue_cents: int
    today_schedule: list[AppointmentResponse]
