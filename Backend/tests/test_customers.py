"""Customer identity resolution: phone first, email second, global scope."""

import pytest
from sqlalchemy import func, select

from bookly.customers import find_or_create_customer, normalize_email, normalize_phone
from bookly.errors import BookingValidationError
from bookly.models import Customer


class TestNormalization:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("+1 (555) 123-4567", "+15551234567"),
            ("555.123.4567", "5551234567"),
            ("  +44 20 7946 0958 ", "+442079460958"),
            ("", ""),
            (None, ""),
            ("call me", ""),
        ],
    )
    def test_phone(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_email(self):
        assert normalize_email("  Ada@Example.COM ") == "ada@example.com"
        assert normalize_email("   ") is None
        assert normalize_email(None) is None


async def customer_count(session) -> int:
    return await session.scalar(select(func.count(Customer.id)))


@pytest.mark.asyncio
async def test_creates_new_customer(async_session):
    customer = await find_or_create_customer(
        async_session, "Ada Lovelace", "+1 555 123 4567", "Ada@Example.com"
    )
    await async_session.commit()

    assert customer.id is not None
    assert customer.phone == "+15551234567"
    assert customer.email == "ada@example.com"


@pytest.mark.asyncio
async def test_phone_match_returns_existing(async_session):
    first = await find_or_create_customer(async_session, "Ada", "+15551234567")
    again = await find_or_create_customer(async_session, "Someone Else", "+1 (555) 123-4567")

    assert again.id == first.id
    assert again.name == "Ada"
    assert await customer_count(async_session) == 1


@pytest.mark.asyncio
async def test_email_match_returns_existing(async_session):
    first = await find_or_create_customer(async_session, "Ada", "+15551234567", "ada@example.com")
    again = await find_or_create_customer(async_session, "Ada", "+15550000000", "ADA@example.com")

    assert again.id == first.id
    assert again.phone == "+15551234567"


@pytest.mark.asyncio
async def test_no_match_creates_second_customer(async_session):
    await find_or_create_customer(async_session, "Ada", "+15551234567", "ada@example.com")
    await find_or_create_customer(async_session, "Grace", "+15557654321", "grace@example.com")

    assert await customer_count(async_session) == 2


@pytest.mark.asyncio
async def test_missing_email_does_not_match_null_emails(async_session):
    await find_or_create_customer(async_session, "Ada", "+15551234567")
    await find_or_create_customer(async_session, "Grace", "+15557654321")

    assert await customer_count(async_session) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("name,phone", [("", "+15551234567"), ("Ada", ""), ("Ada", "n/a")])
async def test_required_fields(async_session, name, phone):
    with pytest.raises(BookingValidationError):
        await find_or_create_customer(async_session, name, phone)


@pytest.mark.asyncio
async def test_phone_match_beats_older_email_match(async_session):
    older = await find_or_create_customer(
        async_session, "Ada", "+15550000001", "shared@example.com"
    )
    newer = await find_or_create_customer(async_session, "Grace", "+15550000002")

    found = await find_or_create_customer(
        async_session, "Grace", "+15550000002", "shared@example.com"
    )

    assert found.id == newer.id
    assert found.id != older.id
    assert await customer_count(async_session) == 2
