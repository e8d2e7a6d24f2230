"""Unit tests for shared helpers."""
import pytest
from fastapi import HTTPException
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from core.cloudinary_setup import CloudinaryClient
from core.get_db import enable_sqlite_foreign_keys
from core.normalizer import flatten_payload
from core.paginate import PaginatePage
from core.validate_enum import validate_enum
from models.enums import AvailabilityStatus, RentPeriod
from models.utils import to_monthly


@pytest.mark.parametrize(
    "url, expected",
    [
        (
            "https://res.cloudinary.com/demo/image/upload/v1712345/rental/apartments/images/17_front.jpg",
            "rental/apartments/images/17_front",
        ),
        (
            "https://res.cloudinary.com/demo/image/upload/rental/apartments/images/plain.png",
            "rental/apartments/images/plain",
        ),
        ("https://example.com/not-cloudinary.jpg", None),
    ],
)
def test_public_id_from_url(url, expected) -> None:
    assert CloudinaryClient.public_id_from_url(url) == expected


def test_paginate_clamps_and_describes_pages() -> None:
    paginate = PaginatePage()
    assert paginate.normalize(0, 500) == (1, 100)
    assert paginate.normalize(None, None) == (1, 10)
    assert paginate.offset(3, 10) == 20
    assert paginate.meta(2, 10, 21) == {"page": 2, "limit": 10, "total": 21, "pages": 3}


def test_validate_enum_is_case_insensitive() -> None:
    assert validate_enum("Available", AvailabilityStatus, field="availability") is (
        AvailabilityStatus.AVAILABLE
    )
    assert validate_enum("", AvailabilityStatus, field="availability") is None

    with pytest.raises(HTTPException) as exc:
        validate_enum("gone", AvailabilityStatus, field="availability")
    assert exc.value.status_code == 400


def test_flatten_payload_maps_nested_blocks() -> None:
    flat = flatten_payload(
        {
            "title": "Loft",
            "rent": {"amount": 900, "period": "weekly"},
            "availability": {"status": "available"},
            "utilities": None,
        }
    )
    assert flat == {
        "title": "Loft",
        "rent_amount": 900,
        "rent_period": "weekly",
        "availability_status": "available",
    }


def test_to_monthly_normalizes_rent_periods() -> None:
    assert to_monthly(1000, RentPeriod.MONTHLY.value) == 1000
    assert to_monthly(100, RentPeriod.WEEKLY.value) == pytest.approx(433.0)
    assert to_monthly(50, RentPeriod.DAILY.value) == pytest.approx(1500.0)


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True


@pytest.mark.asyncio
async def test_sqlite_connections_enforce_foreign_keys(tmp_path) -> None:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pragma.db'}", poolclass=NullPool
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.connect() as conn:
        result = await conn.execute(text("PRAGMA foreign_keys"))
        assert result.scalar() == 1
    await engine.dispose()
