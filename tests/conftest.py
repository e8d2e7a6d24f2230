"""Test fixtures for the rental API."""
import json
import os
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_rental.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret")

from app import app  # noqa: E402
from core.cloudinary_setup import cloudinary_client  # noqa: E402
from core.get_db import Base, enable_sqlite_foreign_keys, get_db_async  # noqa: E402
from core.settings import settings  # noqa: E402
from models.enums import UserRole, UserStatus  # noqa: E402
from models.models import User  # noqa: E402

API = settings.API_PREFIX
PASSWORD = "Secret123"
PHONE = "+12015550123"


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Fresh sqlite database per test, schema created from the models."""

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'rental_test.db'}",
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def uploaded_images(monkeypatch):
    """Replace Cloudinary calls with in-memory fakes."""

    calls = {"uploaded": [], "deleted": []}

    async def fake_upload(file, folder):
        await file.read()
        url = (
            f"https://res.cloudinary.com/demo/image/upload/v1/"
            f"{settings.CLOUDINARY_FOLDER}/{folder}/images/{file.filename}"
        )
        calls["uploaded"].append(url)
        return url

    async def fake_delete(url):
        calls["deleted"].append(url)

    monkeypatch.setattr(cloudinary_client, "upload_image", fake_upload)
    monkeypatch.setattr(cloudinary_client, "safe_delete_by_url", fake_delete)
    return calls


@pytest_asyncio.fixture
async def client(session_factory, uploaded_images, tmp_path, monkeypatch):
    """HTTP client bound to the app with the test database wired in."""

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_async] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create_user(
    session_factory,
    email: str,
    *,
    roles=(UserRole.CLIENT,),
    status: UserStatus = UserStatus.APPROVED,
    password: str = PASSWORD,
) -> User:
    async with session_factory() as session:
        user = User(
            email=email,
            roles=[r.value for r in roles],
            status=status,
        )
        user.set_password(password)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def login(client: AsyncClient, email: str, password: str = PASSWORD) -> dict:
    response = await client.post(
        f"{API}/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


def profile_payload(email: str, first_name: str = "jane", last_name: str = "doe") -> dict:
    return {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": PHONE,
        "password": PASSWORD,
        "address": {
            "street": "12 Main Street",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
        },
    }


def apartment_payload(**overrides) -> dict:
    payload = {
        "title": "Sunny Loft",
        "description": "Bright two bedroom loft close to the park.",
        "address": {
            "street": "500 Oak Avenue",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62704",
        },
        "property_details": {"bedrooms": 2, "bathrooms": 1, "square_feet": 850},
        "amenities": ["parking", "laundry"],
        "rent": {"amount": 1500, "currency": "USD", "period": "monthly"},
        "utilities": {"included": ["water"], "not_included": ["electricity"]},
    }
    payload.update(overrides)
    return payload


def application_payload(apartment_id: str, **overrides) -> dict:
    payload = {
        "apartment_id": apartment_id,
        "move_in_date": (date.today() + timedelta(days=30)).isoformat(),
        "lease_term": "1 year",
        "monthly_income": 6000,
        "employment_status": "employed",
        "employer_name": "Acme Corp",
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def admin_headers(client, session_factory) -> dict:
    await create_user(session_factory, "admin@example.com", roles=(UserRole.ADMIN,))
    return await login(client, "admin@example.com")


@pytest_asyncio.fixture
async def staff_headers(client, session_factory) -> dict:
    await create_user(session_factory, "staff@example.com", roles=(UserRole.STAFF,))
    return await login(client, "staff@example.com")


async def create_owner(client, admin_headers, email: str) -> dict:
    response = await client.post(
        f"{API}/owners/", json=profile_payload(email), headers=admin_headers
    )
    assert response.status_code == 201, response.text
    owner = response.json()["data"]
    return {"profile": owner, "headers": await login(client, email)}


async def create_tenant(client, admin_headers, email: str) -> dict:
    response = await client.post(
        f"{API}/tenants/",
        json=profile_payload(email, first_name="john", last_name="smith"),
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    tenant = response.json()["data"]
    return {"profile": tenant, "headers": await login(client, email)}


async def create_apartment(client, owner_headers, **overrides) -> dict:
    response = await client.post(
        f"{API}/apartments/",
        data={"data": json.dumps(apartment_payload(**overrides))},
        headers=owner_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest_asyncio.fixture
async def owner(client, admin_headers) -> dict:
    return await create_owner(client, admin_headers, "owner@example.com")


@pytest_asyncio.fixture
async def tenant(client, admin_headers) -> dict:
    return await create_tenant(client, admin_headers, "tenant@example.com")


@pytest_asyncio.fixture
async def apartment(client, owner) -> dict:
    return await create_apartment(client, owner["headers"])
