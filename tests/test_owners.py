"""Integration tests for owner profiles."""
import pytest
from httpx import AsyncClient

from conftest import API, PHONE, create_apartment, create_owner, login, profile_payload


@pytest.mark.asyncio
async def test_admin_creates_owner_with_linked_user(
    client: AsyncClient, admin_headers
) -> None:
    payload = profile_payload("landlord@example.com")
    payload["business_info"] = {"business_name": "Doe Rentals", "tax_id": "12-345"}

    response = await client.post(f"{API}/owners/", json=payload, headers=admin_headers)
    assert response.status_code == 201
    owner = response.json()["data"]
    assert owner["first_name"] == "Jane"
    assert owner["full_name"] == "Jane Doe"
    assert owner["display_name"] == "Doe Rentals"
    assert owner["phone"] == PHONE
    assert owner["address"]["country"] == "USA"
    assert owner["status"] == "active"

    headers = await login(client, "landlord@example.com")
    me = await client.get(f"{API}/auth/me", headers=headers)
    assert me.json()["data"]["id"] == owner["user_id"]
    assert me.json()["data"]["roles"] == ["owner"]


@pytest.mark.asyncio
async def test_duplicate_owner_email_conflicts(client: AsyncClient, admin_headers) -> None:
    await create_owner(client, admin_headers, "landlord@example.com")

    response = await client.post(
        f"{API}/owners/",
        json=profile_payload("landlord@example.com"),
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_phone_is_rejected(client: AsyncClient, admin_headers) -> None:
    payload = profile_payload("landlord@example.com")
    payload["phone"] = "12345"

    response = await client.post(f"{API}/owners/", json=payload, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_owners_with_search_and_pagination(
    client: AsyncClient, admin_headers
) -> None:
    for index in range(3):
        await create_owner(client, admin_headers, f"landlord{index}@example.com")

    response = await client.get(
        f"{API}/owners/", params={"limit": 2}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["owners"]) == 2
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    searched = await client.get(
        f"{API}/owners/", params={"search": "landlord1"}, headers=admin_headers
    )
    assert searched.json()["data"]["pagination"]["total"] == 1

    bad_status = await client.get(
        f"{API}/owners/", params={"status": "bogus"}, headers=admin_headers
    )
    assert bad_status.status_code == 400


@pytest.mark.asyncio
async def test_staff_can_manage_but_not_delete_owners(
    client: AsyncClient, admin_headers, staff_headers
) -> None:
    owner = await create_owner(client, admin_headers, "landlord@example.com")
    owner_id = owner["profile"]["id"]

    updated = await client.put(
        f"{API}/owners/{owner_id}",
        json={"status": "suspended", "business_info": {"business_name": "New Co"}},
        headers=staff_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["status"] == "suspended"
    assert updated.json()["data"]["display_name"] == "New Co"

    forbidden = await client.delete(f"{API}/owners/{owner_id}", headers=staff_headers)
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_owner_email_change_follows_login_email(
    client: AsyncClient, admin_headers
) -> None:
    owner = await create_owner(client, admin_headers, "landlord@example.com")

    response = await client.put(
        f"{API}/owners/profile",
        json={"email": "renamed@example.com"},
        headers=owner["headers"],
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "renamed@example.com"

    await login(client, "renamed@example.com")


@pytest.mark.asyncio
async def test_owner_email_change_conflicts_with_existing_user(
    client: AsyncClient, admin_headers
) -> None:
    owner = await create_owner(client, admin_headers, "landlord@example.com")
    await create_owner(client, admin_headers, "other@example.com")

    response = await client.put(
        f"{API}/owners/profile",
        json={"email": "other@example.com"},
        headers=owner["headers"],
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_profile_routes_require_owner_role(
    client: AsyncClient, admin_headers, tenant
) -> None:
    response = await client.get(f"{API}/owners/profile", headers=tenant["headers"])
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_owner_cascades_to_user_and_listings(
    client: AsyncClient, admin_headers
) -> None:
    owner = await create_owner(client, admin_headers, "landlord@example.com")
    apartment = await create_apartment(client, owner["headers"])

    response = await client.delete(
        f"{API}/owners/{owner['profile']['id']}", headers=admin_headers
    )
    assert response.status_code == 200

    missing = await client.get(f"{API}/apartments/{apartment['id']}")
    assert missing.status_code == 404

    login_again = await client.post(
        f"{API}/auth/login",
        json={"email": "landlord@example.com", "password": "Secret123"},
    )
    assert login_again.status_code == 401


@pytest.mark.asyncio
async def test_owner_stats(client: AsyncClient, admin_headers) -> None:
    await create_owner(client, admin_headers, "landlord@example.com")

    response = await client.get(f"{API}/owners/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "total": 1,
        "active": 1,
        "pending": 0,
        "inactive": 0,
        "suspended": 0,
    }
