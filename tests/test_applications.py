"""Integration tests for the rental application workflow."""
import asyncio
import json
import os

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from conftest import (
    API,
    application_payload,
    create_apartment,
    create_owner,
    create_tenant,
    create_user,
    login,
)
from core.settings import settings
from models.enums import UserRole
from models.models import User
from repos.application_repo import ApplicationRepo


async def apply(client: AsyncClient, headers: dict, apartment_id: str, files=None, **overrides):
    return await client.post(
        f"{API}/applications/",
        data={"data": json.dumps(application_payload(apartment_id, **overrides))},
        files=files,
        headers=headers,
    )


async def review(client: AsyncClient, headers: dict, application_id: str, status: str, **extra):
    return await client.patch(
        f"{API}/applications/{application_id}/review",
        json={"status": status, **extra},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_tenant_submits_application(client: AsyncClient, tenant, apartment) -> None:
    response = await apply(client, tenant["headers"], apartment["id"])
    assert response.status_code == 201
    application = response.json()["data"]
    assert application["status"] == "pending"
    assert application["tenant_id"] == tenant["profile"]["id"]
    assert application["apartment_id"] == apartment["id"]
    assert application["application_details"]["lease_term"] == "1 year"
    assert application["income_to_rent_ratio"] == 4.0
    assert application["apartment"]["title"] == apartment["title"]
    assert application["tenant"]["full_name"] == "John Smith"
    assert application["reviewed_by_id"] is None


@pytest.mark.asyncio
async def test_application_requires_tenant_profile(
    client: AsyncClient, session_factory, apartment
) -> None:
    await create_user(session_factory, "bare@example.com", roles=(UserRole.TENANT,))
    headers = await login(client, "bare@example.com")

    response = await apply(client, headers, apartment["id"])
    assert response.status_code == 404
    assert response.json()["message"] == "Tenant profile not found"


@pytest.mark.asyncio
async def test_application_to_missing_or_inactive_apartment(
    client: AsyncClient, tenant, owner, apartment
) -> None:
    missing = await apply(
        client, tenant["headers"], "00000000-0000-0000-0000-000000000000"
    )
    assert missing.status_code == 404

    await client.patch(
        f"{API}/apartments/{apartment['id']}",
        data={"data": json.dumps({"status": "inactive"})},
        headers=owner["headers"],
    )
    inactive = await apply(client, tenant["headers"], apartment["id"])
    assert inactive.status_code == 400


@pytest.mark.asyncio
async def test_application_payload_validation(client: AsyncClient, tenant, apartment) -> None:
    past = await apply(client, tenant["headers"], apartment["id"], move_in_date="2000-01-01")
    assert past.status_code == 400

    bad_term = await apply(client, tenant["headers"], apartment["id"], lease_term="forever")
    assert bad_term.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_active_application_conflicts(
    client: AsyncClient, tenant, apartment
) -> None:
    first = await apply(client, tenant["headers"], apartment["id"])
    assert first.status_code == 201

    second = await apply(client, tenant["headers"], apartment["id"])
    assert second.status_code == 409
    assert second.json()["success"] is False


@pytest.mark.asyncio
async def test_withdrawn_or_rejected_application_allows_reapplying(
    client: AsyncClient, tenant, owner, apartment
) -> None:
    first = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]

    withdrawn = await client.patch(
        f"{API}/applications/{first['id']}/withdraw", headers=tenant["headers"]
    )
    assert withdrawn.status_code == 200
    assert withdrawn.json()["data"]["status"] == "withdrawn"

    second = await apply(client, tenant["headers"], apartment["id"])
    assert second.status_code == 201

    rejected = await review(
        client, owner["headers"], second.json()["data"]["id"], "rejected"
    )
    assert rejected.status_code == 200

    third = await apply(client, tenant["headers"], apartment["id"])
    assert third.status_code == 201


@pytest.mark.asyncio
async def test_concurrent_duplicate_submissions_yield_one_application(
    client: AsyncClient, tenant, apartment
) -> None:
    responses = await asyncio.gather(
        apply(client, tenant["headers"], apartment["id"]),
        apply(client, tenant["headers"], apartment["id"]),
    )
    codes = sorted(r.status_code for r in responses)
    assert codes == [201, 409]

    mine = await client.get(
        f"{API}/applications/my-applications", headers=tenant["headers"]
    )
    assert mine.json()["data"]["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_unique_index_rejects_duplicate_when_lookup_misses(
    client: AsyncClient, tenant, apartment, monkeypatch
) -> None:
    async def no_active_application(self, tenant_id, apartment_id):
        return None

    monkeypatch.setattr(ApplicationRepo, "find_active", no_active_application)

    first = await apply(client, tenant["headers"], apartment["id"])
    assert first.status_code == 201

    second = await apply(
        client,
        tenant["headers"],
        apartment["id"],
        files=[("id_proof", ("passport.pdf", b"%PDF-1.4 id", "application/pdf"))],
    )
    assert second.status_code == 409
    assert second.json()["success"] is False
    assert second.json()["message"] == (
        "You already have an active application for this apartment"
    )

    documents_dir = os.path.join(settings.UPLOAD_DIR, "documents")
    assert os.listdir(documents_dir) == []

    mine = await client.get(
        f"{API}/applications/my-applications", headers=tenant["headers"]
    )
    assert mine.json()["data"]["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_owner_review_records_reviewer_and_rents_apartment(
    client: AsyncClient, tenant, owner, apartment
) -> None:
    other_apartment = await create_apartment(client, owner["headers"], title="Garden Flat")
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]

    under_review = await review(client, owner["headers"], application["id"], "under_review")
    assert under_review.status_code == 200
    assert under_review.json()["data"]["status"] == "under_review"

    approved = await review(
        client,
        owner["headers"],
        application["id"],
        "approved",
        review_notes="Great references",
    )
    assert approved.status_code == 200
    data = approved.json()["data"]
    assert data["status"] == "approved"
    assert data["review_notes"] == "Great references"
    assert data["reviewed_by_id"] == owner["profile"]["user_id"]
    assert data["reviewed_at"] is not None

    rented = await client.get(f"{API}/apartments/{apartment['id']}")
    assert rented.json()["data"]["availability"]["status"] == "rented"

    untouched = await client.get(f"{API}/apartments/{other_apartment['id']}")
    assert untouched.json()["data"]["availability"]["status"] == "available"


@pytest.mark.asyncio
async def test_rented_apartment_refuses_new_applications(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    await review(client, owner["headers"], application["id"], "approved")

    latecomer = await create_tenant(client, admin_headers, "late@example.com")
    response = await apply(client, latecomer["headers"], apartment["id"])
    assert response.status_code == 400
    assert response.json()["message"] == "Apartment is not available for applications"


@pytest.mark.asyncio
async def test_rented_apartment_refuses_second_approval(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    first = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    rival = await create_tenant(client, admin_headers, "rival@example.com")
    second = (await apply(client, rival["headers"], apartment["id"])).json()["data"]

    approved = await review(client, owner["headers"], first["id"], "approved")
    assert approved.status_code == 200

    refused = await review(client, owner["headers"], second["id"], "approved")
    assert refused.status_code == 400
    assert refused.json()["message"] == (
        "Apartment is no longer available; application cannot be approved"
    )

    still_pending = await client.get(
        f"{API}/applications/{second['id']}", headers=rival["headers"]
    )
    assert still_pending.json()["data"]["status"] == "pending"

    rejected = await review(client, owner["headers"], second["id"], "rejected")
    assert rejected.status_code == 200


@pytest.mark.asyncio
async def test_review_transitions_are_enforced(
    client: AsyncClient, tenant, owner, apartment
) -> None:
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]

    not_a_review_status = await review(client, owner["headers"], application["id"], "withdrawn")
    assert not_a_review_status.status_code == 400

    rejected = await review(client, owner["headers"], application["id"], "rejected")
    assert rejected.status_code == 200

    reopened = await review(client, owner["headers"], application["id"], "approved")
    assert reopened.status_code == 400
    assert reopened.json()["message"] == "Cannot move application from rejected to approved"


@pytest.mark.asyncio
async def test_only_listing_owner_or_staff_may_review(
    client: AsyncClient, admin_headers, staff_headers, tenant, apartment
) -> None:
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    stranger = await create_owner(client, admin_headers, "stranger@example.com")

    by_stranger = await review(client, stranger["headers"], application["id"], "approved")
    assert by_stranger.status_code == 403

    by_tenant = await review(client, tenant["headers"], application["id"], "approved")
    assert by_tenant.status_code == 403

    by_staff = await client.patch(
        f"{API}/applications/admin/{application['id']}/review",
        json={"status": "under_review"},
        headers=staff_headers,
    )
    assert by_staff.status_code == 200
    assert by_staff.json()["data"]["status"] == "under_review"


@pytest.mark.asyncio
async def test_deleting_reviewer_clears_reviewed_by(
    client: AsyncClient, session_factory, admin_headers, staff_headers, tenant, apartment
) -> None:
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    reviewed = await client.patch(
        f"{API}/applications/admin/{application['id']}/review",
        json={"status": "under_review"},
        headers=staff_headers,
    )
    assert reviewed.json()["data"]["reviewed_by_id"] is not None

    async with session_factory() as session:
        staff = (
            await session.execute(select(User).where(User.email == "staff@example.com"))
        ).scalar_one()
        await session.delete(staff)
        await session.commit()

    response = await client.get(
        f"{API}/applications/{application['id']}", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["reviewed_by_id"] is None
    assert response.json()["data"]["status"] == "under_review"


@pytest.mark.asyncio
async def test_tenant_edits_only_own_pending_application(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    url = f"{API}/applications/{application['id']}"

    updated = await client.put(
        url,
        data={"data": json.dumps({"monthly_income": 7500, "lease_term": "2 years"})},
        headers=tenant["headers"],
    )
    assert updated.status_code == 200
    details = updated.json()["data"]["application_details"]
    assert details["monthly_income"] == 7500.0
    assert details["lease_term"] == "2 years"
    assert details["employer_name"] == "Acme Corp"

    other = await create_tenant(client, admin_headers, "other@example.com")
    foreign = await client.put(
        url, data={"data": json.dumps({"monthly_income": 1})}, headers=other["headers"]
    )
    assert foreign.status_code == 403

    await review(client, owner["headers"], application["id"], "under_review")

    too_late = await client.put(
        url, data={"data": json.dumps({"monthly_income": 9000})}, headers=tenant["headers"]
    )
    assert too_late.status_code == 400

    withdraw_late = await client.patch(f"{url}/withdraw", headers=tenant["headers"])
    assert withdraw_late.status_code == 400

    delete_late = await client.delete(url, headers=tenant["headers"])
    assert delete_late.status_code == 400


@pytest.mark.asyncio
async def test_delete_rules(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    first = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    deleted = await client.delete(
        f"{API}/applications/{first['id']}", headers=tenant["headers"]
    )
    assert deleted.status_code == 200

    second = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    await review(client, owner["headers"], second["id"], "rejected")

    by_admin = await client.delete(
        f"{API}/applications/{second['id']}", headers=admin_headers
    )
    assert by_admin.status_code == 200

    gone = await client.get(f"{API}/applications/{second['id']}", headers=admin_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_visibility_of_single_application(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    application = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    url = f"{API}/applications/{application['id']}"

    assert (await client.get(url, headers=tenant["headers"])).status_code == 200
    assert (await client.get(url, headers=owner["headers"])).status_code == 200
    assert (await client.get(url, headers=admin_headers)).status_code == 200

    other_tenant = await create_tenant(client, admin_headers, "other@example.com")
    other_owner = await create_owner(client, admin_headers, "stranger@example.com")
    assert (await client.get(url, headers=other_tenant["headers"])).status_code == 403
    assert (await client.get(url, headers=other_owner["headers"])).status_code == 403


@pytest.mark.asyncio
async def test_documents_are_stored_and_replaced(
    client: AsyncClient, tenant, apartment
) -> None:
    created = await apply(
        client,
        tenant["headers"],
        apartment["id"],
        files=[
            ("id_proof", ("passport.pdf", b"%PDF-1.4 id", "application/pdf")),
            ("references", ("ref1.pdf", b"%PDF-1.4 ref", "application/pdf")),
            ("references", ("ref2.pdf", b"%PDF-1.4 ref", "application/pdf")),
        ],
    )
    assert created.status_code == 201
    documents = created.json()["data"]["documents"]
    old_id_proof = documents["id_proof"]
    assert old_id_proof.endswith("passport.pdf")
    assert os.path.isfile(old_id_proof)
    assert len(documents["references"]) == 2
    assert documents["income_proof"] is None

    replaced = await client.put(
        f"{API}/applications/{created.json()['data']['id']}",
        data={"data": "{}"},
        files=[("id_proof", ("license.png", b"\x89PNG", "image/png"))],
        headers=tenant["headers"],
    )
    assert replaced.status_code == 200
    new_id_proof = replaced.json()["data"]["documents"]["id_proof"]
    assert new_id_proof.endswith("license.png")
    assert os.path.isfile(new_id_proof)
    assert not os.path.exists(old_id_proof)
    assert len(replaced.json()["data"]["documents"]["references"]) == 2


async def apply_with_documents(client: AsyncClient, headers: dict, apartment_id: str) -> dict:
    response = await apply(
        client,
        headers,
        apartment_id,
        files=[
            ("income_proof", ("payslip.pdf", b"%PDF-1.4 pay", "application/pdf")),
            ("references", ("ref1.pdf", b"%PDF-1.4 ref", "application/pdf")),
        ],
    )
    assert response.status_code == 201
    documents = response.json()["data"]["documents"]
    paths = [documents["income_proof"], *documents["references"]]
    assert all(os.path.isfile(path) for path in paths)
    return paths


@pytest.mark.asyncio
async def test_deleting_tenant_removes_their_documents(
    client: AsyncClient, admin_headers, tenant, apartment
) -> None:
    paths = await apply_with_documents(client, tenant["headers"], apartment["id"])

    deleted = await client.delete(
        f"{API}/tenants/{tenant['profile']['id']}", headers=admin_headers
    )
    assert deleted.status_code == 200
    assert not any(os.path.exists(path) for path in paths)


@pytest.mark.asyncio
async def test_deleting_listing_or_owner_removes_application_documents(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    listing_paths = await apply_with_documents(client, tenant["headers"], apartment["id"])

    deleted_listing = await client.delete(
        f"{API}/apartments/{apartment['id']}", headers=owner["headers"]
    )
    assert deleted_listing.status_code == 200
    assert not any(os.path.exists(path) for path in listing_paths)

    second_apartment = await create_apartment(client, owner["headers"], title="Garden Flat")
    owner_paths = await apply_with_documents(
        client, tenant["headers"], second_apartment["id"]
    )

    deleted_owner = await client.delete(
        f"{API}/owners/{owner['profile']['id']}", headers=admin_headers
    )
    assert deleted_owner.status_code == 200
    assert not any(os.path.exists(path) for path in owner_paths)

    mine = await client.get(
        f"{API}/applications/my-applications", headers=tenant["headers"]
    )
    assert mine.json()["data"]["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_unsupported_document_type_is_rejected(
    client: AsyncClient, tenant, apartment
) -> None:
    response = await apply(
        client,
        tenant["headers"],
        apartment["id"],
        files=[("bank_statement", ("statement.exe", b"MZ", "application/octet-stream"))],
    )
    assert response.status_code == 400

    mine = await client.get(
        f"{API}/applications/my-applications", headers=tenant["headers"]
    )
    assert mine.json()["data"]["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_listings_for_tenant_owner_and_admin(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    second_apartment = await create_apartment(client, owner["headers"], title="Garden Flat")
    first = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    await apply(client, tenant["headers"], second_apartment["id"])
    await review(client, owner["headers"], first["id"], "rejected")

    mine = await client.get(
        f"{API}/applications/my-applications",
        params={"status": "pending"},
        headers=tenant["headers"],
    )
    assert mine.status_code == 200
    assert mine.json()["data"]["pagination"]["total"] == 1

    for_owner = await client.get(
        f"{API}/applications/owner/my-apartments-applications", headers=owner["headers"]
    )
    assert for_owner.json()["data"]["pagination"]["total"] == 2

    filtered = await client.get(
        f"{API}/applications/",
        params={"apartment_id": apartment["id"], "sort_order": "asc"},
        headers=admin_headers,
    )
    assert filtered.status_code == 200
    assert [a["id"] for a in filtered.json()["data"]["applications"]] == [first["id"]]

    forbidden = await client.get(f"{API}/applications/", headers=tenant["headers"])
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_application_stats(
    client: AsyncClient, admin_headers, tenant, owner, apartment
) -> None:
    second_apartment = await create_apartment(client, owner["headers"], title="Garden Flat")
    first = (await apply(client, tenant["headers"], apartment["id"])).json()["data"]
    await apply(client, tenant["headers"], second_apartment["id"])
    await review(client, owner["headers"], first["id"], "approved")

    response = await client.get(f"{API}/applications/admin/stats", headers=admin_headers)
    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total"] == 2
    assert stats["pending"] == 1
    assert stats["approved"] == 1
    assert stats["rejected"] == 0
    assert sum(m["count"] for m in stats["monthly_stats"]) == 2
