"""
Trip Administration Tests.
"""

import pytest
from sqlalchemy import select

from tripledger.app.core.config import settings
from tripledger.app.models.audit_log import AuditLog


@pytest.mark.asyncio
async def test_trip_crud_requires_admin(client, headers_for):
    response = await client.post(
        "/v1/admin/trips", json={"name": "Busan", "participant_names": ["A", "B"]}, headers=headers_for("bob")
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_FORBIDDEN"


@pytest.mark.asyncio
async def test_duplicate_participant_names_rejected_on_create(client, admin_headers):
    response = await client.post(
        "/v1/admin/trips", json={"name": "Busan", "participant_names": ["A", "A "]}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_rename_and_list(client, trip):
    response = await client.patch(f"/v1/admin/trips/{trip.id}", json={"name": "Jeju 2026"}, headers=trip.admin)
    assert response.status_code == 200
    assert response.json()["name"] == "Jeju 2026"

    mine = await client.get("/v1/trips", headers=trip.headers["Bob"])
    assert [t["name"] for t in mine.json()] == ["Jeju 2026"]

    assert (await client.get("/v1/admin/trips", headers=trip.admin)).status_code == 200


@pytest.mark.asyncio
async def test_trips_listed_only_for_members(client, trip, headers_for):
    response = await client.get("/v1/trips", headers=headers_for("stranger"))
    assert response.json() == []


@pytest.mark.asyncio
async def test_summary(client, trip, create_expense):
    await create_expense()
    await create_expense(amount=3000, payer="Bob", sharers=("Bob", "Carol"))
    await client.post(
        f"/v1/trips/{trip.id}/treasury/transactions",
        json={"direction": "receive", "counterparty_id": trip.ids["Carol"], "amount": 4000},
        headers=trip.headers["Alice"]
    )

    response = await client.get(f"/v1/trips/{trip.id}/summary", headers=trip.headers["Carol"])
    assert response.json() == {
        "trip_id": trip.id,
        "participant_count": 3,
        "expense_count": 2,
        "expense_total": 12000,
        "treasury_received": 4000,
        "treasury_sent": 0,
        "settlement_count": 3,
    }


@pytest.mark.asyncio
async def test_delete_trip_removes_everything_but_audit(client, trip, create_expense, db_session):
    expense = await create_expense()
    await client.put(
        f"/v1/trips/{trip.id}/accounts/{trip.ids['Bob']}",
        json={"bank_name": "K", "account_number": "1", "account_holder": "Bob"},
        headers=trip.headers["Bob"]
    )

    response = await client.delete(f"/v1/admin/trips/{trip.id}", headers=trip.admin)
    assert response.status_code == 200

    response = await client.get(f"/v1/trips/{trip.id}/expenses/{expense['id']}", headers=trip.admin)
    assert response.status_code == 404
    assert response.json()["details"]["entity"] == "trip"

    result = await db_session.execute(select(AuditLog).where(AuditLog.trip_id == trip.id))
    assert [(e.entity_id, e.action.value) for e in result.scalars().all()] == [(expense["id"], "create")]


@pytest.mark.asyncio
async def test_unknown_trip_is_not_found(client, admin_headers):
    response = await client.get("/v1/trips/nope/participants", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client, trip):
    response = await client.get(f"/v1/trips/{trip.id}/participants")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_debug_token_endpoint(client):
    response = await client.post("/v1/auth/token", json={"identity_id": "zoe", "is_admin": False})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.json() == {"identity_id": "zoe", "is_admin": False}


@pytest.mark.asyncio
async def test_health(client, mock_redis):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["redis"] == "up"
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_debug_token_endpoint_refuses_admin_tokens(client):
    response = await client.post("/v1/auth/token", json={"identity_id": "mallory", "is_admin": True})
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_FORBIDDEN"


@pytest.mark.asyncio
async def test_debug_admin_tokens_need_explicit_opt_in(client, monkeypatch):
    monkeypatch.setattr(settings, "debug_admin_tokens", True)

    response = await client.post("/v1/auth/token", json={"identity_id": "ops", "is_admin": True})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.post(
        "/v1/admin/trips",
        json={"name": "Busan", "participant_names": ["A", "B"]},
        headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 201
