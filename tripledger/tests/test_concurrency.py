"""
Concurrency Tests.

Optimistic revision checks on edits; last-write-wins when no revision is sent.
"""

import pytest

from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.exceptions import ConflictError
from tripledger.app.schemas.expense import ExpenseUpdate
from tripledger.app.services.expense_service import ExpenseService


@pytest.mark.asyncio
async def test_stale_revision_is_rejected(client, trip, create_expense):
    expense = await create_expense()
    url = f"/v1/trips/{trip.id}/expenses/{expense['id']}"
    alice = trip.headers["Alice"]

    first = await client.patch(url, json={"amount": 8000, "expected_revision": 1}, headers=alice)
    assert first.status_code == 200
    assert first.json()["revision"] == 2

    second = await client.patch(url, json={"amount": 7000, "expected_revision": 1}, headers=alice)
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_CONFLICT"

    current = (await client.get(url, headers=alice)).json()
    assert current["amount"] == 8000


@pytest.mark.asyncio
async def test_last_write_wins_without_revision(client, trip, create_expense):
    expense = await create_expense()
    url = f"/v1/trips/{trip.id}/expenses/{expense['id']}"
    alice = trip.headers["Alice"]

    await client.patch(url, json={"description": "first"}, headers=alice)
    response = await client.patch(url, json={"description": "second"}, headers=alice)
    assert response.status_code == 200
    assert response.json()["description"] == "second"
    assert response.json()["revision"] == 3


@pytest.mark.asyncio
async def test_soft_delete_bumps_revision(client, trip, create_expense):
    expense = await create_expense()
    url = f"/v1/trips/{trip.id}/expenses/{expense['id']}"

    await client.delete(url, headers=trip.headers["Alice"])
    restored = await client.post(f"{url}/restore", headers=trip.headers["Alice"])
    assert restored.json()["revision"] == 3


@pytest.mark.asyncio
async def test_conflict_raised_by_service(db_session, trip, create_expense):
    expense = await create_expense()
    ctx = SessionContext(
        trip_id=trip.id,
        identity=Identity("alice-identity"),
        participant_id=trip.ids["Alice"],
        is_treasurer=True,
    )

    with pytest.raises(ConflictError) as exc_info:
        await ExpenseService.update(db_session, ctx, expense["id"], ExpenseUpdate(amount=1, expected_revision=5))
    assert exc_info.value.entity_id == expense["id"]
