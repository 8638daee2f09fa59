"""
Participant Management Tests.

Membership changes, removal invariants and identity claims.
"""

import pytest


@pytest.mark.asyncio
async def test_member_adds_participant(client, trip):
    response = await client.post(
        f"/v1/trips/{trip.id}/participants", json={"name": "  Dave "}, headers=trip.headers["Bob"]
    )
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Dave"
    assert body["is_claimed"] is False
    assert body["is_treasurer"] is False


@pytest.mark.asyncio
async def test_outsider_cannot_add_participant(client, trip, headers_for):
    response = await client.post(
        f"/v1/trips/{trip.id}/participants", json={"name": "Eve"}, headers=headers_for("eve-identity")
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_name_is_rejected(client, trip):
    response = await client.post(
        f"/v1/trips/{trip.id}/participants", json={"name": "Bob"}, headers=trip.headers["Alice"]
    )
    assert response.status_code == 400
    assert response.json()["details"]["rule"] == "participant name already exists in this trip"


@pytest.mark.asyncio
async def test_removal_blocked_by_active_expense_then_allowed_after_soft_delete(client, trip, create_expense):
    expense = await create_expense(sharers=("Alice", "Carol"))
    carol_url = f"/v1/trips/{trip.id}/participants/{trip.ids['Carol']}"

    response = await client.delete(carol_url, headers=trip.headers["Alice"])
    assert response.status_code == 400
    assert response.json()["details"]["rule"] == "participant is referenced by an active expense"

    await client.delete(f"/v1/trips/{trip.id}/expenses/{expense['id']}", headers=trip.headers["Alice"])

    response = await client.delete(carol_url, headers=trip.headers["Alice"])
    assert response.status_code == 200
    assert response.json() == {"status": "participant_removed", "participant_id": trip.ids["Carol"]}

    participants = (await client.get(f"/v1/trips/{trip.id}/participants", headers=trip.headers["Bob"])).json()
    assert sorted(p["name"] for p in participants) == ["Alice", "Bob"]

    # The soft-deleted expense lost Carol but still has Alice as payer and sharer
    response = await client.post(
        f"/v1/trips/{trip.id}/expenses/{expense['id']}/restore", headers=trip.headers["Alice"]
    )
    assert response.status_code == 200
    assert response.json()["participant_ids"] == [trip.ids["Alice"]]


@pytest.mark.asyncio
async def test_restore_fails_when_payer_was_removed(client, trip, create_expense):
    expense = await create_expense(payer="Carol", sharers=("Alice", "Bob"))
    await client.delete(f"/v1/trips/{trip.id}/expenses/{expense['id']}", headers=trip.headers["Alice"])

    response = await client.delete(
        f"/v1/trips/{trip.id}/participants/{trip.ids['Carol']}", headers=trip.headers["Alice"]
    )
    assert response.status_code == 200

    response = await client.post(
        f"/v1/trips/{trip.id}/expenses/{expense['id']}/restore", headers=trip.headers["Alice"]
    )
    assert response.status_code == 400
    assert response.json()["details"]["rule"] == "expense references a removed participant"


@pytest.mark.asyncio
async def test_removal_audits_every_detached_reference(client, trip, create_expense):
    alice = trip.headers["Alice"]
    dave_id = (await client.post(
        f"/v1/trips/{trip.id}/participants", json={"name": "Dave"}, headers=alice
    )).json()["id"]
    trip.ids["Dave"] = dave_id

    expense = await create_expense(payer="Dave", sharers=("Alice", "Bob", "Dave"))
    tx = (await client.post(
        f"/v1/trips/{trip.id}/treasury/transactions",
        json={"direction": "receive", "counterparty_id": dave_id, "amount": 5000},
        headers=alice
    )).json()
    await client.delete(f"/v1/trips/{trip.id}/expenses/{expense['id']}", headers=alice)

    response = await client.delete(f"/v1/trips/{trip.id}/participants/{dave_id}", headers=alice)
    assert response.status_code == 200

    entries = (await client.get(f"/v1/trips/{trip.id}/history/{expense['id']}", headers=alice)).json()
    by_action = {e["action"]: e for e in entries}
    assert sorted(by_action) == ["create", "delete", "participants_update", "update"]
    assert dave_id in by_action["participants_update"]["before"]["participant_ids"]
    assert by_action["participants_update"]["after"]["participant_ids"] == sorted(
        [trip.ids["Alice"], trip.ids["Bob"]]
    )
    assert by_action["update"]["before"] == {"payer_id": dave_id}
    assert by_action["update"]["after"] == {"payer_id": None}

    entries = (await client.get(f"/v1/trips/{trip.id}/history/{tx['id']}", headers=alice)).json()
    assert [e["action"] for e in entries] == ["update", "create"]
    assert entries[0]["before"] == {"counterparty_id": dave_id}
    assert entries[0]["after"] == {"counterparty_id": None}
    assert entries[0]["actor_id"] == trip.ids["Alice"]


@pytest.mark.asyncio
async def test_trip_keeps_two_participants(client, trip):
    alice = trip.headers["Alice"]
    assert (await client.delete(
        f"/v1/trips/{trip.id}/participants/{trip.ids['Carol']}", headers=alice
    )).status_code == 200

    response = await client.delete(f"/v1/trips/{trip.id}/participants/{trip.ids['Bob']}", headers=alice)
    assert response.status_code == 400
    assert "at least 2" in response.json()["details"]["rule"]


@pytest.mark.asyncio
async def test_member_cannot_remove_participant(client, trip):
    response = await client.delete(
        f"/v1/trips/{trip.id}/participants/{trip.ids['Carol']}", headers=trip.headers["Bob"]
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_removes_participant(client, trip):
    response = await client.delete(
        f"/v1/trips/{trip.id}/participants/{trip.ids['Carol']}", headers=trip.admin
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_treasurer_toggle_is_admin_only(client, trip):
    url = f"/v1/admin/trips/{trip.id}/participants/{trip.ids['Bob']}/treasurer"

    response = await client.put(url, json={"is_treasurer": True}, headers=trip.headers["Alice"])
    assert response.status_code == 403

    response = await client.put(url, json={"is_treasurer": True}, headers=trip.admin)
    assert response.status_code == 200
    assert response.json()["is_treasurer"] is True


@pytest.mark.asyncio
async def test_claim_rules(client, trip, headers_for):
    response = await client.post(
        f"/v1/trips/{trip.id}/participants", json={"name": "Dave"}, headers=trip.headers["Bob"]
    )
    dave_id = response.json()["id"]
    claim_url = f"/v1/trips/{trip.id}/participants/{dave_id}/claim"

    # Another identity already holds Bob
    response = await client.post(
        f"/v1/trips/{trip.id}/participants/{trip.ids['Bob']}/claim", headers=headers_for("dave-identity")
    )
    assert response.status_code == 409

    # Bob cannot hold a second participant in the same trip
    response = await client.post(claim_url, headers=trip.headers["Bob"])
    assert response.status_code == 409

    response = await client.post(claim_url, headers=headers_for("dave-identity"))
    assert response.status_code == 200
    assert response.json()["is_claimed"] is True

    # Re-claim by the same identity is a no-op
    response = await client.post(claim_url, headers=headers_for("dave-identity"))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_participant_changes_are_published(client, trip, mock_redis):
    await client.post(f"/v1/trips/{trip.id}/participants", json={"name": "Dave"}, headers=trip.headers["Bob"])
    assert f"tripledger:trip:{trip.id}:participants" in mock_redis.channels()
