"""
Bank Account Tests.

Visibility: public accounts to every member, private ones to the owner,
treasurers and admins.
"""

import pytest

ACCOUNT = {"bank_name": "Kakao", "account_number": "3333-01-123", "account_holder": "Bob"}


@pytest.mark.asyncio
async def test_owner_upserts_account_and_flags_participant(client, trip):
    url = f"/v1/trips/{trip.id}/accounts/{trip.ids['Bob']}"

    response = await client.put(url, json=ACCOUNT, headers=trip.headers["Bob"])
    assert response.status_code == 200
    assert response.json()["is_public"] is False

    response = await client.put(url, json={**ACCOUNT, "account_number": "999"}, headers=trip.headers["Bob"])
    assert response.status_code == 200
    assert response.json()["account_number"] == "999"

    participants = (await client.get(f"/v1/trips/{trip.id}/participants", headers=trip.headers["Bob"])).json()
    flags = {p["name"]: p["has_account"] for p in participants}
    assert flags == {"Alice": False, "Bob": True, "Carol": False}


@pytest.mark.asyncio
async def test_only_owner_or_admin_upserts(client, trip):
    url = f"/v1/trips/{trip.id}/accounts/{trip.ids['Bob']}"

    assert (await client.put(url, json=ACCOUNT, headers=trip.headers["Carol"])).status_code == 403
    assert (await client.put(url, json=ACCOUNT, headers=trip.headers["Alice"])).status_code == 403
    assert (await client.put(url, json=ACCOUNT, headers=trip.admin)).status_code == 200


@pytest.mark.asyncio
async def test_private_account_visibility(client, trip):
    url = f"/v1/trips/{trip.id}/accounts/{trip.ids['Bob']}"
    await client.put(url, json=ACCOUNT, headers=trip.headers["Bob"])

    assert (await client.get(url, headers=trip.headers["Bob"])).status_code == 200
    assert (await client.get(url, headers=trip.headers["Alice"])).status_code == 200
    assert (await client.get(url, headers=trip.admin)).status_code == 200
    assert (await client.get(url, headers=trip.headers["Carol"])).status_code == 404

    listing = await client.get(f"/v1/trips/{trip.id}/accounts", headers=trip.headers["Carol"])
    assert listing.json() == []


@pytest.mark.asyncio
async def test_public_account_visible_to_members(client, trip):
    url = f"/v1/trips/{trip.id}/accounts/{trip.ids['Bob']}"
    await client.put(url, json={**ACCOUNT, "is_public": True}, headers=trip.headers["Bob"])

    assert (await client.get(url, headers=trip.headers["Carol"])).status_code == 200
    listing = await client.get(f"/v1/trips/{trip.id}/accounts", headers=trip.headers["Carol"])
    assert [a["participant_id"] for a in listing.json()] == [trip.ids["Bob"]]


@pytest.mark.asyncio
async def test_trip_treasury_account(client, trip):
    url = f"/v1/trips/{trip.id}/treasury/account"

    assert (await client.get(url, headers=trip.headers["Bob"])).json() is None

    payload = {"bank_name": "Toss", "account_number": "1000-2000", "account_holder": "Alice", "memo": "Trip fund"}
    assert (await client.put(url, json=payload, headers=trip.headers["Bob"])).status_code == 403

    response = await client.put(url, json=payload, headers=trip.headers["Alice"])
    assert response.status_code == 200
    assert response.json()["treasurer_id"] == trip.ids["Alice"]

    response = await client.get(url, headers=trip.headers["Carol"])
    assert response.json()["memo"] == "Trip fund"
