from __future__ import annotations

from datetime import timedelta

import pytest

from usage_monitor.core.usage.types import AccountPatch
from usage_monitor.core.utils.time import utcnow
from usage_monitor.db.session import SessionLocal
from usage_monitor.modules.monitor.scheduler import get_monitor_scheduler
from usage_monitor.modules.monitor.store import UsageStore

pytestmark = pytest.mark.integration


async def _user_id(client) -> str:
    response = await client.get("/api/auth/session")
    return response.json()["userId"]


@pytest.mark.asyncio
async def test_anonymous_reads_are_empty_and_writes_rejected(async_client):
    response = await async_client.get("/api/accounts")
    assert response.status_code == 200
    assert response.json() == {"capacity": 100.0, "accounts": []}

    save = await async_client.put("/api/accounts", json={"usages": {"1": 10}})
    assert save.status_code == 401
    assert save.json()["error"]["code"] == "authentication_required"

    patch = await async_client.patch("/api/accounts/1", json={"usagePercent": 10})
    assert patch.status_code == 401


@pytest.mark.asyncio
async def test_signup_creates_default_accounts(signed_in_client):
    response = await signed_in_client.get("/api/accounts")
    payload = response.json()
    assert [entry["accountNumber"] for entry in payload["accounts"]] == [1, 2, 3]
    first = payload["accounts"][0]
    assert first["displayName"] == "Account 1"
    assert first["usagePercent"] == 0
    assert first["resetDate"] is None
    assert first["needsUpdate"] is False
    assert first["resetState"] == "normal"


@pytest.mark.asyncio
async def test_save_all_records_history_once_per_change(signed_in_client):
    first = await signed_in_client.put("/api/accounts", json={"usages": {"1": 40, "2": 10, "3": 0}})
    assert first.status_code == 200
    payload = first.json()
    assert payload["historySaved"] is True
    assert payload["accounts"][0]["usagePercent"] == 40
    assert payload["accounts"][0]["remaining"] == 60

    repeat = await signed_in_client.put("/api/accounts", json={"usages": {"1": 40, "2": 10, "3": 0}})
    assert repeat.json()["historySaved"] is False

    history = await signed_in_client.get("/api/history")
    assert history.json()["count"] == 1


@pytest.mark.asyncio
async def test_save_all_rejects_out_of_range_and_unknown_accounts(signed_in_client):
    too_high = await signed_in_client.put("/api/accounts", json={"usages": {"1": 101}})
    assert too_high.status_code == 400
    assert too_high.json()["error"]["code"] == "invalid_usage"

    unknown = await signed_in_client.put("/api/accounts", json={"usages": {"4": 10}})
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "account_not_found"


@pytest.mark.asyncio
async def test_patch_usage_schedules_history_snapshot(signed_in_client):
    response = await signed_in_client.patch("/api/accounts/2", json={"usagePercent": 35})
    assert response.status_code == 200
    assert response.json()["usagePercent"] == 35

    user_id = await _user_id(signed_in_client)
    assert get_monitor_scheduler().has_pending_snapshot(user_id)


@pytest.mark.asyncio
async def test_patch_reset_date_validation(signed_in_client):
    past = (utcnow() - timedelta(hours=1)).isoformat()
    rejected = await signed_in_client.patch("/api/accounts/1", json={"resetDate": past})
    assert rejected.status_code == 400
    assert rejected.json()["error"]["code"] == "invalid_reset_date"

    future = (utcnow() + timedelta(days=5)).replace(microsecond=0)
    accepted = await signed_in_client.patch("/api/accounts/1", json={"resetDate": future.isoformat() + "Z"})
    assert accepted.status_code == 200
    assert accepted.json()["resetDate"].startswith(future.isoformat())

    missing = await signed_in_client.patch("/api/accounts/9", json={"usagePercent": 1})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_resets_account_to_defaults(signed_in_client):
    future = (utcnow() + timedelta(days=5)).isoformat()
    await signed_in_client.patch("/api/accounts/3", json={"usagePercent": 70, "resetDate": future})

    response = await signed_in_client.delete("/api/accounts/3")

    payload = response.json()
    assert response.status_code == 200
    assert payload["usagePercent"] == 0
    assert payload["resetDate"] is None
    assert payload["needsUpdate"] is False


@pytest.mark.asyncio
async def test_reset_check_zeroes_due_accounts(signed_in_client):
    user_id = await _user_id(signed_in_client)
    async with SessionLocal() as session:
        store = UsageStore(session, user_id, account_count=3)
        await store.save_account(
            1,
            AccountPatch(usage_percent=80, reset_date=utcnow() - timedelta(minutes=5)),
        )

    response = await signed_in_client.post("/api/accounts/reset-check")
    assert response.status_code == 200
    assert response.json() == {"resetAccounts": [1]}

    accounts = (await signed_in_client.get("/api/accounts")).json()["accounts"]
    assert accounts[0]["usagePercent"] == 0
    assert accounts[0]["needsUpdate"] is True
    assert accounts[0]["resetState"] == "awaiting_new_reset_date"

    again = await signed_in_client.post("/api/accounts/reset-check")
    assert again.json() == {"resetAccounts": []}
