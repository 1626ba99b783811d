from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_report_without_history(signed_in_client):
    response = await signed_in_client.get("/api/reports")
    assert response.status_code == 200
    payload = response.json()
    assert payload["summary"]["totalRecords"] == 0
    assert payload["totalChange"] == 0
    assert payload["streaks"] == []
    assert len(payload["hourly"]) == 24
    assert len(payload["weekday"]) == 7


@pytest.mark.asyncio
async def test_report_counts_saved_history(signed_in_client):
    await signed_in_client.put("/api/accounts", json={"usages": {"1": 10, "2": 0, "3": 0}})
    await signed_in_client.put("/api/accounts", json={"usages": {"1": 25}})

    payload = (await signed_in_client.get("/api/reports")).json()

    assert payload["summary"]["totalRecords"] == 2
    assert payload["summary"]["mostUsedAccount"] == 1
    assert payload["totalChange"] == 15


@pytest.mark.asyncio
async def test_overview_combines_snapshot_and_history(signed_in_client):
    await signed_in_client.put("/api/accounts", json={"usages": {"1": 60, "2": 20, "3": 0}})

    response = await signed_in_client.get("/api/reports/overview?days=7")
    assert response.status_code == 200
    payload = response.json()
    assert payload["capacityMode"] == "normal"
    snapshot = payload["snapshot"]
    assert [account["display"]["used"] for account in snapshot["accounts"]] == [60, 20, 0]
    assert snapshot["overview"]["bestAccount"] == 3
    assert snapshot["recommendation"]["accountNumber"] == 3
    assert len(payload["history"]) == 1


@pytest.mark.asyncio
async def test_anonymous_overview_is_placeholder(async_client):
    payload = (await async_client.get("/api/reports/overview")).json()
    assert payload["snapshot"]["accounts"] == []
    assert payload["snapshot"]["recommendation"] is None
    assert payload["history"] == []
