from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_anonymous_history_is_empty(async_client):
    response = await async_client.get("/api/history")
    assert response.json() == {"count": 0, "points": []}

    record = await async_client.post("/api/history")
    assert record.status_code == 401
    clear = await async_client.delete("/api/history")
    assert clear.status_code == 401


@pytest.mark.asyncio
async def test_record_skips_unchanged_usage_then_list_and_clear(signed_in_client):
    await signed_in_client.put("/api/accounts", json={"usages": {"1": 10, "2": 20, "3": 30}})

    for _ in range(2):
        unchanged = await signed_in_client.post("/api/history")
        assert unchanged.status_code == 200
        assert unchanged.json() == {"saved": False, "point": None}
    assert (await signed_in_client.get("/api/history")).json()["count"] == 1

    await signed_in_client.patch("/api/accounts/2", json={"usagePercent": 25})
    recorded = await signed_in_client.post("/api/history")
    payload = recorded.json()
    assert payload["saved"] is True
    assert payload["point"]["usage"] == {"1": 10.0, "2": 25.0, "3": 30.0}

    await signed_in_client.put("/api/accounts", json={"usages": {"1": 15}})

    listed = (await signed_in_client.get("/api/history")).json()
    assert listed["count"] == 3
    timestamps = [point["timestamp"] for point in listed["points"]]
    assert timestamps == sorted(timestamps)

    limited = (await signed_in_client.get("/api/history?limit=1")).json()
    assert limited["count"] == 1
    assert limited["points"][0]["usage"]["1"] == 15

    cleared = await signed_in_client.delete("/api/history")
    assert cleared.json() == {"status": "cleared"}
    assert (await signed_in_client.get("/api/history?days=7")).json()["count"] == 0
