"""Test Fitbit verification, collection fetch and upstream failures."""

from __future__ import annotations

import httpx
import pytest
from httpx import AsyncClient

from telemetry_relay.models import HealthMetric, IntegrationProvider, IntegrationRequest


ACTIVITIES_BODY = {
    "summary": {
        "steps": 6012,
        "caloriesOut": 1890,
        "restingHeartRate": 64,
        "distances": [{"activity": "total", "distance": 4.1}, {"activity": "tracker", "distance": 4.0}],
    }
}


@pytest.mark.asyncio
async def test_verification_with_correct_code_returns_204(client: AsyncClient):
    response = await client.get("/api/v1/webhooks/fitbit", params={"verify": "verify-me"})
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_verification_with_wrong_code_returns_404(client: AsyncClient):
    response = await client.get("/api/v1/webhooks/fitbit", params={"verify": "nope"})
    assert response.status_code == 404
    assert response.content == b""


@pytest.mark.asyncio
async def test_notification_fetches_collection_and_stores_metrics(client: AsyncClient, upstream, add_mapping, fetch_all):
    await add_mapping("fitbit", "ABC123", agency_id="a1", resident_id="r1")
    upstream.responder = lambda request: httpx.Response(200, json=ACTIVITIES_BODY)

    response = await client.post(
        "/api/v1/webhooks/fitbit",
        json=[{"collectionType": "activities", "date": "2026-02-01", "ownerId": "ABC123", "ownerType": "user"}],
    )

    assert response.status_code == 200
    assert response.json()["metrics_created"] == 4

    assert len(upstream.requests) == 1
    sent = upstream.requests[0]
    assert sent.url == "https://api.fitbit.test/1/user/ABC123/activities/date/2026-02-01.json"
    assert sent.headers["Authorization"] == "Bearer fitbit-token"

    metrics = {m.metric_type: m for m in await fetch_all(HealthMetric)}
    assert set(metrics) == {"steps", "calories", "resting_hr", "distance"}
    assert metrics["distance"].value_numeric == 4.1

    providers = await fetch_all(IntegrationProvider)
    assert len(providers) == 1
    assert providers[0].provider_name == "fitbit"
    assert providers[0].health_status == "healthy"


@pytest.mark.asyncio
async def test_unknown_owner_is_skipped_without_fetch(client: AsyncClient, upstream, add_mapping, fetch_all):
    await add_mapping("fitbit", "known")
    upstream.responder = lambda request: httpx.Response(200, json=ACTIVITIES_BODY)

    response = await client.post(
        "/api/v1/webhooks/fitbit",
        json=[
            {"collectionType": "activities", "date": "2026-02-01", "ownerId": "unknown"},
            {"collectionType": "activities", "date": "2026-02-01", "ownerId": "known"},
        ],
    )

    assert response.status_code == 200
    assert response.json()["processed"] == 1
    assert response.json()["skipped"] == 1
    assert [r.url.path for r in upstream.requests] == ["/1/user/known/activities/date/2026-02-01.json"]


@pytest.mark.asyncio
async def test_upstream_401_records_failure_and_returns_500(client: AsyncClient, upstream, add_mapping, fetch_all):
    await add_mapping("fitbit", "ABC123")
    upstream.responder = lambda request: httpx.Response(401, json={"errors": [{"errorType": "expired_token"}]})

    response = await client.post(
        "/api/v1/webhooks/fitbit",
        json={"collectionType": "sleep", "date": "2026-02-01", "ownerId": "ABC123"},
    )

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["provider"] == "fitbit"

    ledger = await fetch_all(IntegrationRequest)
    assert len(ledger) == 1
    assert ledger[0].response_status == 401
    assert "expired_token" in ledger[0].error_message

    providers = await fetch_all(IntegrationProvider)
    assert providers[0].health_status == "failed"
    assert providers[0].failure_count == 1
    assert await fetch_all(HealthMetric) == []


@pytest.mark.asyncio
async def test_empty_notification_list_is_rejected(client: AsyncClient):
    response = await client.post("/api/v1/webhooks/fitbit", json=[])
    assert response.status_code == 500
    assert response.json()["provider"] == "fitbit"


@pytest.mark.asyncio
async def test_collection_without_fetch_path_leaves_health_untouched(client: AsyncClient, upstream, add_mapping, fetch_all):
    await add_mapping("fitbit", "ABC123")

    response = await client.post(
        "/api/v1/webhooks/fitbit",
        json=[{"collectionType": "foods", "ownerId": "ABC123", "date": "2026-02-01"}],
    )

    assert response.status_code == 200
    assert response.json()["processed"] == 1
    assert upstream.requests == []
    assert await fetch_all(IntegrationProvider) == []
    assert len(await fetch_all(IntegrationRequest)) == 1
