"""Test provider health tracking and the health report route."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.enums import ProviderHealthStatus
from telemetry_relay.models import IntegrationProvider
from telemetry_relay.services.provider_health_service import ProviderHealthService


@pytest.mark.asyncio
async def test_failures_accumulate_and_success_resets(db: AsyncSession, fetch_all):
    service = ProviderHealthService(db)

    await service.update_provider_health("a1", "sms", "twilio", ProviderHealthStatus.FAILED, "401 Authenticate")
    await service.update_provider_health("a1", "sms", "twilio", ProviderHealthStatus.FAILED, "503 Unavailable")

    row = (await fetch_all(IntegrationProvider))[0]
    assert row.health_status == "failed"
    assert row.failure_count == 2
    assert row.last_error == "503 Unavailable"

    await service.update_provider_health("a1", "sms", "twilio", ProviderHealthStatus.HEALTHY)

    rows = await fetch_all(IntegrationProvider)
    assert len(rows) == 1
    assert rows[0].health_status == "healthy"
    assert rows[0].failure_count == 0
    assert rows[0].last_success_at is not None


@pytest.mark.asyncio
async def test_update_without_agency_is_a_no_op(db: AsyncSession, fetch_all):
    await ProviderHealthService(db).update_provider_health(None, "wearable", "fitbit", ProviderHealthStatus.FAILED)
    assert await fetch_all(IntegrationProvider) == []


@pytest.mark.asyncio
async def test_update_errors_are_swallowed(db: AsyncSession, fetch_all):
    # provider_type is NOT NULL; the failed write must not propagate
    await ProviderHealthService(db).update_provider_health("a1", None, "fitbit", ProviderHealthStatus.FAILED)
    assert await fetch_all(IntegrationProvider) == []


@pytest.mark.asyncio
async def test_health_report_route(client: AsyncClient, db: AsyncSession):
    service = ProviderHealthService(db)
    await service.update_provider_health("a1", "sms", "twilio", ProviderHealthStatus.HEALTHY)
    await service.update_provider_health("a1", "wearable", "fitbit", ProviderHealthStatus.FAILED, "expired token")
    await service.update_provider_health("a2", "sms", "twilio", ProviderHealthStatus.FAILED, "other agency")

    response = await client.get("/api/v1/integrations/health", params={"agency_id": "a1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["agency_id"] == "a1"
    assert [(p["provider_name"], p["health_status"]) for p in body["providers"]] == [
        ("fitbit", "failed"),
        ("twilio", "healthy"),
    ]
    assert body["providers"][0]["last_error"] == "expired token"


@pytest.mark.asyncio
async def test_health_report_requires_agency(client: AsyncClient):
    response = await client.get("/api/v1/integrations/health")
    assert response.status_code == 400
    assert response.json()["success"] is False
