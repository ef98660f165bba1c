"""Test app-level behaviour: service auth, CORS and unknown routes."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_integration_routes_open_when_no_key_configured(client: AsyncClient):
    response = await client.get("/api/v1/integrations/health", params={"agency_id": "a1"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_integration_routes_require_key_when_configured(client: AsyncClient, relay_settings, monkeypatch):
    monkeypatch.setattr(relay_settings, "RELAY_API_KEY", "s3cret")

    missing = await client.get("/api/v1/integrations/health", params={"agency_id": "a1"})
    wrong = await client.get(
        "/api/v1/integrations/health", params={"agency_id": "a1"}, headers={"Authorization": "Bearer nope"}
    )
    right = await client.get(
        "/api/v1/integrations/health", params={"agency_id": "a1"}, headers={"Authorization": "Bearer s3cret"}
    )

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert right.status_code == 200


@pytest.mark.asyncio
async def test_webhooks_stay_public_when_key_configured(client: AsyncClient, relay_settings, monkeypatch):
    monkeypatch.setattr(relay_settings, "RELAY_API_KEY", "s3cret")

    response = await client.post(
        "/api/v1/webhooks/device",
        json={"device_id": "d1", "agency_id": "a1", "resident_id": "r1"},
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cors_preflight_allows_any_origin(client: AsyncClient, relay_settings, monkeypatch):
    monkeypatch.setattr(relay_settings, "RELAY_API_KEY", "s3cret")

    response = await client.options(
        "/api/v1/integrations/sms/send",
        headers={
            "Origin": "https://caregiver.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization,content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_unknown_route_returns_json_404(client: AsyncClient):
    response = await client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Route not found", "path": "/api/v1/nothing-here"}
