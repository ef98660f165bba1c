"""Test outbound SMS through Twilio."""

from __future__ import annotations

import httpx
import pytest
from httpx import AsyncClient

from telemetry_relay.models import IntegrationProvider, IntegrationRequest, NotificationDelivery

SMS = {"agency_id": "a1", "to": "+15555550100", "body": "Morning medication taken at 08:05.", "resident_id": "r1"}


@pytest.mark.asyncio
async def test_send_sms_success(client: AsyncClient, upstream, fetch_all):
    upstream.responder = lambda request: httpx.Response(201, json={"sid": "SM123", "status": "queued"})

    response = await client.post("/api/v1/integrations/sms/send", json=SMS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["provider"] == "twilio"
    assert body["message_sid"] == "SM123"

    sent = upstream.requests[0]
    assert sent.method == "POST"
    assert sent.url == "https://api.twilio.test/2010-04-01/Accounts/AC_test/Messages.json"
    assert sent.headers["Authorization"].startswith("Basic ")
    form = dict(httpx.QueryParams(sent.content.decode()))
    assert form == {"To": "+15555550100", "From": "+15555550000", "Body": SMS["body"]}

    delivery = (await fetch_all(NotificationDelivery))[0]
    assert delivery.status == "sent"
    assert delivery.provider_message_id == "SM123"
    assert delivery.sent_at is not None

    ledger = (await fetch_all(IntegrationRequest))[0]
    assert ledger.provider_type == "sms"
    assert ledger.request_type == "send_sms"
    assert ledger.response_status == 201

    provider = (await fetch_all(IntegrationProvider))[0]
    assert provider.health_status == "healthy"
    assert provider.last_success_at is not None


@pytest.mark.asyncio
async def test_twilio_401_records_failed_request(client: AsyncClient, upstream, fetch_all):
    upstream.responder = lambda request: httpx.Response(
        401, json={"code": 20003, "message": "Authenticate", "status": 401}
    )

    response = await client.post("/api/v1/integrations/sms/send", json=SMS)

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["provider"] == "twilio"

    ledger = await fetch_all(IntegrationRequest)
    assert len(ledger) == 1
    assert ledger[0].response_status == 401
    assert ledger[0].error_message
    assert "Authenticate" in ledger[0].error_message
    assert ledger[0].completed_at is not None

    provider = (await fetch_all(IntegrationProvider))[0]
    assert provider.provider_name == "twilio"
    assert provider.health_status == "failed"
    assert provider.last_failure_at is not None

    delivery = (await fetch_all(NotificationDelivery))[0]
    assert delivery.status == "failed"


@pytest.mark.asyncio
async def test_network_error_is_recorded_as_502(client: AsyncClient, upstream, fetch_all):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)
    upstream.responder = unreachable

    response = await client.post("/api/v1/integrations/sms/send", json=SMS)

    assert response.status_code == 500
    assert (await fetch_all(IntegrationRequest))[0].response_status == 502


@pytest.mark.asyncio
async def test_unconfigured_twilio_fails_before_calling_out(client: AsyncClient, upstream, relay_settings, monkeypatch, fetch_all):
    monkeypatch.setattr(relay_settings, "TWILIO_AUTH_TOKEN", None)

    response = await client.post("/api/v1/integrations/sms/send", json=SMS)

    assert response.status_code == 500
    assert "not configured" in response.json()["error"]
    assert upstream.requests == []
    assert await fetch_all(IntegrationRequest) == []


@pytest.mark.asyncio
async def test_missing_body_is_rejected(client: AsyncClient):
    response = await client.post("/api/v1/integrations/sms/send", json={"agency_id": "a1", "to": "+1555"})
    assert response.status_code == 500
    assert "body" in response.json()["error"]


@pytest.mark.asyncio
async def test_unreadable_twilio_reply_still_completes_ledger(client: AsyncClient, upstream, fetch_all):
    upstream.responder = lambda request: httpx.Response(201, content=b"<xml>queued</xml>")

    response = await client.post("/api/v1/integrations/sms/send", json=SMS)

    assert response.status_code == 500
    assert response.json()["provider"] == "twilio"

    ledger = await fetch_all(IntegrationRequest)
    assert len(ledger) == 1
    assert ledger[0].response_status == 500
    assert ledger[0].completed_at is not None
    assert ledger[0].error_message

    delivery = (await fetch_all(NotificationDelivery))[0]
    assert delivery.status == "failed"

    provider = (await fetch_all(IntegrationProvider))[0]
    assert provider.health_status == "failed"
