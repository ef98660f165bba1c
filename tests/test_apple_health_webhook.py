"""Test Apple Health ingestion through the telemetry pipeline."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from telemetry_relay.models import DeviceDataEvent, DeviceRegistry, HealthMetric, IntegrationRequest


def apple_payload(**overrides):
    payload = {
        "agency_id": "a1",
        "resident_id": "r1",
        "sync_id": "sync-001",
        "device": {"hardware_id": "W1234", "name": "Apple Watch", "model": "Watch7,1", "software_version": "10.2"},
        "metrics": [
            {"type": "HKQuantityTypeIdentifierHeartRate", "value": 72, "unit": "count/min",
             "start_date": "2026-02-01T08:30:00Z"},
            {"type": "HKQuantityTypeIdentifierStepCount", "value": 4200, "unit": "count",
             "start_date": "2026-02-01T00:00:00Z"},
            {"type": "HKQuantityTypeIdentifierUVExposure", "value": 3, "unit": "count",
             "start_date": "2026-02-01T12:00:00Z"},
        ],
        "workouts": [
            {"activity_type": "Walking", "start_date": "2026-02-01T09:00:00Z",
             "end_date": "2026-02-01T09:30:00Z", "duration_seconds": 1800},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_sync_stores_normalized_metrics(client: AsyncClient, fetch_all):
    response = await client.post("/api/v1/webhooks/apple-health", json=apple_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["provider"] == "apple-health"
    assert body["processed"] == 1
    assert body["metrics_created"] == 3
    assert body["events_created"] == 2
    assert body["devices"] == ["apple-health-W1234"]

    metrics = {m.metric_type: m for m in await fetch_all(HealthMetric)}
    assert metrics["heart_rate"].metric_category == "CARDIOVASCULAR"
    assert metrics["heart_rate"].unit == "bpm"
    assert metrics["heart_rate"].value_numeric == 72.0
    assert metrics["heart_rate"].confidence_level == "MEDIUM"
    assert metrics["steps"].unit == "count"

    other = metrics["HKQuantityTypeIdentifierUVExposure"]
    assert other.metric_category == "OTHER"
    assert other.unit == "count"

    device = (await fetch_all(DeviceRegistry))[0]
    assert all(m.device_registry_id == device.id for m in metrics.values())
    assert device.firmware_version == "10.2"
    assert device.resident_id == "r1"

    events = sorted(e.event_type for e in await fetch_all(DeviceDataEvent))
    assert events == ["ACTIVITY_COMPLETED", "HEALTH_SYNC_RECEIVED"]

    ledger = await fetch_all(IntegrationRequest)
    assert len(ledger) == 1
    assert ledger[0].provider_request_id == "apple-health-W1234-sync-001"
    assert ledger[0].response_status == 200
    assert ledger[0].agency_id == "a1"


@pytest.mark.asyncio
async def test_redelivered_sync_skips_existing_metrics(client: AsyncClient, fetch_all):
    first = await client.post("/api/v1/webhooks/apple-health", json=apple_payload())
    second = await client.post("/api/v1/webhooks/apple-health", json=apple_payload())

    assert first.json()["metrics_created"] == 3
    assert second.status_code == 200
    assert second.json()["metrics_created"] == 0
    assert second.json()["duplicates_skipped"] == 3
    assert len(await fetch_all(HealthMetric)) == 3
    assert len(await fetch_all(DeviceRegistry)) == 1


@pytest.mark.asyncio
async def test_missing_metrics_is_a_validation_error(client: AsyncClient, fetch_all):
    payload = apple_payload()
    del payload["metrics"]

    response = await client.post("/api/v1/webhooks/apple-health", json=payload)

    assert response.status_code == 500
    assert response.json()["provider"] == "apple-health"
    assert "metrics" in response.json()["error"]
    assert await fetch_all(IntegrationRequest) == []


@pytest.mark.asyncio
async def test_without_hardware_id_device_falls_back_to_resident(client: AsyncClient, fetch_all):
    response = await client.post("/api/v1/webhooks/apple-health", json=apple_payload(device={}))

    assert response.status_code == 200
    device = (await fetch_all(DeviceRegistry))[0]
    assert device.device_id == "apple-health-resident-r1"
    assert device.real_device_verified is False


@pytest.mark.asyncio
async def test_distinct_samples_of_one_type_are_all_stored(client: AsyncClient, fetch_all):
    payload = apple_payload(workouts=[], metrics=[
        {"type": "HKQuantityTypeIdentifierStepCount", "value": 100, "unit": "count",
         "start_date": "2026-02-01T08:00:00Z", "source_record_id": "watch-1"},
        {"type": "HKQuantityTypeIdentifierStepCount", "value": 140, "unit": "count",
         "start_date": "2026-02-01T08:00:00Z", "source_record_id": "phone-1"},
        {"type": "HKQuantityTypeIdentifierHeartRate", "value": 70, "unit": "count/min"},
        {"type": "HKQuantityTypeIdentifierHeartRate", "value": 74, "unit": "count/min"},
    ])

    first = await client.post("/api/v1/webhooks/apple-health", json=payload)

    assert first.status_code == 200
    assert first.json()["metrics_created"] == 4
    assert first.json()["duplicates_skipped"] == 0
    stored = sorted((m.metric_type, m.value_numeric) for m in await fetch_all(HealthMetric))
    assert stored == [("heart_rate", 70.0), ("heart_rate", 74.0), ("steps", 100.0), ("steps", 140.0)]

    second = await client.post("/api/v1/webhooks/apple-health", json=payload)

    assert second.json()["metrics_created"] == 0
    assert second.json()["duplicates_skipped"] == 4
    assert len(await fetch_all(HealthMetric)) == 4
