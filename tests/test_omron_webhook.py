"""Test Omron medical device ingestion."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from telemetry_relay.models import DeviceDataEvent, DeviceRegistry, HealthMetric


def omron_payload(**overrides):
    payload = {
        "device_id": "BP7450-001",
        "agency_id": "a1",
        "resident_id": "r1",
        "device_info": {"model": "BP7450", "serial_number": "SN-1", "firmware_version": "2.1.0", "battery_level": 80},
        "measurements": [
            {
                "measurement_type": "blood_pressure",
                "timestamp": "2026-02-01T07:45:00Z",
                "values": {"systolic": 132, "diastolic": 84, "pulse": 66, "irregular_heartbeat": False},
                "unit": "mmHg",
                "measurement_id": "m-1",
            },
            {
                "measurement_type": "weight",
                "timestamp": "2026-02-01T07:50:00Z",
                "values": {"weight": 154.2, "body_fat_percentage": 0},
                "unit": "lb",
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_measurements_are_stored_with_high_confidence(client: AsyncClient, fetch_all):
    response = await client.post("/api/v1/webhooks/omron", json=omron_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["provider"] == "omron"
    assert body["device_id"] == "BP7450-001"
    assert body["measurements_processed"] == 2
    assert body["metrics_created"] == 4
    assert body["events_created"] == 2

    metrics = {m.metric_type: m for m in await fetch_all(HealthMetric)}
    assert set(metrics) == {"systolic", "diastolic", "heart_rate", "weight"}
    assert all(m.confidence_level == "HIGH" for m in metrics.values())
    assert metrics["weight"].unit == "lb"
    assert metrics["systolic"].device_firmware_version == "2.1.0"
    assert metrics["systolic"].device_battery_level == 80
    assert metrics["systolic"].raw_data["irregular_heartbeat"] is False

    events = await fetch_all(DeviceDataEvent)
    assert {e.event_type for e in events} == {"MEASUREMENT_RECEIVED"}


@pytest.mark.asyncio
async def test_firmware_update_replaces_registry_row(client: AsyncClient, fetch_all):
    await client.post("/api/v1/webhooks/omron", json=omron_payload())
    updated = omron_payload()
    updated["device_info"] = {**updated["device_info"], "firmware_version": "2.2.0"}
    updated["measurements"] = updated["measurements"][:1]
    updated["measurements"][0] = {**updated["measurements"][0], "timestamp": "2026-02-02T07:45:00Z"}

    response = await client.post("/api/v1/webhooks/omron", json=updated)

    assert response.status_code == 200
    devices = await fetch_all(DeviceRegistry)
    assert len(devices) == 1
    assert devices[0].device_id == "omron-BP7450-001"
    assert devices[0].firmware_version == "2.2.0"


@pytest.mark.asyncio
async def test_missing_device_info_is_rejected(client: AsyncClient):
    payload = omron_payload()
    del payload["device_info"]

    response = await client.post("/api/v1/webhooks/omron", json=payload)

    assert response.status_code == 500
    assert "device_info" in response.json()["error"]
