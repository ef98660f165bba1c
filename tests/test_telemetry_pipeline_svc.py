"""Test the shared ingest pipeline with a minimal provider adapter."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.exceptions.errors import IntegrationError
from telemetry_relay.models import DeviceRegistry, HealthMetric, IntegrationRequest
from telemetry_relay.services.identity_resolver import ResidentIdentity
from telemetry_relay.services.telemetry_pipeline import (
    ProviderAdapter,
    Reading,
    TelemetryPipeline,
    WorkUnit,
    reading_occurrence,
)


class ScaleAdapter(ProviderAdapter):
    provider_name = "test-scale"
    device_prefix = "scale"

    def __init__(self, fail_on_collect=False, device_type="SCALE"):
        self.fail_on_collect = fail_on_collect
        self.device_type = device_type

    def validate(self, payload):
        return payload

    def work_units(self, payload):
        return [WorkUnit(
            external_id=payload["scale_id"],
            discriminator=payload["reading_id"],
            identity=ResidentIdentity(agency_id="a1", resident_id="r1"),
            device_fields={"device_type": self.device_type},
            readings=[Reading(raw_type="weight", value=70.2, recorded_at=datetime(2026, 2, 1, 7, 0))],
        )]

    async def collect(self, unit, http_client):
        if self.fail_on_collect:
            raise RuntimeError("scale cloud exploded")


@pytest.mark.asyncio
async def test_unexpected_error_rolls_back_and_records_failed_row(db: AsyncSession, fetch_all):
    pipeline = TelemetryPipeline(db, ScaleAdapter(fail_on_collect=True))

    with pytest.raises(IntegrationError) as exc_info:
        await pipeline.ingest({"scale_id": "s1", "reading_id": "rd-1"})

    assert exc_info.value.provider == "test-scale"
    ledger = await fetch_all(IntegrationRequest)
    assert len(ledger) == 1
    assert ledger[0].response_status == 500
    assert "scale cloud exploded" in ledger[0].error_message
    assert ledger[0].provider_request_id == "test-scale-s1-rd-1"
    assert await fetch_all(HealthMetric) == []


@pytest.mark.asyncio
async def test_device_upsert_failure_still_stores_unlinked_metrics(db: AsyncSession, fetch_all):
    pipeline = TelemetryPipeline(db, ScaleAdapter(device_type=None))

    result = await pipeline.ingest({"scale_id": "s1", "reading_id": "rd-1"})

    assert result["metrics_created"] == 1
    assert result["devices"] == []
    assert await fetch_all(DeviceRegistry) == []

    metrics = await fetch_all(HealthMetric)
    assert metrics[0].device_registry_id is None
    assert metrics[0].metric_category == "OTHER"
    assert metrics[0].metric_type == "weight"

    ledger = await fetch_all(IntegrationRequest)
    assert ledger[0].response_payload["device_linked"] is False


def test_reading_occurrence_prefers_record_id_then_timestamp():
    unit = WorkUnit(external_id="s1", discriminator="delivery-7")
    at = datetime(2026, 2, 1, 8, 0)

    assert reading_occurrence(unit, Reading("weight", 70, at, source_id="log-1"), 0) == "record:log-1"
    assert reading_occurrence(unit, Reading("weight", 70, at), 0) == at.isoformat()
    # Without a sample time, position in the delivery keeps readings apart
    defaulted = Reading("weight", 70, at, has_timestamp=False)
    assert reading_occurrence(unit, defaulted, 0) != reading_occurrence(unit, defaulted, 1)
