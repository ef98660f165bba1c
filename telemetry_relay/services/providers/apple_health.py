"""
Apple Health adapter: direct identity, one work unit per sync.
"""

import time
from typing import List

from telemetry_relay.enums import DeviceEventType, TrustState
from telemetry_relay.schemas.webhook_schemas import AppleHealthPayload
from telemetry_relay.services.identity_resolver import ResidentIdentity
from telemetry_relay.services.metric_normalizer import APPLE_HEALTH_METRICS
from telemetry_relay.services.telemetry_pipeline import DeviceEvent, ProviderAdapter, Reading, WorkUnit
from telemetry_relay.utils.time_utils import parse_timestamp, utc_now


class AppleHealthAdapter(ProviderAdapter):
    provider_name = "apple-health"
    request_type = "health_sync"
    device_prefix = "apple-health"
    metric_map = APPLE_HEALTH_METRICS
    payload_schema = AppleHealthPayload

    def work_units(self, payload: AppleHealthPayload) -> List[WorkUnit]:
        received_at = utc_now()
        device = payload.device
        hardware_id = device.hardware_id or f"resident-{payload.resident_id}"

        readings = []
        for metric in payload.metrics:
            started_at = parse_timestamp(metric.start_date)
            readings.append(Reading(
                raw_type=metric.type,
                value=metric.value,
                raw_unit=metric.unit,
                recorded_at=started_at or received_at,
                source_id=metric.source_record_id,
                has_timestamp=started_at is not None,
                raw_data={
                    "source_record_id": metric.source_record_id,
                    "end_date": metric.end_date,
                    "unit": metric.unit,
                }
            ))

        metric_types = sorted({metric.type for metric in payload.metrics})
        events = [DeviceEvent(
            event_type=DeviceEventType.HEALTH_SYNC_RECEIVED.value,
            occurred_at=received_at,
            event_data={"metric_count": len(payload.metrics), "metric_types": metric_types}
        )]
        for workout in payload.workouts:
            events.append(DeviceEvent(
                event_type=DeviceEventType.ACTIVITY_COMPLETED.value,
                occurred_at=parse_timestamp(workout.end_date or workout.start_date, received_at),
                event_data=workout.model_dump()
            ))

        unit = WorkUnit(
            external_id=hardware_id,
            discriminator=payload.sync_id or str(int(time.time() * 1000)),
            identity=ResidentIdentity(agency_id=payload.agency_id, resident_id=payload.resident_id),
            device_fields={
                "device_type": "WEARABLE",
                "device_name": device.name or "Apple Health",
                "manufacturer": device.manufacturer,
                "model": device.model,
                "firmware_version": device.software_version,
                "trust_state": TrustState.TRUSTED.value,
                "capabilities": {"source": "healthkit", "metric_types": metric_types},
                "real_device_verified": device.hardware_id is not None,
            },
            readings=readings,
            events=events,
            ledger_payload={
                "resident_id": payload.resident_id,
                "hardware_id": hardware_id,
                "metric_count": len(payload.metrics),
                "workout_count": len(payload.workouts),
            }
        )
        return [unit]
