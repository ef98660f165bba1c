"""
Omron adapter: medical-grade measurements pushed with the resident already known.
"""

import time
from typing import Any, Dict, List

from telemetry_relay.enums import ConfidenceLevel, DeviceEventType, ProviderType, TrustState
from telemetry_relay.schemas.webhook_schemas import OmronPayload
from telemetry_relay.services.identity_resolver import ResidentIdentity
from telemetry_relay.services.metric_normalizer import OMRON_METRICS
from telemetry_relay.services.telemetry_pipeline import DeviceEvent, ProviderAdapter, Reading, WorkUnit
from telemetry_relay.utils.time_utils import parse_timestamp, utc_now


class OmronAdapter(ProviderAdapter):
    provider_name = "omron"
    provider_type = ProviderType.MEDICAL_DEVICE.value
    request_type = "device_sync"
    device_prefix = "omron"
    metric_map = OMRON_METRICS
    confidence_level = ConfidenceLevel.HIGH.value
    payload_schema = OmronPayload

    def work_units(self, payload: OmronPayload) -> List[WorkUnit]:
        received_at = utc_now()
        info = payload.device_info

        readings = []
        events = []
        for measurement in payload.measurements:
            measured_at = parse_timestamp(measurement.timestamp)
            recorded_at = measured_at or received_at
            raw_data: Dict[str, Any] = {"measurement_id": measurement.measurement_id}
            if "irregular_heartbeat" in measurement.values:
                raw_data["irregular_heartbeat"] = measurement.values["irregular_heartbeat"]

            for key, value in measurement.values.items():
                # Zero or missing readings are not measurements
                if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
                    continue
                readings.append(Reading(
                    raw_type=f"{measurement.measurement_type}.{key}",
                    value=value,
                    raw_unit=measurement.unit,
                    recorded_at=recorded_at,
                    raw_data=raw_data,
                    source_id=measurement.measurement_id,
                    has_timestamp=measured_at is not None
                ))

            events.append(DeviceEvent(
                event_type=DeviceEventType.MEASUREMENT_RECEIVED.value,
                occurred_at=recorded_at,
                event_data={
                    "measurement_type": measurement.measurement_type,
                    "measurement_id": measurement.measurement_id,
                    "values": measurement.values,
                }
            ))

        unit = WorkUnit(
            external_id=payload.device_id,
            discriminator=str(int(time.time() * 1000)),
            identity=ResidentIdentity(agency_id=payload.agency_id, resident_id=payload.resident_id),
            device_fields={
                "device_type": "BLE_HEALTH_SENSOR",
                "device_name": f"Omron {info.model}",
                "manufacturer": "Omron",
                "model": info.model,
                "serial_number": info.serial_number,
                "firmware_version": info.firmware_version,
                "battery_level": info.battery_level,
                "trust_state": TrustState.TRUSTED.value,
                "capabilities": {
                    "medical_grade": True,
                    "measurement_types": [m.measurement_type for m in payload.measurements],
                },
                "real_device_verified": True,
            },
            readings=readings,
            events=events,
            ledger_payload={"device_id": payload.device_id, "measurement_count": len(payload.measurements)}
        )
        return [unit]

    def extend_response(self, payload: OmronPayload, response: Dict[str, Any]) -> Dict[str, Any]:
        response["device_id"] = payload.device_id
        response["measurements_processed"] = len(payload.measurements)
        return response
