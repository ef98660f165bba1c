"""
Device Ingest Service
Generic device webhook: stage the raw payload (with duplicate protection),
then convert the known vital fields into vital_signs rows.
"""

import hashlib
import json
import time
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Any, Dict, Optional, Tuple

from telemetry_relay.core.config import settings
from telemetry_relay.enums import ProviderType, StagingStatus, TrustState
from telemetry_relay.exceptions.errors import ApplicationException, IntegrationError
from telemetry_relay.models.device_data_staging import DeviceDataStaging
from telemetry_relay.models.vital_sign import VitalSign
from telemetry_relay.schemas.webhook_schemas import DeviceWebhookPayload
from telemetry_relay.services.device_registry_service import DeviceRegistryService
from telemetry_relay.services.integration_ledger import IntegrationLedger, build_provider_request_id
from telemetry_relay.utils.time_utils import parse_timestamp, utc_now, elapsed_ms
from telemetry_relay.core.logger import get_logger

logger = get_logger("device_ingest_service")

PROVIDER_NAME = "device-webhook"

# payload field -> (vital_type, default unit)
VITAL_FIELDS: Dict[str, Tuple[str, str]] = {
    "heart_rate": ("heart_rate", "bpm"),
    "systolic": ("blood_pressure_systolic", "mmHg"),
    "diastolic": ("blood_pressure_diastolic", "mmHg"),
    "temperature": ("temperature", "degF"),
    "spo2": ("spo2", "%"),
    "respiratory_rate": ("respiratory_rate", "breaths/min"),
    "glucose": ("glucose", "mg/dL"),
    "weight": ("weight", "lb"),
}


def payload_hash(raw_payload: Dict[str, Any]) -> str:
    canonical = json.dumps(raw_payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


class DeviceIngestService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = IntegrationLedger(db)
        self.devices = DeviceRegistryService(db)

    async def handle_webhook(self, payload: DeviceWebhookPayload) -> Dict[str, Any]:
        raw_payload = payload.model_dump(exclude_none=True)
        entry = await self.ledger.start(
            agency_id=payload.agency_id,
            provider_type=ProviderType.MEDICAL_DEVICE.value,
            provider_name=PROVIDER_NAME,
            request_type="device_data_ingest",
            provider_request_id=build_provider_request_id(PROVIDER_NAME, payload.device_id, int(time.time() * 1000)),
            request_payload=raw_payload
        )

        try:
            device_registry_id = None
            if payload.resident_id:
                device_registry_id = await self.devices.try_upsert(f"device-{payload.device_id}", {
                    "resident_id": payload.resident_id,
                    "device_type": "GENERIC_DEVICE",
                    "device_name": raw_payload.get("device_name") or payload.device_id,
                    "manufacturer": raw_payload.get("manufacturer"),
                    "model": raw_payload.get("model"),
                    "firmware_version": raw_payload.get("firmware_version"),
                    "battery_level": raw_payload.get("battery_level"),
                    "trust_state": TrustState.UNVERIFIED.value,
                    "capabilities": {"vital_fields": sorted(k for k in raw_payload if k in VITAL_FIELDS)},
                    "real_device_verified": False,
                })

            staging, duplicate = await self.ingest_device_data(payload, raw_payload, device_registry_id)
            vitals_created = 0 if duplicate else await self.process_device_data_to_vitals(staging)

            response = {
                "success": True,
                "provider": PROVIDER_NAME,
                "staging_id": staging.id,
                "vitals_created": vitals_created,
                "duplicate": duplicate,
            }
            self.ledger.complete(entry, 200, response)
            await self.db.commit()

        except ApplicationException as e:
            await self.db.rollback()
            await self.ledger.record_failure_after_rollback(entry, e.message, e.status_code)
            raise
        except Exception as e:
            await self.db.rollback()
            await self.ledger.record_failure_after_rollback(entry, str(e))
            raise IntegrationError(f"Failed to ingest device data: {e}", PROVIDER_NAME)

        response["latency_ms"] = entry.latency_ms
        return response

    async def ingest_device_data(
        self,
        payload: DeviceWebhookPayload,
        raw_payload: Dict[str, Any],
        device_registry_id: Optional[str] = None
    ) -> Tuple[DeviceDataStaging, bool]:
        """
        Stage the payload. An identical payload received within the duplicate
        window returns the existing staging row instead of a new one.
        """
        digest = payload_hash(raw_payload)
        window_start = utc_now() - timedelta(minutes=settings.DEVICE_DUPLICATE_WINDOW_MINUTES)

        stmt = select(DeviceDataStaging).where(
            DeviceDataStaging.payload_hash == digest,
            DeviceDataStaging.received_at > window_start
        )
        result = await self.db.execute(stmt)
        existing = result.scalars().first()
        if existing:
            logger.info(f"Duplicate device payload from {payload.device_id}; staging {existing.id}")
            return existing, True

        staging = DeviceDataStaging(
            agency_id=payload.agency_id,
            device_id=payload.device_id,
            device_registry_id=device_registry_id,
            resident_id=payload.resident_id,
            raw_payload=raw_payload,
            payload_format="json",
            payload_hash=digest,
            status=StagingStatus.PENDING.value,
            received_at=utc_now()
        )
        self.db.add(staging)
        await self.db.flush()
        return staging, False

    async def process_device_data_to_vitals(self, staging: DeviceDataStaging) -> int:
        staging.status = StagingStatus.PROCESSING.value
        raw = staging.raw_payload or {}

        if not staging.resident_id:
            logger.warning(f"Staging {staging.id} has no resident; no vitals created")
            staging.status = StagingStatus.PROCESSED.value
            staging.processed_at = utc_now()
            staging.vitals_created = 0
            return 0

        measured_at = parse_timestamp(raw.get("timestamp"), utc_now())
        units = raw.get("units") if isinstance(raw.get("units"), dict) else {}

        vitals_created = 0
        for field, (vital_type, default_unit) in VITAL_FIELDS.items():
            if field not in raw:
                continue
            try:
                value = float(raw[field])
            except (TypeError, ValueError):
                logger.warning(f"Staging {staging.id}: non-numeric {field}={raw[field]!r}; skipped")
                continue

            self.db.add(VitalSign(
                resident_id=staging.resident_id,
                staging_id=staging.id,
                vital_type=vital_type,
                value=value,
                unit=units.get(field, default_unit),
                measured_at=measured_at,
                source="device",
                source_field=field,
                vital_metadata={"device_id": staging.device_id, "staging_id": staging.id}
            ))
            vitals_created += 1

        staging.status = StagingStatus.PROCESSED.value
        staging.processed_at = utc_now()
        staging.vitals_created = vitals_created
        await self.db.flush()
        return vitals_created
