"""
Telemetry Pipeline
One ingest operation shared by every provider webhook:

    validate -> resolve identity -> ledger(start)
      -> collect -> device upsert -> normalize -> write metrics/events
      -> ledger(complete) -> provider health -> respond

Each provider only supplies a ProviderAdapter. Every work unit (one summary,
one notification, one sync) is its own transaction: the ledger row and all
of its dependent writes commit together.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

import httpx
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.enums import ConfidenceLevel, ProviderHealthStatus, ProviderType
from telemetry_relay.exceptions.errors import (
    ApplicationException,
    IntegrationError,
    PayloadValidationError,
    ThirdPartyAPIError,
)
from telemetry_relay.services.device_registry_service import DeviceRegistryService
from telemetry_relay.services.identity_resolver import IdentityResolver, ResidentIdentity
from telemetry_relay.services.integration_ledger import IntegrationLedger, build_provider_request_id
from telemetry_relay.services.metric_normalizer import MetricSpec, normalize_metric
from telemetry_relay.services.metric_writer import MetricRow, MetricWriter, build_metric_key
from telemetry_relay.services.provider_health_service import ProviderHealthService
from telemetry_relay.utils.time_utils import utc_now, elapsed_ms
from telemetry_relay.core.logger import get_logger

logger = get_logger("telemetry_pipeline")


@dataclass
class Reading:
    """One provider-native measurement before normalization."""
    raw_type: str
    value: Any
    recorded_at: datetime
    raw_unit: Optional[str] = None
    raw_data: Dict[str, Any] = field(default_factory=dict)
    # Provider record id (HealthKit sample, Garmin summary, Fitbit log, Omron measurement)
    source_id: Optional[str] = None
    # False when recorded_at fell back to the time of receipt
    has_timestamp: bool = True


@dataclass
class DeviceEvent:
    event_type: str
    occurred_at: datetime
    event_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WorkUnit:
    external_id: str
    discriminator: str
    identity: Optional[ResidentIdentity] = None
    external_user_id: Optional[str] = None
    device_fields: Dict[str, Any] = field(default_factory=dict)
    readings: List[Reading] = field(default_factory=list)
    events: List[DeviceEvent] = field(default_factory=list)
    ledger_payload: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class UnitOutcome:
    metrics_created: int = 0
    duplicates_skipped: int = 0
    metrics_dropped: int = 0
    events_created: int = 0
    device_linked: bool = False


def reading_occurrence(unit: WorkUnit, reading: Reading, index: int) -> str:
    """What tells this reading apart from others of the same type on the same device."""
    if reading.source_id:
        return f"record:{reading.source_id}"
    if reading.has_timestamp:
        return reading.recorded_at.isoformat()
    return f"delivery:{unit.discriminator}:{index}"


def describe_validation_error(provider: str, exc: ValidationError) -> str:
    fields = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        fields.append(loc or error.get("msg", "payload"))
    return f"Invalid {provider} payload: missing or invalid fields ({', '.join(fields)})"


class ProviderAdapter:
    """
    Everything provider-specific about an ingest: payload contract, how a payload
    splits into work units, how identities resolve and how metrics normalize.
    """

    provider_name: str = ""
    provider_type: str = ProviderType.WEARABLE.value
    request_type: str = "webhook_ingest"
    device_prefix: str = ""
    metric_map: Dict[str, MetricSpec] = {}
    confidence_level: str = ConfidenceLevel.MEDIUM.value
    payload_schema: Optional[Type[BaseModel]] = None
    # Providers whose collect() calls out to a third-party API report provider health.
    # collect() sets unit.context["fetched"] once the upstream call succeeded.
    calls_external_api: bool = False

    @property
    def mapping_provider_type(self) -> str:
        return self.provider_name

    def validate(self, payload: Any) -> Any:
        try:
            return self.payload_schema.model_validate(payload)
        except ValidationError as e:
            raise PayloadValidationError(describe_validation_error(self.provider_name, e), self.provider_name)

    def work_units(self, payload: Any) -> List[WorkUnit]:
        raise NotImplementedError

    async def resolve_identity(self, unit: WorkUnit, resolver: IdentityResolver) -> Optional[ResidentIdentity]:
        if unit.identity is not None:
            return unit.identity
        return await resolver.lookup(self.mapping_provider_type, unit.external_user_id)

    async def collect(self, unit: WorkUnit, http_client: Optional[httpx.AsyncClient]) -> None:
        """Hook for providers that must fetch the data a notification points at."""
        return None

    def normalize_metric(self, raw_type: str, raw_unit: Optional[str] = None) -> MetricSpec:
        return normalize_metric(self.metric_map, raw_type, raw_unit)

    def device_id(self, unit: WorkUnit) -> str:
        return f"{self.device_prefix}-{unit.external_id}"

    def extend_response(self, payload: Any, response: Dict[str, Any]) -> Dict[str, Any]:
        return response


class TelemetryPipeline:
    """Runs one provider delivery through the shared ingest sequence."""

    def __init__(
        self,
        db: AsyncSession,
        adapter: ProviderAdapter,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.db = db
        self.adapter = adapter
        self.http_client = http_client
        self.ledger = IntegrationLedger(db)
        self.resolver = IdentityResolver(db)
        self.devices = DeviceRegistryService(db)
        self.writer = MetricWriter(db)
        self.health = ProviderHealthService(db)

    async def ingest(self, payload: Any) -> Dict[str, Any]:
        started_at = utc_now()
        adapter = self.adapter

        validated = adapter.validate(payload)
        units = adapter.work_units(validated)
        logger.info(f"Received {adapter.provider_name} delivery with {len(units)} item(s)")

        totals = UnitOutcome()
        processed = 0
        skipped = 0
        device_ids: List[str] = []

        # Strictly sequential: one item fully completes before the next begins
        for unit in units:
            identity = await adapter.resolve_identity(unit, self.resolver)
            if identity is None:
                skipped += 1
                continue

            outcome = await self._process_unit(unit, identity)
            processed += 1
            totals.metrics_created += outcome.metrics_created
            totals.duplicates_skipped += outcome.duplicates_skipped
            totals.metrics_dropped += outcome.metrics_dropped
            totals.events_created += outcome.events_created
            if outcome.device_linked:
                device_ids.append(adapter.device_id(unit))

        logger.info(
            f"{adapter.provider_name} ingest complete: {processed} processed, {skipped} skipped, "
            f"{totals.metrics_created} metrics, {totals.duplicates_skipped} duplicates"
        )

        response = {
            "success": True,
            "provider": adapter.provider_name,
            "items_received": len(units),
            "processed": processed,
            "skipped": skipped,
            "metrics_created": totals.metrics_created,
            "duplicates_skipped": totals.duplicates_skipped,
            "metrics_dropped": totals.metrics_dropped,
            "events_created": totals.events_created,
            "devices": device_ids,
            "latency_ms": elapsed_ms(started_at),
        }
        return adapter.extend_response(validated, response)

    async def _process_unit(self, unit: WorkUnit, identity: ResidentIdentity) -> UnitOutcome:
        adapter = self.adapter
        entry = await self.ledger.start(
            agency_id=identity.agency_id,
            provider_type=adapter.provider_type,
            provider_name=adapter.provider_name,
            request_type=adapter.request_type,
            provider_request_id=build_provider_request_id(adapter.provider_name, unit.external_id, unit.discriminator),
            request_payload=unit.ledger_payload
        )

        try:
            await adapter.collect(unit, self.http_client)
            outcome = await self._write_unit(unit, identity)

            self.ledger.complete(entry, 200, {
                "metrics_created": outcome.metrics_created,
                "duplicates_skipped": outcome.duplicates_skipped,
                "metrics_dropped": outcome.metrics_dropped,
                "events_created": outcome.events_created,
                "device_linked": outcome.device_linked,
            })
            await self.db.commit()

        except ThirdPartyAPIError as e:
            # The upstream answered: keep the ledger row with its status and surface a 500
            self.ledger.complete(entry, e.upstream_status, {"success": False, "body": e.body}, e.message)
            await self.db.commit()
            await self.health.update_provider_health(
                identity.agency_id, adapter.provider_type, adapter.provider_name,
                ProviderHealthStatus.FAILED, e.message
            )
            raise

        except ApplicationException as e:
            await self.db.rollback()
            await self.ledger.record_failure_after_rollback(entry, e.message, e.status_code)
            raise

        except Exception as e:
            await self.db.rollback()
            await self.ledger.record_failure_after_rollback(entry, str(e))
            raise IntegrationError(f"Failed to process {adapter.provider_name} data: {e}", adapter.provider_name)

        # Health reflects an upstream call that actually happened
        if adapter.calls_external_api and unit.context.get("fetched"):
            await self.health.update_provider_health(
                identity.agency_id, adapter.provider_type, adapter.provider_name,
                ProviderHealthStatus.HEALTHY
            )
        return outcome

    async def _write_unit(self, unit: WorkUnit, identity: ResidentIdentity) -> UnitOutcome:
        adapter = self.adapter
        outcome = UnitOutcome()

        device_fields = dict(unit.device_fields)
        device_fields["resident_id"] = identity.resident_id
        device_registry_id = await self.devices.try_upsert(adapter.device_id(unit), device_fields)
        outcome.device_linked = device_registry_id is not None

        rows = []
        for index, reading in enumerate(unit.readings):
            spec = adapter.normalize_metric(reading.raw_type, reading.raw_unit)
            rows.append(MetricRow(
                metric_key=build_metric_key(
                    adapter.provider_name, unit.external_id, spec.type, reading_occurrence(unit, reading, index)
                ),
                metric_category=spec.category,
                metric_type=spec.type,
                value=reading.value,
                unit=spec.unit,
                recorded_at=reading.recorded_at,
                raw_data={"source_type": reading.raw_type, **reading.raw_data}
            ))

        written = await self.writer.write_metrics(
            resident_id=identity.resident_id,
            device_registry_id=device_registry_id,
            rows=rows,
            confidence_level=adapter.confidence_level,
            firmware_version=device_fields.get("firmware_version"),
            battery_level=device_fields.get("battery_level")
        )
        outcome.metrics_created = written.stored
        outcome.duplicates_skipped = written.duplicates_skipped
        outcome.metrics_dropped = written.dropped

        for event in unit.events:
            if await self.writer.write_event(
                resident_id=identity.resident_id,
                device_registry_id=device_registry_id,
                event_type=event.event_type,
                occurred_at=event.occurred_at,
                event_data=event.event_data
            ):
                outcome.events_created += 1

        return outcome
