"""
Metric Writer
Inserts normalized health_metrics rows and device_data_events rows.
Each insert runs in its own savepoint, so one bad row is dropped and the loop continues.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from telemetry_relay.models.health_metric import HealthMetric
from telemetry_relay.models.device_data_event import DeviceDataEvent
from telemetry_relay.enums import MeasurementSource
from telemetry_relay.core.logger import get_logger

logger = get_logger("metric_writer")


def build_metric_key(provider: str, external_id: Any, metric_type: str, occurrence: Union[datetime, str]) -> str:
    """
    Stable natural key for a measurement so redeliveries do not duplicate rows.
    `occurrence` is the sample time or a provider record id.
    """
    if isinstance(occurrence, datetime):
        occurrence = occurrence.isoformat()
    raw = f"{provider}|{external_id}|{metric_type}|{occurrence}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def split_value(value: Any):
    """Return (value_numeric, value_json) for a reading value."""
    if isinstance(value, bool):
        return float(value), None
    if isinstance(value, (int, float)):
        return float(value), None
    try:
        return float(value), None
    except (TypeError, ValueError):
        return None, {"value": value}


@dataclass
class MetricRow:
    metric_key: str
    metric_category: str
    metric_type: str
    value: Any
    unit: Optional[str]
    recorded_at: datetime
    raw_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WriteResult:
    stored: int = 0
    duplicates_skipped: int = 0
    dropped: int = 0


class MetricWriter:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def existing_keys(self, keys: Iterable[str]) -> Set[str]:
        keys = {k for k in keys if k}
        if not keys:
            return set()
        stmt = select(HealthMetric.metric_key).where(HealthMetric.metric_key.in_(keys))
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def write_metrics(
        self,
        resident_id: str,
        device_registry_id: Optional[str],
        rows: List[MetricRow],
        confidence_level: str,
        firmware_version: Optional[str] = None,
        battery_level: Optional[int] = None
    ) -> WriteResult:
        outcome = WriteResult()

        # Prefetch existing keys to skip redelivered measurements without per-row queries
        seen = await self.existing_keys(row.metric_key for row in rows)

        for row in rows:
            if row.metric_key in seen:
                outcome.duplicates_skipped += 1
                continue
            seen.add(row.metric_key)

            value_numeric, value_json = split_value(row.value)
            metric = HealthMetric(
                resident_id=resident_id,
                device_registry_id=device_registry_id,
                metric_key=row.metric_key,
                metric_category=row.metric_category,
                metric_type=row.metric_type,
                value_numeric=value_numeric,
                value_json=value_json,
                unit=row.unit,
                confidence_level=confidence_level,
                measurement_source=MeasurementSource.AUTOMATIC_DEVICE.value,
                recorded_at=row.recorded_at,
                device_firmware_version=firmware_version,
                device_battery_level=battery_level,
                raw_data=row.raw_data
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(metric)
                    await self.db.flush()
                outcome.stored += 1
            except Exception as e:
                logger.error(f"Dropping {row.metric_type} metric for resident {resident_id}: {e}")
                outcome.dropped += 1

        return outcome

    async def write_event(
        self,
        resident_id: str,
        device_registry_id: Optional[str],
        event_type: str,
        occurred_at: datetime,
        event_data: Optional[Dict[str, Any]] = None
    ) -> bool:
        event = DeviceDataEvent(
            device_registry_id=device_registry_id,
            resident_id=resident_id,
            event_type=event_type,
            event_data=event_data,
            occurred_at=occurred_at
        )
        try:
            async with self.db.begin_nested():
                self.db.add(event)
                await self.db.flush()
            return True
        except Exception as e:
            logger.error(f"Dropping {event_type} event for resident {resident_id}: {e}")
            return False
