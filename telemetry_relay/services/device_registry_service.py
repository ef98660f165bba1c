"""
Device Registry Service
Idempotent device upsert keyed on the synthesized external device_id.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Any, Dict, Optional

from telemetry_relay.models.device_registry import DeviceRegistry
from telemetry_relay.utils.time_utils import utc_now
from telemetry_relay.core.logger import get_logger

logger = get_logger("device_registry_service")

# Everything a webhook may describe about a device; all of it is replaced on conflict.
REPLACEABLE_FIELDS = (
    "resident_id",
    "device_type",
    "device_name",
    "manufacturer",
    "model",
    "serial_number",
    "firmware_version",
    "battery_level",
    "trust_state",
    "capabilities",
    "real_device_verified",
)


class DeviceRegistryService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(self, device_id: str, fields: Dict[str, Any]) -> DeviceRegistry:
        """
        Insert or fully replace the row for device_id and refresh last_seen_at.
        Last writer wins, including the owning resident.
        """
        stmt = select(DeviceRegistry).where(DeviceRegistry.device_id == device_id)
        result = await self.db.execute(stmt)
        device = result.scalars().first()

        if not device:
            device = DeviceRegistry(device_id=device_id)
            self.db.add(device)
            logger.info(f"Registering new device {device_id}")

        for field in REPLACEABLE_FIELDS:
            setattr(device, field, fields.get(field))
        if device.trust_state is None:
            device.trust_state = "UNVERIFIED"
        if device.real_device_verified is None:
            device.real_device_verified = False
        device.last_seen_at = utc_now()

        await self.db.flush()
        return device

    async def try_upsert(self, device_id: str, fields: Dict[str, Any]) -> Optional[str]:
        """
        Upsert inside a savepoint. On failure the caller continues without a device
        link, so the registry id is None.
        """
        try:
            async with self.db.begin_nested():
                device = await self.upsert(device_id, fields)
            return device.id
        except Exception as e:
            logger.error(f"Device upsert failed for {device_id}, continuing unlinked: {e}")
            return None
