"""
Identity Resolver
Maps an external provider user id to the internal (agency, resident) pair.
"""

from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional

from telemetry_relay.models.external_user_mapping import ExternalUserMapping
from telemetry_relay.core.logger import get_logger

logger = get_logger("identity_resolver")


@dataclass(frozen=True)
class ResidentIdentity:
    agency_id: str
    resident_id: str


class IdentityResolver:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup(self, provider_type: str, external_user_id: str) -> Optional[ResidentIdentity]:
        """Indirect mode; a miss returns None and the caller skips the item."""
        stmt = select(ExternalUserMapping).where(
            ExternalUserMapping.provider_type == provider_type,
            ExternalUserMapping.external_user_id == str(external_user_id)
        )
        result = await self.db.execute(stmt)
        mapping = result.scalars().first()

        if not mapping:
            logger.warning(f"No user mapping for {provider_type} user {external_user_id}; skipping")
            return None

        return ResidentIdentity(agency_id=mapping.agency_id, resident_id=mapping.resident_id)
