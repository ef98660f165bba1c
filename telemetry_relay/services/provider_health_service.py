"""
Provider Health Service
Tracks last success/failure per (agency, provider) for monitoring.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Dict, List, Optional

from telemetry_relay.models.integration_provider import IntegrationProvider
from telemetry_relay.enums import ProviderHealthStatus
from telemetry_relay.utils.time_utils import utc_now
from telemetry_relay.core.logger import get_logger

logger = get_logger("provider_health_service")


class ProviderHealthService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_provider_health(
        self,
        agency_id: Optional[str],
        provider_type: str,
        provider_name: str,
        status: ProviderHealthStatus,
        error: Optional[str] = None
    ) -> None:
        """
        Observational only: any failure here is logged and swallowed.
        """
        if not agency_id:
            logger.debug(f"Skipping health update for {provider_name}: no agency")
            return

        try:
            async with self.db.begin_nested():
                stmt = select(IntegrationProvider).where(
                    IntegrationProvider.agency_id == agency_id,
                    IntegrationProvider.provider_name == provider_name
                )
                result = await self.db.execute(stmt)
                provider = result.scalars().first()

                if not provider:
                    provider = IntegrationProvider(
                        agency_id=agency_id,
                        provider_type=provider_type,
                        provider_name=provider_name,
                        failure_count=0
                    )
                    self.db.add(provider)

                now = utc_now()
                provider.health_status = status.value
                if status == ProviderHealthStatus.HEALTHY:
                    provider.last_success_at = now
                    provider.failure_count = 0
                else:
                    provider.last_failure_at = now
                    provider.failure_count = (provider.failure_count or 0) + 1
                    provider.last_error = error
            await self.db.commit()
        except Exception as e:
            logger.error(f"Failed to update provider health for {provider_name}/{agency_id}: {e}")

    async def check_integration_health(self, agency_id: str) -> Dict:
        stmt = select(IntegrationProvider).where(
            IntegrationProvider.agency_id == agency_id,
            IntegrationProvider.enabled.is_(True)
        ).order_by(IntegrationProvider.provider_name)
        result = await self.db.execute(stmt)

        providers: List[Dict] = []
        for provider in result.scalars().all():
            providers.append({
                "provider_id": provider.id,
                "provider_name": provider.provider_name,
                "provider_type": provider.provider_type,
                "health_status": provider.health_status,
                "last_success": provider.last_success_at.isoformat() if provider.last_success_at else None,
                "last_failure": provider.last_failure_at.isoformat() if provider.last_failure_at else None,
                "failure_count": provider.failure_count,
                "last_error": provider.last_error,
            })

        return {
            "timestamp": utc_now().isoformat(),
            "agency_id": agency_id,
            "providers": providers
        }
