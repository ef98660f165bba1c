"""
Integration Ledger
Records every inbound webhook unit of work and every outbound provider call
in integration_requests, with its outcome and end-to-end latency.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from telemetry_relay.models.integration_request import IntegrationRequest
from telemetry_relay.utils.time_utils import utc_now, elapsed_ms
from telemetry_relay.core.logger import get_logger

logger = get_logger("integration_ledger")


def build_provider_request_id(provider: str, external_id: Any, discriminator: Any) -> str:
    return f"{provider}-{external_id}-{discriminator}"


class IntegrationLedger:
    """Writes integration_requests rows inside the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def start(
        self,
        provider_type: str,
        provider_name: str,
        request_type: str,
        provider_request_id: Optional[str] = None,
        request_payload: Optional[Dict[str, Any]] = None,
        agency_id: Optional[str] = None
    ) -> IntegrationRequest:
        """Insert the ledger row before any downstream work; flushed, not committed."""
        entry = IntegrationRequest(
            agency_id=agency_id,
            provider_type=provider_type,
            provider_name=provider_name,
            request_type=request_type,
            provider_request_id=provider_request_id,
            request_payload=request_payload,
            started_at=utc_now()
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    def complete(
        self,
        entry: IntegrationRequest,
        response_status: int,
        response_payload: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None
    ) -> IntegrationRequest:
        completed_at = utc_now()
        entry.response_status = response_status
        entry.response_payload = response_payload
        entry.error_message = error_message
        entry.latency_ms = elapsed_ms(entry.started_at, completed_at)
        entry.completed_at = completed_at
        return entry

    async def record_failure_after_rollback(
        self,
        entry: IntegrationRequest,
        error_message: str,
        response_status: int = 500
    ) -> IntegrationRequest:
        """
        The unit of work was rolled back, taking the original row with it.
        Re-insert it as a failed call so every accepted request keeps one ledger row.
        """
        failed = IntegrationRequest(
            agency_id=entry.agency_id,
            provider_type=entry.provider_type,
            provider_name=entry.provider_name,
            request_type=entry.request_type,
            provider_request_id=entry.provider_request_id,
            request_payload=entry.request_payload,
            started_at=entry.started_at
        )
        self.complete(failed, response_status, {"success": False}, error_message)
        self.db.add(failed)
        await self.db.commit()
        logger.error(
            f"Recorded failed {entry.provider_name} request {entry.provider_request_id}: {error_message}"
        )
        return failed
