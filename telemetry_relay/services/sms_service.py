"""
SMS Service
Sends SMS through the Twilio Messages API and records the call in the ledger.
"""

import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict

from telemetry_relay.core.config import settings
from telemetry_relay.enums import DeliveryStatus, ProviderHealthStatus, ProviderType
from telemetry_relay.exceptions.errors import IntegrationError, ThirdPartyAPIError
from telemetry_relay.models.notification_delivery import NotificationDelivery
from telemetry_relay.schemas.integration_schemas import SendSmsInput
from telemetry_relay.services.integration_ledger import IntegrationLedger, build_provider_request_id
from telemetry_relay.services.provider_health_service import ProviderHealthService
from telemetry_relay.utils.time_utils import utc_now
from telemetry_relay.core.logger import get_logger

logger = get_logger("sms_service")

PROVIDER_NAME = "twilio"


class SmsService:

    def __init__(self, db: AsyncSession, http_client: httpx.AsyncClient):
        self.db = db
        self.http_client = http_client
        self.ledger = IntegrationLedger(db)
        self.health = ProviderHealthService(db)

    async def send_sms(self, payload: SendSmsInput) -> Dict[str, Any]:
        if not settings.twilio_configured:
            raise IntegrationError("Twilio credentials are not configured", PROVIDER_NAME)

        delivery = NotificationDelivery(
            agency_id=payload.agency_id,
            notification_type="sms",
            recipient_contact=payload.to,
            resident_id=payload.resident_id,
            body=payload.body,
            status=DeliveryStatus.QUEUED.value
        )
        self.db.add(delivery)
        await self.db.flush()

        entry = await self.ledger.start(
            agency_id=payload.agency_id,
            provider_type=ProviderType.SMS.value,
            provider_name=PROVIDER_NAME,
            request_type="send_sms",
            provider_request_id=build_provider_request_id(PROVIDER_NAME, payload.to, delivery.id),
            request_payload={"to": payload.to, "delivery_id": delivery.id, "body_length": len(payload.body)}
        )
        # The queued delivery and its ledger row must outlive any failure below
        await self.db.commit()

        try:
            response = await self._post_message(payload)
            body = response.json()
            delivery.status = DeliveryStatus.SENT.value
            delivery.provider_message_id = body.get("sid")
            delivery.sent_at = utc_now()
            self.ledger.complete(entry, response.status_code, {
                "sid": body.get("sid"),
                "status": body.get("status"),
            })
            await self.db.commit()

        except ThirdPartyAPIError as e:
            await self._record_failure(entry, delivery, e.upstream_status, e.message, {"success": False, "body": e.body})
            raise

        except Exception as e:
            await self.db.rollback()
            await self.db.refresh(entry)
            await self.db.refresh(delivery)
            message = f"Failed to send SMS: {e}"
            await self._record_failure(entry, delivery, 500, message, {"success": False})
            raise IntegrationError(message, PROVIDER_NAME)

        await self.health.update_provider_health(
            payload.agency_id, ProviderType.SMS.value, PROVIDER_NAME, ProviderHealthStatus.HEALTHY
        )
        logger.info(f"SMS {delivery.provider_message_id} sent for agency {payload.agency_id}")

        return {
            "success": True,
            "provider": PROVIDER_NAME,
            "delivery_id": delivery.id,
            "message_sid": delivery.provider_message_id,
            "status": entry.response_payload.get("status"),
            "latency_ms": entry.latency_ms,
        }

    async def _post_message(self, payload: SendSmsInput) -> httpx.Response:
        url = (
            f"{settings.TWILIO_API_BASE_URL.rstrip('/')}/2010-04-01/Accounts/"
            f"{settings.TWILIO_ACCOUNT_SID}/Messages.json"
        )
        try:
            response = await self.http_client.post(
                url,
                data={"To": payload.to, "From": settings.TWILIO_FROM_NUMBER, "Body": payload.body},
                auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
            )
        except httpx.HTTPError as e:
            raise ThirdPartyAPIError(PROVIDER_NAME, 502, str(e))

        if response.status_code >= 400:
            raise ThirdPartyAPIError(PROVIDER_NAME, response.status_code, response.text)
        return response

    async def _record_failure(
        self,
        entry,
        delivery: NotificationDelivery,
        status_code: int,
        message: str,
        response_payload: Dict[str, Any]
    ):
        delivery.status = DeliveryStatus.FAILED.value
        delivery.error_message = message
        self.ledger.complete(entry, status_code, response_payload, message)
        await self.db.commit()

        await self.health.update_provider_health(
            entry.agency_id, ProviderType.SMS.value, PROVIDER_NAME, ProviderHealthStatus.FAILED, message
        )
