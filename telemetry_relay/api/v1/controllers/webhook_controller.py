"""
Webhook Controller
Handles request/response logic for provider webhook endpoints
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Request, Response, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.core.config import settings
from telemetry_relay.exceptions.errors import ApplicationException, IntegrationError, PayloadValidationError
from telemetry_relay.schemas.webhook_schemas import DeviceWebhookPayload
from telemetry_relay.services.device_ingest_service import DeviceIngestService, PROVIDER_NAME as DEVICE_PROVIDER
from telemetry_relay.services.providers import get_adapter
from telemetry_relay.services.telemetry_pipeline import TelemetryPipeline, describe_validation_error
from telemetry_relay.core.logger import get_logger

logger = get_logger("webhook_controller")


async def read_json_body(request: Request, provider: str) -> Any:
    """Parse the raw body; schema validation happens in the service layer."""
    try:
        return await request.json()
    except ValueError:
        raise PayloadValidationError(f"Invalid {provider} payload: body is not valid JSON", provider)


class WebhookController:
    """Controller for inbound provider webhooks."""

    @staticmethod
    async def ingest_device_data(request: Request, db: AsyncSession) -> Dict:
        try:
            body = await read_json_body(request, DEVICE_PROVIDER)
            try:
                payload = DeviceWebhookPayload.model_validate(body)
            except ValidationError as e:
                raise PayloadValidationError(describe_validation_error(DEVICE_PROVIDER, e), DEVICE_PROVIDER)

            service = DeviceIngestService(db)
            return await service.handle_webhook(payload)

        except ApplicationException:
            raise
        except Exception as e:
            logger.error(f"Error ingesting device data: {e}")
            raise IntegrationError(f"Failed to ingest device data: {str(e)}", DEVICE_PROVIDER)

    @staticmethod
    async def ingest_provider_webhook(
        provider: str,
        request: Request,
        db: AsyncSession,
        http_client: Optional[httpx.AsyncClient] = None
    ) -> Dict:
        """Shared handler for every provider that runs through the telemetry pipeline."""
        try:
            body = await read_json_body(request, provider)
            pipeline = TelemetryPipeline(db, get_adapter(provider), http_client)
            return await pipeline.ingest(body)

        except ApplicationException:
            raise
        except Exception as e:
            logger.error(f"Error processing {provider} webhook: {e}")
            raise IntegrationError(f"Failed to process {provider} webhook: {str(e)}", provider)

    @staticmethod
    async def verify_fitbit_subscriber(verify: Optional[str]) -> Response:
        """Fitbit expects 204 for the correct verification code and 404 otherwise."""
        if settings.FITBIT_VERIFICATION_CODE and verify == settings.FITBIT_VERIFICATION_CODE:
            logger.info("Fitbit subscriber verification succeeded")
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        logger.warning("Fitbit subscriber verification failed")
        return Response(status_code=status.HTTP_404_NOT_FOUND)
