"""
Integration Controller
Outbound integrations (SMS, voice transcription) and the provider health report
"""

from typing import Dict, Optional

import httpx
from fastapi import Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.exceptions.errors import ApplicationException, IntegrationError, PayloadValidationError
from telemetry_relay.schemas.integration_schemas import SendSmsInput, TranscribeAudioInput
from telemetry_relay.services.provider_health_service import ProviderHealthService
from telemetry_relay.services.sms_service import SmsService, PROVIDER_NAME as SMS_PROVIDER
from telemetry_relay.services.telemetry_pipeline import describe_validation_error
from telemetry_relay.services.transcription_service import (
    TranscriptionService,
    WhisperTranscriber,
    PROVIDER_NAME as TRANSCRIPTION_PROVIDER,
)
from telemetry_relay.api.v1.controllers.webhook_controller import read_json_body
from telemetry_relay.core.logger import get_logger

logger = get_logger("integration_controller")


class IntegrationController:

    @staticmethod
    async def send_sms(request: Request, db: AsyncSession, http_client: httpx.AsyncClient) -> Dict:
        try:
            body = await read_json_body(request, SMS_PROVIDER)
            try:
                payload = SendSmsInput.model_validate(body)
            except ValidationError as e:
                raise PayloadValidationError(describe_validation_error(SMS_PROVIDER, e), SMS_PROVIDER)

            service = SmsService(db, http_client)
            return await service.send_sms(payload)

        except ApplicationException:
            raise
        except Exception as e:
            logger.error(f"Error sending SMS: {e}")
            raise IntegrationError(f"Failed to send SMS: {str(e)}", SMS_PROVIDER)

    @staticmethod
    async def transcribe_audio(
        request: Request,
        db: AsyncSession,
        http_client: httpx.AsyncClient,
        transcriber: WhisperTranscriber
    ) -> Dict:
        try:
            body = await read_json_body(request, TRANSCRIPTION_PROVIDER)
            try:
                payload = TranscribeAudioInput.model_validate(body)
            except ValidationError as e:
                raise PayloadValidationError(
                    describe_validation_error(TRANSCRIPTION_PROVIDER, e), TRANSCRIPTION_PROVIDER
                )

            service = TranscriptionService(db, http_client, transcriber)
            return await service.transcribe(payload)

        except ApplicationException:
            raise
        except Exception as e:
            logger.error(f"Error transcribing audio: {e}")
            raise IntegrationError(f"Failed to transcribe audio: {str(e)}", TRANSCRIPTION_PROVIDER)

    @staticmethod
    async def get_integration_health(db: AsyncSession, agency_id: Optional[str]) -> Dict:
        try:
            if not agency_id:
                raise IntegrationError("agency_id is required", status_code=400)

            service = ProviderHealthService(db)
            report = await service.check_integration_health(agency_id)
            return {"success": True, **report}

        except ApplicationException:
            raise
        except Exception as e:
            logger.error(f"Error building integration health report: {e}")
            raise IntegrationError(f"Failed to get integration health: {str(e)}")
