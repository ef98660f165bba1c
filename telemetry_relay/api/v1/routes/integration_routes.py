"""
Integration Routes
Outbound SMS, voice transcription and provider health
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.database.connection import get_db
from telemetry_relay.api.v1.controllers.integration_controller import IntegrationController
from telemetry_relay.services.transcription_service import WhisperTranscriber, get_transcriber
from telemetry_relay.utils.http_client import get_http_client

router = APIRouter(prefix="/integrations", tags=["Integrations"])


@router.post("/sms/send")
async def send_sms(
    request: Request,
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    """
    Send an SMS through Twilio

    - **agency_id**, **to**, **body**: required
    - **resident_id**: optional

    Records a notification_deliveries row and an integration request.
    """
    return await IntegrationController.send_sms(request, db, http_client)


@router.post("/voice/transcribe")
async def transcribe_audio(
    request: Request,
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    transcriber: WhisperTranscriber = Depends(get_transcriber)
):
    """
    Transcribe a voice note stored in Supabase Storage

    Pass **job_id** to run an existing job, or **agency_id** and
    **audio_storage_path** to create one.
    """
    return await IntegrationController.transcribe_audio(request, db, http_client, transcriber)


@router.get("/health")
async def integration_health(
    agency_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db)
):
    """Per-provider health report for one agency."""
    return await IntegrationController.get_integration_health(db, agency_id)
