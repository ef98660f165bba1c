"""
Voice Transcription Service
Downloads caregiver audio from Supabase Storage, transcribes it with Whisper
and stores the transcript on the voice_transcription_jobs row.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.core.config import settings
from telemetry_relay.enums import JobStatus, ProviderHealthStatus, ProviderType
from telemetry_relay.exceptions.errors import IntegrationError, PayloadValidationError, ThirdPartyAPIError
from telemetry_relay.models.voice_transcription_job import VoiceTranscriptionJob
from telemetry_relay.schemas.integration_schemas import TranscribeAudioInput
from telemetry_relay.services.integration_ledger import IntegrationLedger, build_provider_request_id
from telemetry_relay.services.provider_health_service import ProviderHealthService
from telemetry_relay.utils.time_utils import utc_now
from telemetry_relay.core.logger import get_logger

logger = get_logger("transcription_service")

PROVIDER_NAME = "openai-whisper"


@dataclass
class TranscriptionResult:
    text: str
    language: Optional[str] = None
    duration_seconds: Optional[float] = None
    confidence: Optional[float] = None


class WhisperTranscriber:
    """Thin wrapper over the OpenAI audio API so the service can be tested without it."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.WHISPER_MODEL

    async def transcribe(self, filename: str, audio: bytes, language: Optional[str] = None) -> TranscriptionResult:
        if not self.api_key:
            raise IntegrationError("OPENAI_API_KEY is not configured", PROVIDER_NAME)

        client = AsyncOpenAI(api_key=self.api_key)
        options: Dict[str, Any] = {"model": self.model, "file": (filename, audio), "response_format": "verbose_json"}
        if language:
            options["language"] = language

        try:
            result = await client.audio.transcriptions.create(**options)
        except openai.APIStatusError as e:
            raise ThirdPartyAPIError(PROVIDER_NAME, e.status_code, e.message)
        except openai.APIError as e:
            raise ThirdPartyAPIError(PROVIDER_NAME, 502, str(e))

        return TranscriptionResult(
            text=result.text,
            language=getattr(result, "language", None),
            duration_seconds=getattr(result, "duration", None)
        )


def get_transcriber() -> WhisperTranscriber:
    return WhisperTranscriber()


class TranscriptionService:

    def __init__(self, db: AsyncSession, http_client: httpx.AsyncClient, transcriber: WhisperTranscriber):
        self.db = db
        self.http_client = http_client
        self.transcriber = transcriber
        self.ledger = IntegrationLedger(db)
        self.health = ProviderHealthService(db)

    async def get_or_create_job(self, payload: TranscribeAudioInput) -> VoiceTranscriptionJob:
        if payload.job_id:
            job = await self.db.get(VoiceTranscriptionJob, payload.job_id)
            if not job:
                raise IntegrationError(f"Transcription job {payload.job_id} not found", PROVIDER_NAME)
            return job

        if not payload.agency_id or not payload.audio_storage_path:
            raise PayloadValidationError(
                "Invalid transcription request: job_id or agency_id and audio_storage_path required",
                PROVIDER_NAME
            )

        job = VoiceTranscriptionJob(
            agency_id=payload.agency_id,
            resident_id=payload.resident_id,
            task_id=payload.task_id,
            audio_storage_path=payload.audio_storage_path,
            audio_filename=payload.audio_filename or os.path.basename(payload.audio_storage_path),
            status=JobStatus.PENDING.value
        )
        self.db.add(job)
        await self.db.flush()
        logger.info(f"Created transcription job {job.id} for {job.audio_storage_path}")
        return job

    async def download_audio(self, storage_path: str) -> bytes:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise IntegrationError("Supabase storage is not configured", PROVIDER_NAME)

        url = (
            f"{settings.SUPABASE_URL.rstrip('/')}/storage/v1/object/"
            f"{settings.SUPABASE_STORAGE_BUCKET}/{storage_path.lstrip('/')}"
        )
        try:
            response = await self.http_client.get(
                url,
                headers={"Authorization": f"Bearer {settings.SUPABASE_SERVICE_ROLE_KEY}"}
            )
        except httpx.HTTPError as e:
            raise ThirdPartyAPIError("supabase-storage", 502, str(e))

        if response.status_code >= 400:
            raise ThirdPartyAPIError("supabase-storage", response.status_code, response.text)
        return response.content

    async def transcribe(self, payload: TranscribeAudioInput) -> Dict[str, Any]:
        job = await self.get_or_create_job(payload)
        job.status = JobStatus.PROCESSING.value

        entry = await self.ledger.start(
            agency_id=job.agency_id,
            provider_type=ProviderType.VOICE_TRANSCRIPTION.value,
            provider_name=PROVIDER_NAME,
            request_type="transcribe_audio",
            provider_request_id=build_provider_request_id(PROVIDER_NAME, job.id, job.audio_filename),
            request_payload={"job_id": job.id, "audio_path": job.audio_storage_path}
        )
        # The job must be visible as processing while the download and Whisper call run
        await self.db.commit()

        try:
            audio = await self.download_audio(job.audio_storage_path)
            job.audio_size_bytes = len(audio)
            result = await self.transcriber.transcribe(job.audio_filename or "audio", audio, payload.language)
        except ThirdPartyAPIError as e:
            await self._fail(job, entry, e.upstream_status, e.message, {"success": False, "body": e.body})
            raise
        except IntegrationError as e:
            await self._fail(job, entry, e.status_code, e.message, {"success": False})
            raise
        except Exception as e:
            await self._fail_after_rollback(job, entry, f"Transcription failed: {e}")

        try:
            job.status = JobStatus.COMPLETED.value
            job.transcript_text = result.text
            job.language_detected = result.language
            job.audio_duration_seconds = result.duration_seconds
            job.confidence_score = result.confidence
            job.completed_at = utc_now()
            self.ledger.complete(entry, 200, {
                "job_id": job.id,
                "transcript_length": len(result.text or ""),
                "language": result.language,
            })
            await self.db.commit()
        except Exception as e:
            await self._fail_after_rollback(job, entry, f"Failed to store transcript: {e}")

        await self.health.update_provider_health(
            job.agency_id, ProviderType.VOICE_TRANSCRIPTION.value, PROVIDER_NAME, ProviderHealthStatus.HEALTHY
        )
        logger.info(f"Transcription job {job.id} completed")

        return {
            "success": True,
            "provider": PROVIDER_NAME,
            "job_id": job.id,
            "status": job.status,
            "transcript": job.transcript_text,
            "language": job.language_detected,
            "duration_seconds": job.audio_duration_seconds,
            "latency_ms": entry.latency_ms,
        }

    async def _fail_after_rollback(self, job: VoiceTranscriptionJob, entry, message: str):
        """Discard the half-applied changes, close the job and its ledger row as failed, then raise."""
        await self.db.rollback()
        await self.db.refresh(job)
        await self.db.refresh(entry)
        await self._fail(job, entry, 500, message, {"success": False})
        raise IntegrationError(message, PROVIDER_NAME)

    async def _fail(self, job: VoiceTranscriptionJob, entry, status_code: int, message: str, response_payload: Dict):
        job.status = JobStatus.FAILED.value
        job.error_message = message
        job.completed_at = utc_now()
        self.ledger.complete(entry, status_code, response_payload, message)
        await self.db.commit()

        await self.health.update_provider_health(
            job.agency_id, ProviderType.VOICE_TRANSCRIPTION.value, PROVIDER_NAME, ProviderHealthStatus.FAILED, message
        )
