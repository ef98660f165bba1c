from pydantic import BaseModel, Field
from typing import Optional


class SendSmsInput(BaseModel):
    """Outbound SMS through Twilio"""
    agency_id: str = Field(..., min_length=1)
    to: str = Field(..., min_length=1, description="E.164 recipient number")
    body: str = Field(..., min_length=1)
    resident_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "agency_id": "a1",
                "to": "+15555550100",
                "body": "Your mother's morning medication was taken at 08:05."
            }
        }


class TranscribeAudioInput(BaseModel):
    """Transcribe an existing job, or create one from a storage path"""
    job_id: Optional[str] = None
    agency_id: Optional[str] = None
    audio_storage_path: Optional[str] = None
    audio_filename: Optional[str] = None
    resident_id: Optional[str] = None
    task_id: Optional[str] = None
    language: Optional[str] = Field(default=None, description="ISO 639-1 hint for Whisper")

    class Config:
        json_schema_extra = {
            "example": {
                "agency_id": "a1",
                "audio_storage_path": "a1/2026-02-01/shift-note.m4a",
                "resident_id": "r1"
            }
        }
