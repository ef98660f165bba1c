from sqlalchemy import Column, String, DateTime, Float, BigInteger, Text
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class VoiceTranscriptionJob(Base):
    """
    Audio stored in Supabase Storage, transcribed through Whisper.
    """
    __tablename__ = "voice_transcription_jobs"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    agency_id = Column(String(64), nullable=False, index=True)
    resident_id = Column(String(64), nullable=True)
    task_id = Column(String(64), nullable=True)

    audio_storage_path = Column(String(512), nullable=False)
    audio_filename = Column(String(255), nullable=True)
    audio_size_bytes = Column(BigInteger, nullable=True)

    status = Column(String(16), default="pending", nullable=False)  # pending|processing|completed|failed
    transcript_text = Column(Text, nullable=True)
    confidence_score = Column(Float, nullable=True)
    language_detected = Column(String(16), nullable=True)
    audio_duration_seconds = Column(Float, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
