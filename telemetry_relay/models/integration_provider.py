from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, UniqueConstraint
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class IntegrationProvider(Base):
    """
    Per-agency health of an external provider (Twilio, Fitbit, Whisper).
    """
    __tablename__ = "integration_providers"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    agency_id = Column(String(64), nullable=False, index=True)
    provider_type = Column(String(40), nullable=False)
    provider_name = Column(String(40), nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)

    health_status = Column(String(16), default="unknown", nullable=False)  # 'unknown' | 'healthy' | 'failed'
    last_success_at = Column(DateTime, nullable=True)
    last_failure_at = Column(DateTime, nullable=True)
    failure_count = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("agency_id", "provider_name", name="uq_integration_provider_agency_name"),
    )
