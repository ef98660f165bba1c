from sqlalchemy import Column, String, DateTime, Integer, Text, JSON, Index
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class IntegrationRequest(Base):
    """
    Ledger row for one inbound webhook unit of work or one outbound provider call.
    """
    __tablename__ = "integration_requests"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    agency_id = Column(String(64), nullable=True, index=True)
    provider_type = Column(String(40), nullable=False)      # 'wearable' | 'medical_device' | 'sms' | ...
    provider_name = Column(String(40), nullable=False)      # 'garmin' | 'twilio' | 'device-webhook' | ...
    request_type = Column(String(80), nullable=False)
    provider_request_id = Column(String(255), nullable=True)  # '{provider}-{externalId}-{discriminator}'

    request_payload = Column(JSON, nullable=True)
    response_payload = Column(JSON, nullable=True)
    response_status = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    latency_ms = Column(Integer, nullable=True)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_integration_request_provider_time", "provider_name", "started_at"),
        Index("ix_integration_request_provider_request", "provider_request_id"),
    )
