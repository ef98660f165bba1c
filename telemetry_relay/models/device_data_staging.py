from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Text, JSON, Index
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class DeviceDataStaging(Base):
    """
    Raw generic device webhook payloads awaiting conversion into vital signs.
    """
    __tablename__ = "device_data_staging"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    agency_id = Column(String(64), nullable=False, index=True)
    device_id = Column(String(255), nullable=False)  # external device identifier
    device_registry_id = Column(String(25), ForeignKey("device_registry.id"), nullable=True)
    resident_id = Column(String(64), nullable=True)

    raw_payload = Column(JSON, nullable=False)
    payload_format = Column(String(24), default="json", nullable=False)
    payload_hash = Column(String(32), nullable=False)

    status = Column(String(16), default="pending", nullable=False)  # pending|processing|processed|failed
    vitals_created = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)

    received_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_device_staging_hash_time", "payload_hash", "received_at"),
        Index("ix_device_staging_status_time", "status", "received_at"),
    )
