from sqlalchemy import Column, String, ForeignKey, DateTime, Float, JSON, Index
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class VitalSign(Base):
    """
    Vital extracted from a staged device payload.
    """
    __tablename__ = "vital_signs"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    resident_id = Column(String(64), nullable=False, index=True)
    staging_id = Column(String(25), ForeignKey("device_data_staging.id"), nullable=True)
    vital_type = Column(String(40), nullable=False)
    value = Column(Float, nullable=False)
    unit = Column(String(24), nullable=True)
    measured_at = Column(DateTime, nullable=False)
    source = Column(String(24), default="device", nullable=False)
    source_field = Column(String(64), nullable=True)
    vital_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_vital_resident_time", "resident_id", "measured_at"),
    )
