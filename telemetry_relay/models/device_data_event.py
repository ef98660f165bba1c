from sqlalchemy import Column, String, ForeignKey, DateTime, JSON, Index
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class DeviceDataEvent(Base):
    """
    A discrete device occurrence (measurement received, activity completed). Append-only.
    """
    __tablename__ = "device_data_events"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    device_registry_id = Column(String(25), ForeignKey("device_registry.id"), nullable=True)
    resident_id = Column(String(64), nullable=False, index=True)
    event_type = Column(String(40), nullable=False)
    event_data = Column(JSON, nullable=True)
    occurred_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_device_event_resident_time", "resident_id", "occurred_at"),
    )
