from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Float, JSON, Index
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class HealthMetric(Base):
    """
    One normalized measurement. Append-only.
    metric_key is sha256(provider|externalId|metric_type|recorded_at) and blocks redelivered duplicates.
    """
    __tablename__ = "health_metrics"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    resident_id = Column(String(64), nullable=False, index=True)
    device_registry_id = Column(String(25), ForeignKey("device_registry.id"), nullable=True)
    metric_key = Column(String(64), unique=True, nullable=True)

    metric_category = Column(String(40), nullable=False)
    metric_type = Column(String(128), nullable=False)
    value_numeric = Column(Float, nullable=True)
    value_json = Column(JSON, nullable=True)
    unit = Column(String(40), nullable=True)
    confidence_level = Column(String(16), nullable=False)   # HIGH | MEDIUM | LOW
    measurement_source = Column(String(24), nullable=False)  # AUTOMATIC_DEVICE | MANUAL_ENTRY
    data_source = Column(String(24), default="REAL_DEVICE", nullable=False)

    recorded_at = Column(DateTime, nullable=False)  # UTC
    synced_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    device_firmware_version = Column(String(80), nullable=True)
    device_battery_level = Column(Integer, nullable=True)
    raw_data = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_health_metric_resident_time", "resident_id", "recorded_at"),
        Index("ix_health_metric_category_type", "metric_category", "metric_type"),
    )
