from sqlalchemy import Column, String, DateTime, Integer, Boolean, JSON
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class DeviceRegistry(Base):
    """
    A physical or virtual device, keyed by a provider-prefixed external id
    ('apple-health-{hardwareId}', 'garmin-{userId}', 'fitbit-{ownerId}', ...).
    """
    __tablename__ = "device_registry"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    device_id = Column(String(255), unique=True, nullable=False, index=True)
    resident_id = Column(String(64), nullable=True, index=True)

    device_type = Column(String(40), nullable=False)      # 'WEARABLE' | 'BLE_HEALTH_SENSOR' | ...
    device_name = Column(String(128), nullable=True)
    manufacturer = Column(String(80), nullable=True)
    model = Column(String(80), nullable=True)
    serial_number = Column(String(128), nullable=True)
    firmware_version = Column(String(80), nullable=True)
    battery_level = Column(Integer, nullable=True)

    trust_state = Column(String(24), default="UNVERIFIED", nullable=False)
    capabilities = Column(JSON, nullable=True)
    last_seen_at = Column(DateTime, nullable=True)
    real_device_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
