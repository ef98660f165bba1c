from sqlalchemy import Column, String, DateTime, UniqueConstraint
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class ExternalUserMapping(Base):
    """
    Maps a provider's user id (Garmin userId, Fitbit ownerId) to an agency resident.
    """
    __tablename__ = "external_user_mappings"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    provider_type = Column(String(40), nullable=False)  # 'garmin' | 'fitbit'
    external_user_id = Column(String(128), nullable=False)
    agency_id = Column(String(64), nullable=False)
    resident_id = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("provider_type", "external_user_id", name="uq_external_user_provider_user"),
    )
