from sqlalchemy import Column, String, DateTime, Text
from datetime import datetime
from telemetry_relay.database.base import Base
import cuid


class NotificationDelivery(Base):
    """
    Outbound SMS sent through Twilio.
    """
    __tablename__ = "notification_deliveries"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    agency_id = Column(String(64), nullable=False, index=True)
    notification_type = Column(String(16), default="sms", nullable=False)
    recipient_contact = Column(String(64), nullable=False)
    resident_id = Column(String(64), nullable=True)
    body = Column(Text, nullable=False)

    status = Column(String(16), default="queued", nullable=False)  # queued | sent | failed
    provider_message_id = Column(String(64), nullable=True)  # Twilio message SID
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    sent_at = Column(DateTime, nullable=True)
