"""
Models package for the relay.
"""

from .integration_request import IntegrationRequest
from .integration_provider import IntegrationProvider
from .device_registry import DeviceRegistry
from .health_metric import HealthMetric
from .device_data_event import DeviceDataEvent
from .external_user_mapping import ExternalUserMapping
from .device_data_staging import DeviceDataStaging
from .vital_sign import VitalSign
from .notification_delivery import NotificationDelivery
from .voice_transcription_job import VoiceTranscriptionJob

__all__ = [
    "IntegrationRequest",
    "IntegrationProvider",
    "DeviceRegistry",
    "HealthMetric",
    "DeviceDataEvent",
    "ExternalUserMapping",
    "DeviceDataStaging",
    "VitalSign",
    "NotificationDelivery",
    "VoiceTranscriptionJob",
]
