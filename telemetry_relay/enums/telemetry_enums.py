"""
Telemetry-related enums for the relay.
"""

from enum import Enum


class MetricCategory(str, Enum):
    BLOOD_PRESSURE = "BLOOD_PRESSURE"
    CARDIOVASCULAR = "CARDIOVASCULAR"
    BLOOD_CIRCULATION = "BLOOD_CIRCULATION"
    RESPIRATORY = "RESPIRATORY"
    TEMPERATURE = "TEMPERATURE"
    ACTIVITY = "ACTIVITY"
    SLEEP = "SLEEP"
    SAFETY = "SAFETY"
    STRESS = "STRESS"
    BODY_COMPOSITION = "BODY_COMPOSITION"
    METABOLIC = "METABOLIC"
    OTHER = "OTHER"


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class MeasurementSource(str, Enum):
    AUTOMATIC_DEVICE = "AUTOMATIC_DEVICE"
    MANUAL_ENTRY = "MANUAL_ENTRY"


class DeviceEventType(str, Enum):
    MEASUREMENT_RECEIVED = "MEASUREMENT_RECEIVED"
    METRIC_RECORDED = "METRIC_RECORDED"
    ACTIVITY_COMPLETED = "ACTIVITY_COMPLETED"
    DAILY_SUMMARY_RECEIVED = "DAILY_SUMMARY_RECEIVED"
    HEALTH_SYNC_RECEIVED = "HEALTH_SYNC_RECEIVED"


class TrustState(str, Enum):
    TRUSTED = "TRUSTED"
    UNVERIFIED = "UNVERIFIED"


class ProviderType(str, Enum):
    MEDICAL_DEVICE = "medical_device"
    WEARABLE = "wearable"
    SMS = "sms"
    VOICE_TRANSCRIPTION = "voice_transcription"


class ProviderHealthStatus(str, Enum):
    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    FAILED = "failed"


class StagingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DeliveryStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"
