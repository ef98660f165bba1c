"""
Shared enums for the relay.
"""

from .telemetry_enums import (
    MetricCategory,
    ConfidenceLevel,
    MeasurementSource,
    DeviceEventType,
    TrustState,
    ProviderType,
    ProviderHealthStatus,
    StagingStatus,
    JobStatus,
    DeliveryStatus
)

__all__ = [
    "MetricCategory",
    "ConfidenceLevel",
    "MeasurementSource",
    "DeviceEventType",
    "TrustState",
    "ProviderType",
    "ProviderHealthStatus",
    "StagingStatus",
    "JobStatus",
    "DeliveryStatus"
]
