"""
Webhook payload contracts per provider.
Only identifying fields are required; anything else the provider sends is kept.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


# ============================================================================
# Generic device webhook
# ============================================================================

class DeviceWebhookPayload(BaseModel):
    """Generic device push: vitals at the top level, keyed by field name"""
    device_id: str = Field(..., min_length=1, description="External device identifier")
    agency_id: str = Field(..., min_length=1)
    resident_id: Optional[str] = Field(default=None)
    timestamp: Optional[str] = Field(default=None, description="ISO 8601 measurement time")

    class Config:
        extra = "allow"
        json_schema_extra = {
            "example": {
                "device_id": "d1",
                "agency_id": "a1",
                "resident_id": "r1",
                "heart_rate": 72,
                "timestamp": "2026-02-01T08:30:00Z"
            }
        }


# ============================================================================
# Apple Health
# ============================================================================

class AppleHealthDevice(BaseModel):
    hardware_id: Optional[str] = Field(default=None, description="Stable per-device identifier")
    name: Optional[str] = None
    model: Optional[str] = None
    manufacturer: Optional[str] = "Apple Inc."
    software_version: Optional[str] = None

    class Config:
        extra = "allow"


class AppleHealthMetric(BaseModel):
    type: str = Field(..., description="HealthKit identifier, e.g. HKQuantityTypeIdentifierHeartRate")
    value: Union[float, int, str, bool]
    unit: Optional[str] = None
    start_date: Optional[str] = Field(default=None, description="ISO 8601 sample start")
    end_date: Optional[str] = None
    source_record_id: Optional[str] = None

    class Config:
        extra = "allow"


class AppleHealthWorkout(BaseModel):
    activity_type: str
    start_date: str
    end_date: Optional[str] = None
    duration_seconds: Optional[float] = None
    total_energy_burned: Optional[float] = None
    total_distance: Optional[float] = None

    class Config:
        extra = "allow"


class AppleHealthPayload(BaseModel):
    agency_id: str = Field(..., min_length=1)
    resident_id: str = Field(..., min_length=1)
    device: AppleHealthDevice = Field(default_factory=AppleHealthDevice)
    metrics: List[AppleHealthMetric]
    workouts: List[AppleHealthWorkout] = Field(default_factory=list)
    sync_id: Optional[str] = None

    class Config:
        extra = "allow"
        json_schema_extra = {
            "example": {
                "agency_id": "a1",
                "resident_id": "r1",
                "device": {"hardware_id": "W1234", "name": "Apple Watch", "model": "Watch7,1"},
                "metrics": [
                    {
                        "type": "HKQuantityTypeIdentifierHeartRate",
                        "value": 72,
                        "unit": "count/min",
                        "start_date": "2026-02-01T08:30:00Z"
                    }
                ]
            }
        }


# ============================================================================
# Garmin Health API push
# ============================================================================

class GarminSummary(BaseModel):
    userId: str = Field(..., min_length=1)
    summaryId: Optional[str] = None
    calendarDate: Optional[str] = None
    startTimeInSeconds: Optional[int] = None
    activityType: Optional[str] = None
    deviceName: Optional[str] = None

    class Config:
        extra = "allow"


class GarminPayload(BaseModel):
    summaries: List[GarminSummary]

    class Config:
        extra = "allow"


# ============================================================================
# Fitbit subscription notifications
# ============================================================================

class FitbitNotification(BaseModel):
    collectionType: str = Field(..., min_length=1, description="activities | sleep | body | ...")
    ownerId: str = Field(..., min_length=1)
    date: Optional[str] = Field(default=None, description="yyyy-MM-dd")
    ownerType: Optional[str] = "user"
    subscriptionId: Optional[str] = None

    class Config:
        extra = "allow"


# ============================================================================
# Omron medical devices
# ============================================================================

class OmronDeviceInfo(BaseModel):
    model: str
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    battery_level: Optional[int] = Field(default=None, ge=0, le=100)


class OmronMeasurement(BaseModel):
    measurement_type: str = Field(..., description="blood_pressure | weight | temperature | glucose")
    timestamp: str
    values: Dict[str, Any]
    unit: Optional[str] = None
    measurement_id: Optional[str] = None


class OmronPayload(BaseModel):
    device_id: str = Field(..., min_length=1)
    agency_id: str = Field(..., min_length=1)
    resident_id: str = Field(..., min_length=1)
    device_info: OmronDeviceInfo
    measurements: List[OmronMeasurement]
