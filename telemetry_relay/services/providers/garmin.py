"""
Garmin adapter: batch of summaries, identity resolved through the user mapping table.
"""

import time
from typing import Any, Dict, List, Optional

from telemetry_relay.enums import DeviceEventType, TrustState
from telemetry_relay.schemas.webhook_schemas import GarminPayload, GarminSummary
from telemetry_relay.services.metric_normalizer import GARMIN_METRICS
from telemetry_relay.services.telemetry_pipeline import DeviceEvent, ProviderAdapter, Reading, WorkUnit
from telemetry_relay.utils.time_utils import parse_timestamp, utc_now

# Summary fields that describe the summary rather than measure anything
NON_METRIC_FIELDS = {
    "userId",
    "userAccessToken",
    "summaryId",
    "calendarDate",
    "startTimeInSeconds",
    "startTimeOffsetInSeconds",
    "activityType",
    "activityId",
    "activityName",
    "deviceName",
    "manual",
}

# Only sleep summaries carry stage breakdowns
SLEEP_STAGE_FIELDS = {
    "deepSleepDurationInSeconds",
    "lightSleepDurationInSeconds",
    "remSleepInSeconds",
    "awakeDurationInSeconds",
}


def duration_type(summary: GarminSummary, fields: Dict[str, Any]) -> Optional[str]:
    """
    Metric table key for durationInSeconds, or None when the summary is a daily one
    and the duration only spans the summary window.
    """
    if summary.activityType:
        return "activityDurationInSeconds"
    if SLEEP_STAGE_FIELDS & fields.keys():
        return "sleepDurationInSeconds"
    return None


class GarminAdapter(ProviderAdapter):
    provider_name = "garmin"
    request_type = "summary_push"
    device_prefix = "garmin"
    metric_map = GARMIN_METRICS
    payload_schema = GarminPayload

    def work_units(self, payload: GarminPayload) -> List[WorkUnit]:
        return [self._summary_unit(summary) for summary in payload.summaries]

    def _summary_unit(self, summary: GarminSummary) -> WorkUnit:
        fields: Dict[str, Any] = summary.model_dump()
        started_at = parse_timestamp(summary.startTimeInSeconds) or parse_timestamp(summary.calendarDate)
        recorded_at = started_at or utc_now()
        discriminator = (
            summary.summaryId
            or summary.calendarDate
            or (str(summary.startTimeInSeconds) if summary.startTimeInSeconds is not None else None)
            or str(int(time.time() * 1000))
        )

        readings = []
        for key, value in fields.items():
            if key in NON_METRIC_FIELDS or isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            raw_type = key
            if key == "durationInSeconds":
                raw_type = duration_type(summary, fields)
                if raw_type is None:
                    continue
            readings.append(Reading(
                raw_type=raw_type,
                value=value,
                recorded_at=recorded_at,
                raw_data={"summary_id": summary.summaryId, "calendar_date": summary.calendarDate},
                source_id=summary.summaryId,
                has_timestamp=started_at is not None
            ))

        if summary.activityType:
            event = DeviceEvent(
                event_type=DeviceEventType.ACTIVITY_COMPLETED.value,
                occurred_at=recorded_at,
                event_data={
                    "summary_id": summary.summaryId,
                    "activity_type": summary.activityType,
                    "duration_seconds": fields.get("durationInSeconds"),
                }
            )
        else:
            event = DeviceEvent(
                event_type=DeviceEventType.DAILY_SUMMARY_RECEIVED.value,
                occurred_at=recorded_at,
                event_data={"summary_id": summary.summaryId, "calendar_date": summary.calendarDate}
            )

        return WorkUnit(
            external_id=summary.userId,
            discriminator=discriminator,
            external_user_id=summary.userId,
            device_fields={
                "device_type": "WEARABLE",
                "device_name": summary.deviceName or "Garmin",
                "manufacturer": "Garmin",
                "model": summary.deviceName,
                "trust_state": TrustState.TRUSTED.value,
                "capabilities": {"source": "garmin_health_api"},
                "real_device_verified": True,
            },
            readings=readings,
            events=[event],
            ledger_payload={
                "user_id": summary.userId,
                "summary_id": summary.summaryId,
                "calendar_date": summary.calendarDate,
                "activity_type": summary.activityType,
            }
        )
