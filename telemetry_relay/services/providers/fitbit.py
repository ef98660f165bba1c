"""
Fitbit adapter: subscription notifications only say *what* changed, so each
notification is resolved through the mapping table and then fetched from the
Fitbit Web API before anything is written.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from telemetry_relay.core.config import settings
from telemetry_relay.enums import DeviceEventType, TrustState
from telemetry_relay.exceptions.errors import IntegrationError, PayloadValidationError, ThirdPartyAPIError
from telemetry_relay.schemas.webhook_schemas import FitbitNotification
from telemetry_relay.services.metric_normalizer import FITBIT_METRICS
from telemetry_relay.services.telemetry_pipeline import (
    DeviceEvent,
    ProviderAdapter,
    Reading,
    WorkUnit,
    describe_validation_error,
)
from telemetry_relay.utils.time_utils import parse_timestamp, utc_now
from telemetry_relay.core.logger import get_logger

logger = get_logger("fitbit_adapter")

COLLECTION_PATHS = {
    "activities": "/1/user/{owner_id}/activities/date/{date}.json",
    "sleep": "/1.2/user/{owner_id}/sleep/date/{date}.json",
    "body": "/1/user/{owner_id}/body/log/weight/date/{date}.json",
}

ACTIVITY_SUMMARY_FIELDS = ("steps", "caloriesOut", "floors", "veryActiveMinutes", "sedentaryMinutes", "restingHeartRate")

_notifications_adapter = TypeAdapter(List[FitbitNotification])


def flatten_activities(body: Dict[str, Any]) -> Dict[str, Any]:
    summary = body.get("summary") or {}
    values = {f"activities.{key}": summary.get(key) for key in ACTIVITY_SUMMARY_FIELDS}
    for distance in summary.get("distances") or []:
        if distance.get("activity") == "total":
            values["activities.distance"] = distance.get("distance")
    return values


def flatten_sleep(body: Dict[str, Any]) -> Dict[str, Any]:
    summary = body.get("summary") or {}
    values = {"sleep.totalMinutesAsleep": summary.get("totalMinutesAsleep")}
    for stage, minutes in (summary.get("stages") or {}).items():
        values[f"sleep.stages.{stage}"] = minutes
    return values


class FitbitAdapter(ProviderAdapter):
    provider_name = "fitbit"
    request_type = "collection_fetch"
    device_prefix = "fitbit"
    metric_map = FITBIT_METRICS
    calls_external_api = True

    def validate(self, payload: Any) -> List[FitbitNotification]:
        if isinstance(payload, dict):
            payload = [payload]
        try:
            notifications = _notifications_adapter.validate_python(payload)
        except ValidationError as e:
            raise PayloadValidationError(describe_validation_error(self.provider_name, e), self.provider_name)
        if not notifications:
            raise PayloadValidationError("Invalid fitbit payload: no notifications", self.provider_name)
        return notifications

    def work_units(self, payload: List[FitbitNotification]) -> List[WorkUnit]:
        units = []
        for notification in payload:
            collection_date = notification.date or date.today().isoformat()
            units.append(WorkUnit(
                external_id=notification.ownerId,
                discriminator=f"{notification.collectionType}-{collection_date}",
                external_user_id=notification.ownerId,
                device_fields={
                    "device_type": "WEARABLE",
                    "device_name": "Fitbit",
                    "manufacturer": "Fitbit",
                    "trust_state": TrustState.TRUSTED.value,
                    "capabilities": {"source": "fitbit_web_api"},
                    "real_device_verified": True,
                },
                ledger_payload=notification.model_dump(),
                context={"collection": notification.collectionType, "date": collection_date}
            ))
        return units

    async def collect(self, unit: WorkUnit, http_client: Optional[httpx.AsyncClient]) -> None:
        collection = unit.context["collection"]
        collection_date = unit.context["date"]
        path = COLLECTION_PATHS.get(collection)
        if path is None:
            logger.info(f"Fitbit collection '{collection}' carries no metrics; recording notification only")
            return

        body = await self._fetch(http_client, path.format(owner_id=unit.external_id, date=collection_date))
        unit.context["fetched"] = True
        recorded_at = parse_timestamp(collection_date, utc_now())

        if collection == "body":
            for log in body.get("weight") or []:
                logged_at = parse_timestamp(f"{log.get('date', collection_date)}T{log.get('time', '00:00:00')}", recorded_at)
                for key in ("weight", "bmi", "fat"):
                    if log.get(key) is not None:
                        unit.readings.append(Reading(
                            raw_type=f"body.{key}",
                            value=log[key],
                            recorded_at=logged_at,
                            raw_data={"log_id": log.get("logId")},
                            source_id=str(log["logId"]) if log.get("logId") is not None else None
                        ))
                unit.events.append(DeviceEvent(
                    event_type=DeviceEventType.MEASUREMENT_RECEIVED.value,
                    occurred_at=logged_at,
                    event_data={"collection": collection, "log_id": log.get("logId")}
                ))
            return

        values = flatten_activities(body) if collection == "activities" else flatten_sleep(body)
        for raw_type, value in values.items():
            if value is None:
                continue
            unit.readings.append(Reading(
                raw_type=raw_type,
                value=value,
                recorded_at=recorded_at,
                raw_data={"collection": collection, "date": collection_date}
            ))
        unit.events.append(DeviceEvent(
            event_type=DeviceEventType.DAILY_SUMMARY_RECEIVED.value,
            occurred_at=recorded_at,
            event_data={"collection": collection, "date": collection_date}
        ))

    async def _fetch(self, http_client: Optional[httpx.AsyncClient], path: str) -> Dict[str, Any]:
        if not settings.FITBIT_ACCESS_TOKEN:
            raise IntegrationError("FITBIT_ACCESS_TOKEN is not configured", self.provider_name)
        if http_client is None:
            raise IntegrationError("No HTTP client available for Fitbit fetch", self.provider_name)

        url = f"{settings.FITBIT_API_BASE_URL.rstrip('/')}{path}"
        try:
            response = await http_client.get(
                url,
                headers={"Authorization": f"Bearer {settings.FITBIT_ACCESS_TOKEN}"}
            )
        except httpx.HTTPError as e:
            raise ThirdPartyAPIError(self.provider_name, 502, str(e))

        if response.status_code >= 400:
            raise ThirdPartyAPIError(self.provider_name, response.status_code, response.text)
        return response.json()
