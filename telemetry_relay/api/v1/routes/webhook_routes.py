"""
Provider Webhook Routes
Receives telemetry pushed by devices and wearable platforms
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from telemetry_relay.database.connection import get_db
from telemetry_relay.api.v1.controllers.webhook_controller import WebhookController
from telemetry_relay.utils.http_client import get_http_client

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/device")
async def device_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Generic device webhook

    - **device_id**, **agency_id**: required
    - **resident_id**: optional; vitals are only created when present
    - vital fields (heart_rate, systolic, diastolic, spo2, ...) become vital_signs rows

    An identical payload inside the duplicate window returns `duplicate: true`.
    """
    return await WebhookController.ingest_device_data(request, db)


@router.post("/apple-health")
async def apple_health_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Apple Health sync from the companion app (agency_id, resident_id, metrics)."""
    return await WebhookController.ingest_provider_webhook("apple-health", request, db)


@router.post("/garmin")
async def garmin_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Garmin Health API push

    Each summary is matched to a resident through the external user mapping;
    summaries for unknown users are skipped.
    """
    return await WebhookController.ingest_provider_webhook("garmin", request, db)


@router.get("/fitbit")
async def fitbit_verify(verify: Optional[str] = Query(default=None)):
    """Fitbit subscriber verification: 204 for the configured code, 404 otherwise."""
    return await WebhookController.verify_fitbit_subscriber(verify)


@router.post("/fitbit")
async def fitbit_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    """Fitbit subscription notifications; the changed collection is fetched from the Web API."""
    return await WebhookController.ingest_provider_webhook("fitbit", request, db, http_client)


@router.post("/omron")
async def omron_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Omron medical device measurements (blood pressure, weight, SpO2)."""
    return await WebhookController.ingest_provider_webhook("omron", request, db)
