import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from fastapi.responses import JSONResponse
from telemetry_relay.exceptions.handlers import (
    application_exception_handler,
    http_exception_handler,
    generic_exception_handler
)
from telemetry_relay.exceptions.errors import ApplicationException
from starlette.exceptions import HTTPException as StarletteHTTPException
from telemetry_relay.database.base import Base
from telemetry_relay.database.connection import engine

from telemetry_relay.api.v1.routes import webhook_router, integration_router
from telemetry_relay.middlewares.service_auth import ServiceAuthMiddleware, whitelisted_routes

from telemetry_relay.core.config import settings
from telemetry_relay.core.logger import get_logger

logger = get_logger("telemetry-relay")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Telemetry relay is starting...")
    try:
        # Alembic owns the schema in production; this covers fresh dev databases
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Application database tables ensured.")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise e

    yield

    logger.info("Telemetry relay is shutting down...")

IS_DEVELOPMENT = settings.ENVIRONMENT == "development"

app = FastAPI(
    title="Eldercare Telemetry Relay",
    version="1.0.0",
    lifespan=lifespan,
    description="""
    Receives health telemetry webhooks (Apple Health, Garmin, Fitbit, Omron, generic devices)
    and relays them into the care database. Also sends SMS through Twilio and transcribes
    caregiver voice notes with Whisper.

    ## Authentication

    Webhook routes are public. Integration routes require
    `Authorization: Bearer <RELAY_API_KEY>` when a key is configured.
    """,
    swagger_ui_parameters={
        "deepLinking": True,
        "displayRequestDuration": True,
        "persistAuthorization": IS_DEVELOPMENT,
    }
)

# Webhooks and browser clients call from anywhere
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    ServiceAuthMiddleware,
    whitelisted_routes=whitelisted_routes
)

app.include_router(webhook_router, prefix="/api/v1")
app.include_router(integration_router, prefix="/api/v1")

@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "Eldercare Telemetry Relay",
        "docs": "/docs",
        "development_mode": IS_DEVELOPMENT,
        "version": "1.0.0"
    }

# The Fitbit verification 404 is a protocol answer, not a missing route
PASSTHROUGH_404_PATHS = {"/api/v1/webhooks/fitbit"}

# 404 middleware
@app.middleware("http")
async def catch_all_404_middleware(request: Request, call_next):
    response = await call_next(request)
    if response.status_code == 404 and request.url.path not in PASSTHROUGH_404_PATHS:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Route not found", "path": str(request.url.path)}
        )
    return response

app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

if __name__ == "__main__":
    uvicorn.run(
        "telemetry_relay.main:app",
        host="0.0.0.0",
        port=8000,
        reload=IS_DEVELOPMENT,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30
    )
