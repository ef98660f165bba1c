import httpx

from telemetry_relay.core.config import settings


async def get_http_client():
    """Dependency yielding the client used for outbound provider calls."""
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        yield client
