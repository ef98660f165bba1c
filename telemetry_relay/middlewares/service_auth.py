import hmac
from typing import List, Optional

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from telemetry_relay.core.config import settings
from telemetry_relay.core.logger import get_logger

logger = get_logger("service_auth_middleware")

# Providers cannot send our key, so webhooks stay public
whitelisted_routes = [
    "/docs", "/openapi.json", "/redoc", "/favicon.ico",
    "/api/v1/webhooks",
]


class ServiceAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, whitelisted_routes: List[str] = None, api_key: Optional[str] = None):
        super().__init__(app)
        self.whitelisted_routes = whitelisted_routes or []
        self.api_key = api_key

    def _is_whitelisted(self, path: str) -> bool:
        """Check if the route is whitelisted (public)"""
        for route in self.whitelisted_routes:
            if path.startswith(route):
                return True
        return False

    def _configured_key(self) -> Optional[str]:
        return self.api_key if self.api_key is not None else settings.RELAY_API_KEY

    async def dispatch(self, request: Request, call_next):
        """Checks the shared bearer key on integration routes"""
        api_key = self._configured_key()

        # No key configured: development mode
        if not api_key:
            return await call_next(request)

        if request.url.path == "/" or self._is_whitelisted(request.url.path):
            return await call_next(request)

        # Skip authentication for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            logger.warning(f"Missing or invalid Authorization header for: {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "error": "Missing or invalid authorization token"}
            )

        token = auth_header[len("Bearer "):]
        if not hmac.compare_digest(token.encode("utf-8"), api_key.encode("utf-8")):
            logger.warning(f"Rejected service token for: {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "error": "Invalid authentication token"}
            )

        return await call_next(request)
