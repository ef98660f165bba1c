from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse

class ApplicationException(Exception):
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_response(self):
        return JSONResponse(
            status_code=self.status_code,
            content={"error": self.message}
        )


class IntegrationError(ApplicationException):
    """Any failure inside a provider handler; rendered as the relay's error envelope."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        super().__init__(message, status_code)
        self.provider = provider

    def to_response(self):
        content = {"success": False, "error": self.message}
        if self.provider:
            content["provider"] = self.provider
        return JSONResponse(status_code=self.status_code, content=content)


class PayloadValidationError(IntegrationError):
    """Required webhook fields are missing. Raised before any ledger row exists."""


class ThirdPartyAPIError(IntegrationError):
    """A provider API (Twilio, Fitbit, Whisper, Storage) answered with a failure."""

    def __init__(self, provider: str, upstream_status: int, body: Optional[str] = None, message: Optional[str] = None):
        super().__init__(
            message or f"{provider} API error ({upstream_status}): {body or 'no response body'}",
            provider=provider
        )
        self.upstream_status = upstream_status
        self.body = body
