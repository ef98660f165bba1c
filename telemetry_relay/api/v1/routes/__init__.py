"""
API v1 routes package.
Provider webhooks and outbound integration routes.
"""

from .webhook_routes import router as webhook_router
from .integration_routes import router as integration_router

__all__ = [
    "webhook_router",
    "integration_router"
]
