"""
Database package for the telemetry relay.
"""

from .base import Base
from .connection import AsyncSessionLocal, engine, get_db

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "engine",
    "get_db",
]
