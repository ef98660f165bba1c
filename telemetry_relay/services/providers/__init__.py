"""
Provider adapters for the telemetry pipeline, keyed by provider name.
"""

from .apple_health import AppleHealthAdapter
from .garmin import GarminAdapter
from .fitbit import FitbitAdapter
from .omron import OmronAdapter

PROVIDER_ADAPTERS = {
    adapter.provider_name: adapter
    for adapter in (AppleHealthAdapter(), GarminAdapter(), FitbitAdapter(), OmronAdapter())
}


def get_adapter(provider_name: str):
    return PROVIDER_ADAPTERS[provider_name]


__all__ = [
    "AppleHealthAdapter",
    "GarminAdapter",
    "FitbitAdapter",
    "OmronAdapter",
    "PROVIDER_ADAPTERS",
    "get_adapter",
]
