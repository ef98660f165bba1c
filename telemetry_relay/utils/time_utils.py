from datetime import datetime, timezone, date
from typing import Any, Optional


def utc_now() -> datetime:
    """Naive UTC now; columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any, default: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse ISO 8601 strings, epoch seconds or dates into naive UTC.
    Unparseable values fall back to `default`.
    """
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return default
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def elapsed_ms(started_at: datetime, finished_at: Optional[datetime] = None) -> int:
    finished_at = finished_at or utc_now()
    return int((finished_at - started_at).total_seconds() * 1000)
