from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(dt: datetime | None = None) -> str:
    """
    ISO-8601 string for `updated_at` bumps and defect timestamps.
    """
    if dt is None:
        dt = utc_now()
    return dt.isoformat()


def is_iso_timestamp(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True
