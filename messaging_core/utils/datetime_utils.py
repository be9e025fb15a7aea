# =============================================================================
# File: messaging_core/utils/datetime_utils.py
# Description: Timestamp helpers. All stored timestamps are ISO 8601 UTC
#              strings with millisecond precision and a trailing "Z", so they
#              sort lexicographically inside index sort keys.
# =============================================================================

from datetime import datetime, timezone


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))
