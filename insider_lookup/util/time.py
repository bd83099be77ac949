from __future__ import annotations

from datetime import datetime, timezone


def to_iso(dt: datetime) -> str:
    """UTC ISO-8601 with a trailing Z, truncated to whole seconds."""
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def from_epoch_iso(ts: float) -> str:
    return to_iso(datetime.fromtimestamp(ts, tz=timezone.utc))
