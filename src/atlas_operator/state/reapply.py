"""Periodic reapply of settled objects.

An object annotated with ``mongodb.com/reapply-period`` is pushed to Atlas
again once per period even when nothing changed. A due reapply stamps
``mongodb.com/reapply-timestamp`` with the time in epoch milliseconds;
the stamp is only rewritten once a period has passed, since every
annotation change is itself an update event.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from ..constants import ANNOTATION_REAPPLY_PERIOD, ANNOTATION_REAPPLY_TIMESTAMP, MIN_REAPPLY_PERIOD

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: str) -> float:
    """Parse a duration such as ``2h`` or ``1h30m`` into seconds.

    Raises:
        ValueError: If the value is not a duration
    """
    value = value.strip()
    if not value or _DURATION_PART.sub("", value):
        raise ValueError(f"invalid duration {value!r}")
    return sum(float(amount) * _UNIT_SECONDS[unit] for amount, unit in _DURATION_PART.findall(value))


def reapply_period(body: dict[str, Any]) -> float | None:
    """Seconds between reapplies, or None if the object is not annotated.

    Raises:
        ValueError: If the period is malformed or shorter than an hour
    """
    annotations = body.get("metadata", {}).get("annotations") or {}
    value = annotations.get(ANNOTATION_REAPPLY_PERIOD)
    if value is None:
        return None
    period = parse_duration(value)
    if period < MIN_REAPPLY_PERIOD:
        raise ValueError(f"{ANNOTATION_REAPPLY_PERIOD} {value!r} must be at least 60m")
    return period


def last_reapplied(body: dict[str, Any]) -> datetime | None:
    """Time of the last recorded reapply.

    Raises:
        ValueError: If the timestamp annotation is not epoch milliseconds
    """
    annotations = body.get("metadata", {}).get("annotations") or {}
    value = annotations.get(ANNOTATION_REAPPLY_TIMESTAMP)
    if value is None:
        return None
    try:
        millis = int(value)
    except ValueError as e:
        raise ValueError(f"{ANNOTATION_REAPPLY_TIMESTAMP} {value!r} is not a timestamp") from e
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def next_reapply(body: dict[str, Any], now: datetime) -> tuple[float, bool] | None:
    """Seconds until the next reapply, and whether one is due now.

    Returns None for objects without a reapply period. A due reapply is
    next expected a full period later.
    """
    period = reapply_period(body)
    if period is None:
        return None
    last = last_reapplied(body)
    if last is None:
        return period, True
    remaining = (last - now).total_seconds() + period
    if remaining <= 0:
        return period, True
    return remaining, False


def reapply_timestamp(now: datetime) -> dict[str, str]:
    """Annotations recording a reapply at ``now``."""
    return {ANNOTATION_REAPPLY_TIMESTAMP: str(int(now.timestamp() * 1000))}
