"""Timestamp normalization and duration helpers."""

from __future__ import annotations

import pandas as pd
import pytz

MS_PER_HOUR = 1000.0 * 60 * 60


def normalize_timestamp(value, target_tz=pytz.UTC) -> pd.Timestamp | None:
    """Normalize a timestamp-like value into ``target_tz``.

    Naive values are assumed to be UTC. Returns None when the input cannot be
    parsed.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if ts is None or pd.isna(ts):
        return None
    try:
        if getattr(ts, "tzinfo", None) is None:
            ts = ts.tz_localize(pytz.UTC)
        return ts.tz_convert(target_tz)
    except (TypeError, ValueError):
        return None


def span_ms(start, end) -> float | None:
    """Milliseconds from ``start`` to ``end``; None if either is missing."""
    start_ts = normalize_timestamp(start)
    end_ts = normalize_timestamp(end)
    if start_ts is None or end_ts is None:
        return None
    return (end_ts - start_ts).total_seconds() * 1000.0


def ms_to_hours(ms: float | None) -> float:
    """Convert milliseconds to hours, flooring negatives and None at zero."""
    if ms is None or pd.isna(ms):
        return 0.0
    return max(0.0, float(ms)) / MS_PER_HOUR


def optional_hours(ms: float | None) -> float | None:
    if ms is None:
        return None
    return ms_to_hours(ms)
