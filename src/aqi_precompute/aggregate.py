# file: src/aqi_precompute/aggregate.py
"""
Daily AQI aggregation from an Open-Meteo hourly payload.

Input is the `hourly` object of the air-quality response:
    {"time": ["2024-01-01T00:00", ...], "pm2_5": [...], "ozone": [...], ...}

Timestamps must already be in the reporting time zone; the calendar date is
the first 10 characters of each timestamp.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Optional

import numpy as np
import pandas as pd

from .pollutants import (
    MIN_HOURLY_COUNT,
    POLLUTANTS,
    Pollutant,
    compute_aqi,
    format_number,
    normalize_concentration,
    pollutant_aqi,
)

logger = logging.getLogger(__name__)

DailyRecords = dict[str, dict[str, Any]]


def hourly_frame(hourly: Optional[dict]) -> pd.DataFrame:
    """
    Tabulate the hourly payload: one row per timestamp, one column per pollutant id.

    Non-numeric and non-finite readings become NaN. Source arrays shorter than
    `time` are padded with NaN.
    """
    hourly = hourly or {}
    times = [str(t) for t in (hourly.get("time") or [])]
    n = len(times)
    if n == 0:
        return pd.DataFrame(columns=["time", "date"] + [p.id for p in POLLUTANTS])

    data: dict[str, Any] = {"time": times, "date": [t[:10] for t in times]}
    for pollutant in POLLUTANTS:
        values = hourly.get(pollutant.hourly)
        if values is None:
            logger.warning("[aggregate] missing variable: %s", pollutant.hourly)
            values = []
        values = (list(values) + [None] * n)[:n]
        series = pd.to_numeric(pd.Series(values, dtype="object"), errors="coerce")
        data[pollutant.id] = series.astype("float64").replace([np.inf, -np.inf], np.nan)

    return pd.DataFrame(data)


def hourly_composite(frame: pd.DataFrame) -> pd.Series:
    """Max pollutant AQI per hour (NaN when no pollutant yields an index)."""
    per_pollutant = []
    for pollutant in POLLUTANTS:
        aqi = frame[pollutant.id].map(partial(pollutant_aqi, pollutant.id))
        per_pollutant.append(pd.to_numeric(aqi, errors="coerce").astype("float64"))
    return pd.concat(per_pollutant, axis=1).max(axis=1, skipna=True)


def _as_int(value) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    return int(value)


def _pollutant_day(pollutant: Pollutant, stats: pd.Series) -> Optional[dict]:
    count = int(stats["count"])
    if count < MIN_HOURLY_COUNT:
        return None

    avg = normalize_concentration(pollutant.id, stats["sum"] / count)
    low = normalize_concentration(pollutant.id, stats["min"])
    high = normalize_concentration(pollutant.id, stats["max"])

    # index from the unrounded normalized mean; rounding is for presentation only
    return {
        "avg": format_number(avg, 1),
        "min": format_number(low, 1),
        "max": format_number(high, 1),
        "aqi": compute_aqi(avg, pollutant.breakpoints),
    }


def build_daily_averages(hourly: Optional[dict]) -> DailyRecords:
    """
    Reduce an hourly payload to per-day records.

    Each record: {"aqi", "hourly_aqi_min", "hourly_aqi_max", "pollutants"}.
    A pollutant with fewer than MIN_HOURLY_COUNT valid hours that day is None.
    """
    frame = hourly_frame(hourly)
    if frame.empty:
        return {}

    frame["hourly_aqi"] = hourly_composite(frame)
    grouped = frame.groupby("date", sort=False)
    stats = {p.id: grouped[p.id].agg(["sum", "count", "min", "max"]) for p in POLLUTANTS}
    envelope = grouped["hourly_aqi"].agg(["min", "max"])

    daily: DailyRecords = {}
    for date_key in envelope.index:
        pollutants: dict[str, Optional[dict]] = {}
        aqis: list[int] = []

        for pollutant in POLLUTANTS:
            entry = _pollutant_day(pollutant, stats[pollutant.id].loc[date_key])
            pollutants[pollutant.id] = entry
            if entry is not None and entry["aqi"] is not None:
                aqis.append(entry["aqi"])

        daily[str(date_key)] = {
            "aqi": max(aqis) if aqis else None,
            "hourly_aqi_min": _as_int(envelope.at[date_key, "min"]),
            "hourly_aqi_max": _as_int(envelope.at[date_key, "max"]),
            "pollutants": pollutants,
        }

    logger.debug("[aggregate] %s hours -> %s days", len(frame), len(daily))
    return daily
