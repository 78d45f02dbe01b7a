# file: src/aqi_precompute/series.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Mapping, Optional

from .pollutants import format_number, is_finite


@dataclass(frozen=True)
class AnnualSeries:
    """Dense daily composite AQI for one calendar year plus monthly means."""

    year: int
    days: list[Optional[int]]
    monthly: list[Optional[float]]

    def to_dict(self) -> dict[str, Any]:
        return {"year": self.year, "days": list(self.days), "monthly": list(self.monthly)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AnnualSeries":
        return cls(
            year=int(payload["year"]),
            days=list(payload["days"]),
            monthly=list(payload["monthly"]),
        )


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def day_offset(date_key: str, year: int) -> Optional[int]:
    """Zero-based day-of-year for a YYYY-MM-DD key, or None if unparsable/out of year."""
    try:
        day = date.fromisoformat(str(date_key)[:10])
    except ValueError:
        return None
    offset = (day - date(year, 1, 1)).days
    if offset < 0 or offset >= days_in_year(year):
        return None
    return offset


def month_of_offset(offset: int, year: int) -> int:
    """Zero-based month index for a day-of-year offset."""
    return (date(year, 1, 1) + timedelta(days=offset)).month - 1


def build_daily_aqi_series(daily: Mapping[str, Any], year: int) -> AnnualSeries:
    days: list[Optional[int]] = [None] * days_in_year(year)

    for date_key, record in (daily or {}).items():
        offset = day_offset(date_key, year)
        if offset is None:
            continue
        aqi = record.get("aqi") if isinstance(record, Mapping) else None
        days[offset] = aqi if is_finite(aqi) else None

    sums = [0.0] * 12
    counts = [0] * 12
    for offset, aqi in enumerate(days):
        if aqi is None:
            continue
        month = month_of_offset(offset, year)
        sums[month] += aqi
        counts[month] += 1

    monthly = [
        format_number(sums[m] / counts[m], 1) if counts[m] else None
        for m in range(12)
    ]
    return AnnualSeries(year=year, days=days, monthly=monthly)
