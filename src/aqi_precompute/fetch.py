# file: src/aqi_precompute/fetch.py
"""
Daily records and annual series for one location/year.

Resolution order for daily records:
    precomputed artifact -> daily cache -> live Open-Meteo fetch
Annual series add their own cache namespace in front of that.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Protocol
from zoneinfo import ZoneInfo

from .aggregate import DailyRecords, build_daily_averages
from .cache import DAILY_CACHE_PREFIX, SERIES_CACHE_PREFIX, MemoryStore, TTLCache
from .precomputed import PrecomputedStore
from .series import AnnualSeries, build_daily_aqi_series

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Bangkok"


class HourlyClient(Protocol):
    def fetch_hourly(
        self,
        latitude: float,
        longitude: float,
        start_date: str,
        end_date: str,
        timezone: str,
    ) -> dict: ...


def today_in(timezone: str) -> date:
    return datetime.now(ZoneInfo(timezone)).date()


def year_date_range(year: int, today: date) -> tuple[str, str]:
    """Jan 1 through Dec 31, or through today for the current year."""
    start = f"{year}-01-01"
    if today.year == year:
        return start, today.isoformat()
    return start, f"{year}-12-31"


class AQIFetcher:
    def __init__(
        self,
        client: HourlyClient,
        *,
        daily_cache: Optional[TTLCache] = None,
        series_cache: Optional[TTLCache] = None,
        precomputed: Optional[PrecomputedStore] = None,
        timezone: str = DEFAULT_TIMEZONE,
        today: Optional[Callable[[], date]] = None,
    ):
        self.client = client
        store = MemoryStore()
        self.daily_cache = daily_cache or TTLCache(store, DAILY_CACHE_PREFIX)
        self.series_cache = series_cache or TTLCache(store, SERIES_CACHE_PREFIX)
        self.precomputed = precomputed
        self.timezone = timezone
        self._today = today or (lambda: today_in(self.timezone))

    def fetch_daily_aqi(
        self,
        latitude: float,
        longitude: float,
        year: int,
        cache_key: Optional[str] = None,
        *,
        location_id: Optional[str] = None,
        skip_precomputed: bool = False,
    ) -> DailyRecords:
        if not skip_precomputed and self.precomputed is not None:
            data = self.precomputed.load_daily(location_id, year)
            if data is not None:
                logger.debug("[fetch] precomputed hit %s/%s", location_id, year)
                return data

        cached = self.daily_cache.read(cache_key)
        if cached is not None:
            logger.debug("[fetch] cache hit %s", cache_key)
            return cached

        start_date, end_date = year_date_range(year, self._today())
        hourly = self.client.fetch_hourly(
            latitude,
            longitude,
            start_date,
            end_date,
            self.timezone,
        )
        data = build_daily_averages(hourly)
        logger.info(
            "[fetch] live %s..%s lat=%s lon=%s -> %s days",
            start_date, end_date, latitude, longitude, len(data),
        )
        self.daily_cache.write(cache_key, data)
        return data

    def fetch_annual_series(
        self,
        latitude: float,
        longitude: float,
        year: int,
        cache_key: Optional[str] = None,
        *,
        location_id: Optional[str] = None,
        skip_precomputed: bool = False,
    ) -> AnnualSeries:
        cached = self.series_cache.read(cache_key)
        if cached is not None:
            try:
                return AnnualSeries.from_dict(cached)
            except (KeyError, TypeError, ValueError):
                logger.debug("[fetch] malformed series cache entry %s", cache_key)

        daily = self.fetch_daily_aqi(
            latitude,
            longitude,
            year,
            cache_key,
            location_id=location_id,
            skip_precomputed=skip_precomputed,
        )
        series = build_daily_aqi_series(daily, year)
        self.series_cache.write(cache_key, series.to_dict())
        return series
