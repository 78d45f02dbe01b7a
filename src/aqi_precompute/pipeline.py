# file: src/aqi_precompute/pipeline.py
"""
Precompute pipeline: per-location daily artifacts and per-year map artifacts.

For each year (strictly in order):
- a shared queue of locations is drained by a small worker pool
- each location reuses `daily-<year>/<id>.json` if it exists, else fetches
  live with retry-on-429 and writes it
- `map-<year>.json` is written only if every location succeeded

A failed year raises AggregateBuildFailure after its whole queue was tried.
"""

from __future__ import annotations

import logging
import queue
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence, TypeVar

from .cache import DAILY_CACHE_PREFIX, SERIES_CACHE_PREFIX, TTLCache, open_store
from .config import PrecomputeConfig
from .errors import AggregateBuildFailure, is_rate_limited
from .fetch import AQIFetcher
from .io_utils import atomic_write_json, read_json_if_exists
from .locations import LocationInfo
from .open_meteo import OpenMeteoAirQualityClient
from .precomputed import PRECOMPUTED_YEARS, PrecomputedStore
from .series import build_daily_aqi_series

logger = logging.getLogger(__name__)

T = TypeVar("T")
Sleep = Callable[[float], None]


def backoff_seconds(
    attempt: int,
    *,
    base_seconds: float = 1.2,
    jitter_seconds: float = 0.4,
    rng: Optional[random.Random] = None,
) -> float:
    """base * attempt plus whole-millisecond jitter in [0, jitter)."""
    rng = rng or random
    jitter_ms = int(round(jitter_seconds * 1000))
    extra_ms = rng.randrange(jitter_ms) if jitter_ms > 0 else 0
    return (round(base_seconds * 1000) * attempt + extra_ms) / 1000


def fetch_with_retry(
    fn: Callable[[], T],
    label: str,
    *,
    max_attempts: int = 5,
    base_seconds: float = 1.2,
    jitter_seconds: float = 0.4,
    sleep: Sleep = time.sleep,
    rng: Optional[random.Random] = None,
) -> T:
    """
    Call `fn` until it succeeds, retrying only rate-limit failures.

    Any other error, or a rate limit on the last attempt, propagates at once.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt == max_attempts or not is_rate_limited(exc):
                raise
            wait = backoff_seconds(
                attempt,
                base_seconds=base_seconds,
                jitter_seconds=jitter_seconds,
                rng=rng,
            )
            logger.warning(
                "[precompute]   %s rate-limited (attempt %s/%s), retrying in %sms",
                label, attempt, max_attempts, int(wait * 1000),
            )
            sleep(wait)
    raise RuntimeError(f"max_attempts must be >= 1, got {max_attempts}")


def create_fetcher(config: PrecomputeConfig) -> AQIFetcher:
    store = open_store(config.cache_db_path)
    return AQIFetcher(
        OpenMeteoAirQualityClient(config.base_url, timeout=config.request_timeout),
        daily_cache=TTLCache(store, DAILY_CACHE_PREFIX),
        series_cache=TTLCache(store, SERIES_CACHE_PREFIX),
        precomputed=PrecomputedStore(config.precomputed_base, PRECOMPUTED_YEARS),
        timezone=config.timezone,
    )


def _process_location(
    location: LocationInfo,
    year: int,
    fetcher: AQIFetcher,
    config: PrecomputeConfig,
    sleep: Sleep,
    rng: Optional[random.Random],
) -> tuple[list, bool]:
    daily_path = config.daily_artifact_path(year, location.id)
    daily = read_json_if_exists(daily_path)
    reused = daily is not None

    if not reused:
        # never read our own artifacts as a shortcut; only files already on disk count
        daily = fetch_with_retry(
            lambda: fetcher.fetch_daily_aqi(
                location.latitude,
                location.longitude,
                year,
                None,
                location_id=location.id,
                skip_precomputed=True,
            ),
            location.name,
            max_attempts=config.max_attempts,
            base_seconds=config.backoff_base_seconds,
            jitter_seconds=config.backoff_jitter_seconds,
            sleep=sleep,
            rng=rng,
        )
        atomic_write_json(daily, daily_path)

    series = build_daily_aqi_series(daily, year)
    return series.days, reused


def build_year(
    year: int,
    locations: Sequence[LocationInfo],
    fetcher: AQIFetcher,
    config: PrecomputeConfig,
    *,
    sleep: Sleep = time.sleep,
    rng: Optional[random.Random] = None,
) -> dict:
    logger.info("[precompute] Precomputing AQI for %s (%s locations)...", year, len(locations))

    work: "queue.Queue[LocationInfo]" = queue.Queue()
    for location in locations:
        work.put(location)

    lock = threading.Lock()
    map_data: dict[str, list] = {}
    failures: list[dict] = []
    counts = {"fetched": 0, "reused": 0}

    def worker() -> None:
        while True:
            try:
                location = work.get_nowait()
            except queue.Empty:
                return
            try:
                days, reused = _process_location(location, year, fetcher, config, sleep, rng)
            except Exception as exc:
                with lock:
                    failures.append({"location": location.id, "name": location.name, "error": str(exc)})
                logger.warning("[precompute]   x %s: %s", location.name, exc)
                continue

            with lock:
                map_data[location.id] = days
                counts["reused" if reused else "fetched"] += 1
            logger.info("[precompute]   ok %s%s", location.name, " (reused)" if reused else "")
            sleep(config.throttle_seconds)

    n_workers = max(1, int(config.concurrency))
    with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix=f"aqi-{year}") as executor:
        futures = [executor.submit(worker) for _ in range(n_workers)]
        for future in futures:
            future.result()

    if failures:
        raise AggregateBuildFailure(year, failures)

    ordered = {loc.id: map_data[loc.id] for loc in locations if loc.id in map_data}
    map_path = config.map_artifact_path(year)
    atomic_write_json({"year": year, "districts": ordered}, map_path)
    logger.info("[precompute] wrote %s", map_path)

    return {
        "year": year,
        "locations": len(locations),
        "fetched": counts["fetched"],
        "reused": counts["reused"],
        "map_path": str(map_path),
    }


def run_precompute(
    config: PrecomputeConfig,
    locations: Sequence[LocationInfo],
    fetcher: Optional[AQIFetcher] = None,
    *,
    sleep: Sleep = time.sleep,
    rng: Optional[random.Random] = None,
) -> list[dict]:
    """Build every configured year in order; the first failing year aborts the run."""
    if not locations:
        raise ValueError("No locations to precompute")

    fetcher = fetcher or create_fetcher(config)
    results = []
    for year in config.years:
        results.append(build_year(year, locations, fetcher, config, sleep=sleep, rng=rng))
    logger.info("[precompute] Precompute complete.")
    return results
