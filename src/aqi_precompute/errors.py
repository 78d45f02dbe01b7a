# file: src/aqi_precompute/errors.py
from __future__ import annotations

from typing import Optional


class AQIError(Exception):
    """Base class for AQI precompute errors."""


class UpstreamError(AQIError):
    """Non-success HTTP status from the air-quality API."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Open-Meteo request failed ({status_code})")


class RateLimitedError(UpstreamError):
    """Upstream answered 429 Too Many Requests."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(429, message)


class PrecomputedUnavailable(AQIError):
    """A precomputed artifact is missing or malformed. Always recoverable."""


class CacheIOError(AQIError):
    """Cache storage read/write failure. Never surfaced to callers."""


class AggregateBuildFailure(AQIError):
    """One or more locations failed during a year's precompute run."""

    def __init__(self, year: int, failures: list[dict]):
        self.year = year
        self.failures = failures
        super().__init__(f"Failed to precompute {len(failures)} districts for {year}.")


def is_rate_limited(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitedError):
        return True
    if isinstance(exc, UpstreamError) and exc.status_code == 429:
        return True
    return "429" in str(exc)
