# file: src/aqi_precompute/open_meteo.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import RateLimitedError, UpstreamError
from .pollutants import POLLUTANTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenMeteoEndpoints:
    air_quality_url: str = "https://air-quality-api.open-meteo.com/v1/air-quality"


def hourly_variables() -> list[str]:
    return [p.hourly for p in POLLUTANTS]


class OpenMeteoAirQualityClient:
    """
    Hourly pollutant concentrations from the Open-Meteo air-quality API.

    Connection and read errors are retried by the transport. HTTP status codes
    are not: a 429 surfaces as RateLimitedError so the caller owns the backoff.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 60,
        *,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url or OpenMeteoEndpoints().air_quality_url
        self.timeout = timeout
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        retries = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=(),
            allowed_methods=frozenset(["GET"]),
            connect=3,
            read=3,
            raise_on_status=False,
        )
        session.mount("https://", HTTPAdapter(max_retries=retries))
        return session

    def fetch_hourly(
        self,
        latitude: float,
        longitude: float,
        start_date: str,
        end_date: str,
        timezone: str,
        variables: Optional[Sequence[str]] = None,
    ) -> dict:
        """Return the `hourly` object: `time` plus one array per variable."""
        if variables is None:
            variables = hourly_variables()

        params = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "timezone": timezone,
            "start_date": start_date,
            "end_date": end_date,
            "hourly": ",".join(variables),
        }

        resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
        logger.debug("[open-meteo] status=%s url=%s", resp.status_code, resp.url)

        if resp.status_code == 429:
            raise RateLimitedError()
        if not resp.ok:
            raise UpstreamError(resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            content_preview = resp.text[:500] if resp.text else "(empty)"
            raise ValueError(
                f"[open-meteo] Invalid JSON response. "
                f"status={resp.status_code} content_preview={content_preview}"
            ) from e

        hourly = payload.get("hourly") if isinstance(payload, dict) else None
        if not isinstance(hourly, dict):
            logger.warning("[open-meteo] response has no hourly block: %s", resp.url)
            return {"time": []}
        return hourly
