# file: src/aqi_precompute/precomputed.py
"""
Lookup of build-time artifacts (`daily-<year>/<locationId>.json`).

The base is either a local directory (the precompute output dir) or an
http(s) URL where that directory is published. Any failure means "not
available" and the caller falls back to the live path.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

import requests

from .errors import PrecomputedUnavailable

logger = logging.getLogger(__name__)

PRECOMPUTED_YEARS: tuple[int, ...] = (2024, 2025)


def daily_artifact_name(year: int, location_id: str) -> str:
    return f"daily-{year}/{location_id}.json"


def map_artifact_name(year: int) -> str:
    return f"map-{year}.json"


class PrecomputedStore:
    """
    Memoizing reader for per-location daily artifacts.

    The memo lives on the instance, so its lifetime is whatever owns the store
    (typically one fetcher per process or per run).
    """

    def __init__(
        self,
        base: Optional[str],
        years: Iterable[int] = PRECOMPUTED_YEARS,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        self.base = base
        self.years = frozenset(int(y) for y in years)
        self.timeout = timeout
        self._session = session
        self._memo: dict[tuple[str, int], dict] = {}
        self._lock = threading.Lock()

    @property
    def is_remote(self) -> bool:
        return bool(self.base) and str(self.base).startswith(("http://", "https://"))

    def covers(self, year: int) -> bool:
        return bool(self.base) and int(year) in self.years

    def _session_or_new(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _fetch_remote(self, name: str) -> dict:
        url = f"{str(self.base).rstrip('/')}/{name}"
        try:
            resp = self._session_or_new().get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PrecomputedUnavailable(f"{url}: {exc}") from exc
        if not resp.ok:
            raise PrecomputedUnavailable(f"{url}: status={resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise PrecomputedUnavailable(f"{url}: invalid JSON") from exc

    def _read_local(self, name: str) -> dict:
        path = Path(str(self.base)) / name
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            raise PrecomputedUnavailable(f"{path}: {exc}") from exc

    def _load(self, location_id: str, year: int) -> dict:
        name = daily_artifact_name(year, location_id)
        data = self._fetch_remote(name) if self.is_remote else self._read_local(name)
        if not isinstance(data, dict):
            raise PrecomputedUnavailable(f"{name}: expected a JSON object")
        return data

    def load_daily(self, location_id: Optional[str], year: int) -> Optional[dict]:
        if not location_id or not self.covers(year):
            return None

        memo_key = (location_id, int(year))
        with self._lock:
            if memo_key in self._memo:
                return self._memo[memo_key]

        try:
            data = self._load(location_id, int(year))
        except PrecomputedUnavailable as exc:
            logger.debug("[precomputed] unavailable, falling back: %s", exc)
            return None

        with self._lock:
            self._memo[memo_key] = data
        return data
