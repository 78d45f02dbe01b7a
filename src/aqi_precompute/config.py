# file: src/aqi_precompute/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .open_meteo import OpenMeteoEndpoints
from .precomputed import PRECOMPUTED_YEARS, daily_artifact_name, map_artifact_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrecomputeConfig:
    # Years + locations
    years: tuple[int, ...] = PRECOMPUTED_YEARS
    locations_path: str = "data/locations.json"
    timezone: str = "Asia/Bangkok"

    # Worker pool + retry policy
    concurrency: int = 2
    max_attempts: int = 5
    backoff_base_seconds: float = 1.2
    backoff_jitter_seconds: float = 0.4
    throttle_seconds: float = 0.3

    # Upstream
    base_url: str = OpenMeteoEndpoints().air_quality_url
    request_timeout: int = 60

    # IO
    output_dir: str = "public/aqi"
    cache_db_path: Optional[str] = None
    precomputed_base: Optional[str] = None

    def output_path(self) -> Path:
        return Path(self.output_dir)

    def daily_artifact_path(self, year: int, location_id: str) -> Path:
        return self.output_path() / daily_artifact_name(year, location_id)

    def map_artifact_path(self, year: int) -> Path:
        return self.output_path() / map_artifact_name(year)

    @classmethod
    def from_env(cls, **overrides) -> "PrecomputeConfig":
        """
        Defaults, then AQI_* environment variables (.env honoured), then overrides.

        AQI_YEARS is comma-separated; invalid values are logged and ignored.
        """
        load_dotenv()
        cfg = cls()
        env_values: dict[str, object] = {}

        for f in fields(cls):
            raw = os.getenv(f"AQI_{f.name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            try:
                env_values[f.name] = _parse_field(f.name, raw, getattr(cfg, f.name))
            except ValueError:
                logger.warning("[config] Invalid AQI_%s=%r; using %r", f.name.upper(), raw, getattr(cfg, f.name))

        env_values.update({k: v for k, v in overrides.items() if v is not None})
        return replace(cfg, **env_values)


def _parse_field(name: str, raw: str, default: object) -> object:
    raw = raw.strip()
    if name == "years":
        years = tuple(int(item) for item in raw.split(",") if item.strip())
        if not years:
            raise ValueError(name)
        return years
    if isinstance(default, bool):
        return raw.lower() in {"1", "true", "yes", "on"}
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw
