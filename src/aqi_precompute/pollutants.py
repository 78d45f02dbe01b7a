# file: src/aqi_precompute/pollutants.py
"""
Pollutant definitions, unit conversion and the AQI breakpoint formula.

All six pollutants share one breakpoint table style:
(c_low, c_high, i_low, i_high), ascending by concentration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

Breakpoint = tuple[float, float, int, int]

MIN_HOURLY_COUNT = 10
MAX_AQI = 500
MOLAR_VOLUME = 24.45  # litres/mol at 25°C, 1 atm

MOLAR_MASS = {
    "o3": 48.0,
    "no2": 46.0,
    "so2": 64.066,
    "co": 28.01,
}


@dataclass(frozen=True)
class Pollutant:
    id: str
    label: str
    hourly: str  # Open-Meteo source field
    unit: str
    breakpoints: tuple[Breakpoint, ...]


POLLUTANTS: tuple[Pollutant, ...] = (
    Pollutant(
        id="pm25",
        label="PM2.5",
        hourly="pm2_5",
        unit="ug/m3",
        breakpoints=(
            (0.0, 12.0, 0, 50),
            (12.1, 35.4, 51, 100),
            (35.5, 55.4, 101, 150),
            (55.5, 150.4, 151, 200),
            (150.5, 250.4, 201, 300),
            (250.5, 500.4, 301, 500),
        ),
    ),
    Pollutant(
        id="pm10",
        label="PM10",
        hourly="pm10",
        unit="ug/m3",
        breakpoints=(
            (0, 54, 0, 50),
            (55, 154, 51, 100),
            (155, 254, 101, 150),
            (255, 354, 151, 200),
            (355, 424, 201, 300),
            (425, 604, 301, 500),
        ),
    ),
    Pollutant(
        id="o3",
        label="O3",
        hourly="ozone",
        unit="ppb",
        breakpoints=(
            (0, 54, 0, 50),
            (55, 70, 51, 100),
            (71, 85, 101, 150),
            (86, 105, 151, 200),
            (106, 200, 201, 300),
            (201, 604, 301, 500),
        ),
    ),
    Pollutant(
        id="no2",
        label="NO2",
        hourly="nitrogen_dioxide",
        unit="ppb",
        breakpoints=(
            (0, 53, 0, 50),
            (54, 100, 51, 100),
            (101, 360, 101, 150),
            (361, 649, 151, 200),
            (650, 1249, 201, 300),
            (1250, 2049, 301, 400),
            (2050, 4049, 401, 500),
        ),
    ),
    Pollutant(
        id="so2",
        label="SO2",
        hourly="sulphur_dioxide",
        unit="ppb",
        breakpoints=(
            (0, 35, 0, 50),
            (36, 75, 51, 100),
            (76, 185, 101, 150),
            (186, 304, 151, 200),
            (305, 604, 201, 300),
            (605, 804, 301, 400),
            (805, 1004, 401, 500),
        ),
    ),
    Pollutant(
        id="co",
        label="CO",
        hourly="carbon_monoxide",
        unit="ppm",
        breakpoints=(
            (0.0, 4.4, 0, 50),
            (4.5, 9.4, 51, 100),
            (9.5, 12.4, 101, 150),
            (12.5, 15.4, 151, 200),
            (15.5, 30.4, 201, 300),
            (30.5, 40.4, 301, 400),
            (40.5, 50.4, 401, 500),
        ),
    ),
)

POLLUTANTS_BY_ID: dict[str, Pollutant] = {p.id: p for p in POLLUTANTS}


def _to_ppb(ugm3: float, molar_mass: float) -> float:
    return ugm3 * MOLAR_VOLUME / molar_mass


def _to_ppm(ugm3: float, molar_mass: float) -> float:
    return ugm3 * MOLAR_VOLUME / (molar_mass * 1000)


_CONVERTERS: dict[str, Callable[[float], float]] = {
    "o3": lambda v: _to_ppb(v, MOLAR_MASS["o3"]),
    "no2": lambda v: _to_ppb(v, MOLAR_MASS["no2"]),
    "so2": lambda v: _to_ppb(v, MOLAR_MASS["so2"]),
    "co": lambda v: _to_ppm(v, MOLAR_MASS["co"]),
}


def is_finite(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero (Python's round() is half-to-even)."""
    # Decimal(float) is the exact binary value, so 1.45 stays 1.4 like toFixed
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value, digits: int = 1) -> Optional[float]:
    if not is_finite(value):
        return None
    return round_half_up(float(value), digits) + 0.0


def normalize_concentration(pollutant_id: str, value) -> Optional[float]:
    """Convert a raw µg/m³ concentration to the unit its breakpoint table expects."""
    if not is_finite(value):
        return None
    convert = _CONVERTERS.get(pollutant_id)
    if convert is None:
        return float(value)
    return convert(float(value))


def compute_aqi(concentration, breakpoints) -> Optional[int]:
    """
    Piecewise-linear AQI for one pollutant.

    Above the table the last segment's slope is extended and capped at 500.
    Below the table, inside a gap between segments, or non-finite: None.
    """
    if not is_finite(concentration) or not breakpoints:
        return None

    for c_low, c_high, i_low, i_high in breakpoints:
        if c_low <= concentration <= c_high:
            aqi = (i_high - i_low) / (c_high - c_low) * (concentration - c_low) + i_low
            return int(round_half_up(aqi))

    c_low, c_high, i_low, i_high = breakpoints[-1]
    if concentration > c_high:
        aqi = (i_high - i_low) / (c_high - c_low) * (concentration - c_low) + i_low
        return int(round_half_up(min(aqi, MAX_AQI)))

    return None


def pollutant_aqi(pollutant_id: str, raw_value) -> Optional[int]:
    pollutant = POLLUTANTS_BY_ID[pollutant_id]
    return compute_aqi(normalize_concentration(pollutant_id, raw_value), pollutant.breakpoints)


def get_pollutant_meta() -> list[dict]:
    return [{"id": p.id, "label": p.label, "unit": p.unit} for p in POLLUTANTS]
