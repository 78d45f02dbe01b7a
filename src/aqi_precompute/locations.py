# file: src/aqi_precompute/locations.py
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterable, NamedTuple, Union


class LocationInfo(NamedTuple):
    """A precompute target: stable id plus the point the upstream is queried at."""
    id: str
    name: str
    latitude: float
    longitude: float


def split_camel_case(name: str) -> str:
    """'BangKhenDistrict' -> 'Bang Khen District'."""
    name = re.sub(r"([a-z])([A-Z])", r"\1 \2", name)
    return re.sub(r"([A-Z])([A-Z][a-z])", r"\1 \2", name)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def location_from_dict(raw: dict[str, Any]) -> LocationInfo:
    raw_name = str(raw.get("name") or raw.get("id") or "").strip()
    if not raw_name:
        raise ValueError(f"Location entry has neither name nor id: {raw!r}")

    location_id = str(raw.get("id") or slugify(raw_name))
    try:
        latitude = float(raw["latitude"])
        longitude = float(raw["longitude"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Location '{location_id}' needs numeric latitude/longitude") from exc

    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValueError(f"Location '{location_id}' coordinates out of range: ({latitude}, {longitude})")

    return LocationInfo(
        id=location_id,
        name=split_camel_case(raw_name),
        latitude=latitude,
        longitude=longitude,
    )


def build_locations(entries: Iterable[dict[str, Any]]) -> list[LocationInfo]:
    """Validate entries and fail loudly on duplicate ids (they would share artifacts)."""
    locations: list[LocationInfo] = []
    seen: set[str] = set()
    for entry in entries:
        location = location_from_dict(entry)
        if location.id in seen:
            raise ValueError(f"Duplicate location id: {location.id}")
        seen.add(location.id)
        locations.append(location)
    return locations


def load_locations(path: Union[str, Path]) -> list[LocationInfo]:
    """
    Read a JSON list of {id?, name, latitude, longitude}.

    A `{"locations": [...]}` wrapper is accepted too.
    """
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        payload = payload.get("locations", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a JSON list of locations")
    return build_locations(payload)
