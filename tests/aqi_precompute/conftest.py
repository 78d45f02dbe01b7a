from __future__ import annotations

from datetime import date

import pytest

from aqi_fakes import FakeClient
from src.aqi_precompute.fetch import AQIFetcher


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def fetcher_for():
    """Factory: AQIFetcher around a given client, pinned to a fixed 'today'."""
    def _build(client, **kwargs):
        kwargs.setdefault("today", lambda: date(2030, 6, 1))
        return AQIFetcher(client, **kwargs)
    return _build
