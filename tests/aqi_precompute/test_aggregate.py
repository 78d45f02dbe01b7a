"""Hourly payload -> daily records."""

import logging

import pytest

from aqi_fakes import make_hourly, merge_hourly
from src.aqi_precompute.aggregate import build_daily_averages, hourly_frame


class TestMinimumSamples:
    """A pollutant needs MIN_HOURLY_COUNT valid hours to be reported."""

    def test_nine_samples_is_insufficient(self):
        values = [12.0] * 9 + [None] * 15
        daily = build_daily_averages(make_hourly(pm2_5=values))

        day = daily["2024-01-01"]
        assert day["pollutants"]["pm25"] is None
        assert day["aqi"] is None

    def test_ten_samples_is_enough(self):
        values = [12.0] * 10 + [None] * 14
        daily = build_daily_averages(make_hourly(pm2_5=values))

        pm25 = daily["2024-01-01"]["pollutants"]["pm25"]
        assert pm25 == {"avg": 12.0, "min": 12.0, "max": 12.0, "aqi": 50}

    def test_nan_and_inf_do_not_count(self):
        values = [12.0] * 9 + [float("nan"), float("inf")] + [None] * 13
        daily = build_daily_averages(make_hourly(pm2_5=values))
        assert daily["2024-01-01"]["pollutants"]["pm25"] is None


class TestDailyRecord:
    def test_stats_are_normalized_and_rounded(self):
        values = [90.0] * 12 + [110.0] * 12
        daily = build_daily_averages(make_hourly(ozone=values))

        o3 = daily["2024-01-01"]["pollutants"]["o3"]
        # 100 ug/m3 mean -> 50.9375 ppb ; min 45.84375 ; max 56.03125
        assert o3["avg"] == 50.9
        assert o3["min"] == 45.8
        assert o3["max"] == 56.0
        assert o3["aqi"] == 47

    def test_composite_is_max_of_present_pollutants(self):
        daily = build_daily_averages(make_hourly(pm2_5=30.0, pm10=54.0))

        day = daily["2024-01-01"]
        assert day["pollutants"]["pm25"]["aqi"] == 89
        assert day["pollutants"]["pm10"]["aqi"] == 50
        assert day["aqi"] == 89

    def test_all_pollutants_absent(self):
        daily = build_daily_averages(make_hourly())

        day = daily["2024-01-01"]
        assert day["aqi"] is None
        assert all(v is None for v in day["pollutants"].values())
        assert day["hourly_aqi_min"] is None
        assert day["hourly_aqi_max"] is None

    def test_hourly_envelope(self):
        values = [0.0] * 12 + [12.0] * 12
        daily = build_daily_averages(make_hourly(pm2_5=values))

        day = daily["2024-01-01"]
        assert day["hourly_aqi_min"] == 0
        assert day["hourly_aqi_max"] == 50
        assert day["pollutants"]["pm25"]["aqi"] == 25

    def test_envelope_reported_even_when_day_is_insufficient(self):
        values = [12.0] * 5 + [None] * 19
        day = build_daily_averages(make_hourly(pm2_5=values))["2024-01-01"]
        assert day["aqi"] is None
        assert day["hourly_aqi_max"] == 50


class TestBucketing:
    def test_days_keyed_by_date_prefix_in_order(self):
        hourly = merge_hourly(
            make_hourly("2024-01-01", pm2_5=12.0),
            make_hourly("2024-01-02", pm2_5=30.0),
        )
        daily = build_daily_averages(hourly)

        assert list(daily) == ["2024-01-01", "2024-01-02"]
        assert daily["2024-01-01"]["aqi"] == 50
        assert daily["2024-01-02"]["aqi"] == 89

    def test_empty_payload(self):
        assert build_daily_averages(None) == {}
        assert build_daily_averages({"time": []}) == {}

    def test_missing_field_logged_and_treated_as_missing(self, caplog):
        hourly = make_hourly(pm2_5=12.0)
        del hourly["carbon_monoxide"]

        with caplog.at_level(logging.WARNING):
            daily = build_daily_averages(hourly)

        assert "missing variable: carbon_monoxide" in caplog.text
        assert daily["2024-01-01"]["pollutants"]["co"] is None
        assert daily["2024-01-01"]["aqi"] == 50

    def test_short_arrays_are_padded(self):
        hourly = make_hourly(pm2_5=12.0)
        hourly["pm2_5"] = hourly["pm2_5"][:5]

        frame = hourly_frame(hourly)
        assert len(frame) == 24
        assert frame["pm25"].notna().sum() == 5

    def test_non_numeric_values_coerced(self):
        values = ["12.0"] * 12 + ["n/a"] * 12
        frame = hourly_frame(make_hourly(pm2_5=values))
        assert frame["pm25"].notna().sum() == 12
        assert frame["pm25"].iloc[0] == pytest.approx(12.0)
