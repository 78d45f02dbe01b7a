"""Sparse daily records -> dense annual series."""

from src.aqi_precompute.series import (
    AnnualSeries,
    build_daily_aqi_series,
    day_offset,
    days_in_year,
    month_of_offset,
)


class TestCalendar:
    def test_days_in_year(self):
        assert days_in_year(2024) == 366
        assert days_in_year(2023) == 365
        assert days_in_year(1900) == 365
        assert days_in_year(2000) == 366

    def test_day_offset(self):
        assert day_offset("2024-01-01", 2024) == 0
        assert day_offset("2024-03-01", 2024) == 60
        assert day_offset("2023-03-01", 2023) == 59
        assert day_offset("2024-12-31", 2024) == 365

    def test_day_offset_outside_year_or_unparsable(self):
        assert day_offset("2023-12-31", 2024) is None
        assert day_offset("2025-01-01", 2024) is None
        assert day_offset("not-a-date", 2024) is None

    def test_month_of_offset(self):
        assert month_of_offset(0, 2024) == 0
        assert month_of_offset(59, 2024) == 1  # Feb 29
        assert month_of_offset(60, 2024) == 2
        assert month_of_offset(365, 2024) == 11


class TestBuildDailyAqiSeries:
    def test_leap_year_length_and_placement(self):
        series = build_daily_aqi_series({"2024-03-01": {"aqi": 77}}, 2024)

        assert len(series.days) == 366
        assert series.days[60] == 77
        assert sum(1 for v in series.days if v is not None) == 1

    def test_out_of_range_and_bad_records_discarded(self):
        daily = {
            "2023-12-31": {"aqi": 10},
            "2024-01-01": {"aqi": None},
            "2024-01-02": None,
            "garbage": {"aqi": 5},
            "2024-01-03": {"aqi": 42},
        }
        series = build_daily_aqi_series(daily, 2024)

        assert series.days[0] is None
        assert series.days[1] is None
        assert series.days[2] == 42
        assert len(series.days) == 366

    def test_monthly_averages(self):
        daily = {
            "2023-01-05": {"aqi": 10},
            "2023-01-20": {"aqi": 21},
            "2023-03-01": {"aqi": 100},
            "2023-12-31": {"aqi": 3},
        }
        series = build_daily_aqi_series(daily, 2023)

        assert series.monthly[0] == 15.5
        assert series.monthly[1] is None
        assert series.monthly[2] == 100.0
        assert series.monthly[11] == 3.0
        assert len(series.monthly) == 12

    def test_empty_mapping(self):
        series = build_daily_aqi_series({}, 2025)
        assert series.days == [None] * 365
        assert series.monthly == [None] * 12

    def test_pure_function(self):
        daily = {"2024-02-29": {"aqi": 50}, "2024-07-04": {"aqi": 120}}
        first = build_daily_aqi_series(daily, 2024)
        second = build_daily_aqi_series(daily, 2024)

        assert first == second
        assert daily == {"2024-02-29": {"aqi": 50}, "2024-07-04": {"aqi": 120}}

    def test_dict_round_trip(self):
        series = build_daily_aqi_series({"2024-01-01": {"aqi": 1}}, 2024)
        assert AnnualSeries.from_dict(series.to_dict()) == series

    def test_nan_day_is_treated_as_missing(self):
        daily = {"2024-01-01": {"aqi": float("nan")}, "2024-01-02": {"aqi": 40}}
        series = build_daily_aqi_series(daily, 2024)

        assert series.days[0] is None
        assert series.days[1] == 40
        assert series.monthly[0] == 40.0
