"""
AQI precompute test suite

Tests organized by module under tests/aqi_precompute/:
- test_pollutants.py: breakpoints, unit conversion, rounding
- test_aggregate.py / test_series.py: daily records and annual series
- test_cache.py: TTL cache, sqlite store, precomputed artifacts
- test_open_meteo.py / test_fetch.py: upstream client and fetch order
- test_pipeline.py: retry, worker pool, artifact writes
- test_locations_config.py: locations file, env config, CLI
"""
