"""
AQI precompute: hourly pollutant readings -> daily/annual AQI artifacts.

Modules:
- pollutants: breakpoint tables, unit conversion, AQI formula
- aggregate: hourly payload -> per-day records
- series: per-day records -> dense annual series + monthly means
- cache / precomputed: TTL cache namespaces and build-artifact lookup
- open_meteo / fetch: upstream client and fetch orchestration
- pipeline: concurrent per-year precompute with retry-on-429
- cli: Typer entry point
"""
