"""
AQI precompute - daily and annual air-quality index artifacts

Modules:
- aqi_precompute: AQI engine, Open-Meteo client, caches and the precompute pipeline
"""
