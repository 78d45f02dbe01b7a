# file: src/aqi_precompute/cli.py
from __future__ import annotations

import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import PrecomputeConfig
from .errors import AggregateBuildFailure
from .locations import load_locations
from .pipeline import create_fetcher, run_precompute
from .pollutants import get_pollutant_meta

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@app.command()
def run(
    locations: Optional[str] = typer.Option(None, help="JSON list of {id?, name, latitude, longitude}"),
    year: Optional[List[int]] = typer.Option(None, help="Year to build (repeatable)"),
    output_dir: Optional[str] = None,
    concurrency: Optional[int] = None,
    cache_db: Optional[str] = None,
):
    """Precompute daily + map artifacts for every location and year."""
    cfg = PrecomputeConfig.from_env(
        locations_path=locations,
        years=tuple(year) if year else None,
        output_dir=output_dir,
        concurrency=concurrency,
        cache_db_path=cache_db,
    )
    targets = load_locations(cfg.locations_path)

    try:
        results = run_precompute(cfg, targets)
    except AggregateBuildFailure as exc:
        console.print(f"[red]{exc}[/red]")
        for failure in exc.failures:
            console.print(f"  - {failure['name']}: {failure['error'][:200]}")
        raise typer.Exit(code=1)

    table = Table(title="AQI Precompute Results")
    table.add_column("Year", style="cyan")
    table.add_column("Locations")
    table.add_column("Fetched")
    table.add_column("Reused")
    table.add_column("Map artifact", style="green")
    for r in results:
        table.add_row(str(r["year"]), str(r["locations"]), str(r["fetched"]), str(r["reused"]), r["map_path"])
    console.print(table)


@app.command()
def series(
    latitude: float,
    longitude: float,
    year: int,
    location_id: Optional[str] = None,
    skip_precomputed: bool = False,
    cache_db: Optional[str] = None,
    precomputed_base: Optional[str] = None,
):
    """Print monthly AQI averages for one point and year."""
    cfg = PrecomputeConfig.from_env(cache_db_path=cache_db, precomputed_base=precomputed_base)
    fetcher = create_fetcher(cfg)
    cache_key = f"{location_id or f'{latitude},{longitude}'}-{year}"
    result = fetcher.fetch_annual_series(
        latitude,
        longitude,
        year,
        cache_key,
        location_id=location_id,
        skip_precomputed=skip_precomputed,
    )

    present = sum(1 for v in result.days if v is not None)
    table = Table(title=f"AQI {year} ({present}/{len(result.days)} days)")
    table.add_column("Month", style="cyan")
    table.add_column("Mean AQI", style="green")
    for month, value in zip(MONTHS, result.monthly):
        table.add_row(month, "-" if value is None else f"{value:.1f}")
    console.print(table)


@app.command()
def pollutants():
    """List the pollutants the index is built from."""
    table = Table(title="Pollutants")
    table.add_column("Id", style="cyan")
    table.add_column("Label")
    table.add_column("Unit")
    for meta in get_pollutant_meta():
        table.add_row(meta["id"], meta["label"], meta["unit"])
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
