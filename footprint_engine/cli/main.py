# -*- coding: utf-8 -*-
"""
Footprint Engine CLI
====================

Command-line access to the emission calculation engine.

Usage:
    fpe calculate transport-car 12 --units miles --fuel-type diesel
    fpe batch activities.json
    fpe factors --category energy
    fpe version
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from footprint_engine.calculation.core_calculator import EmissionEngine
from footprint_engine.calculation.fallback_calculator import calculate_with_fallback
from footprint_engine.config import get_config
from footprint_engine.data.loader import default_table_path, load_factor_store
from footprint_engine.exceptions import FootprintEngineException

app = typer.Typer(
    name="fpe",
    help="Footprint Engine: activity emission calculator",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


def _factor_table_option():
    return typer.Option(
        None, "--factor-table", help="YAML/JSON factor table (defaults to the configured table)"
    )


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Footprint Engine - activity emission calculator
    """
    level = "DEBUG" if verbose else get_config().log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _engine(factor_table: Optional[Path]) -> EmissionEngine:
    store = load_factor_store(factor_table) if factor_table else None
    return EmissionEngine(store=store)


@app.command()
def calculate(
    activity_type: str = typer.Argument(..., help="Activity type, e.g. transport-car"),
    quantity: float = typer.Argument(..., help="Reported quantity"),
    units: Optional[str] = typer.Option(None, "--units", "-u", help="Unit of the quantity"),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="Region hint"),
    passengers: Optional[float] = typer.Option(None, "--passengers", "-p", help="Passengers sharing the trip"),
    fuel_type: Optional[str] = typer.Option(None, "--fuel-type", help="petrol, diesel, cng, electric, hybrid"),
    flight_class: Optional[str] = typer.Option(None, "--flight-class", help="economy, business, first"),
    fallback: bool = typer.Option(False, "--fallback", help="Use the static estimate if the engine fails"),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    factor_table: Optional[Path] = _factor_table_option(),
):
    """Calculate emissions for a single activity"""
    activity = {
        "activityType": activity_type,
        "quantity": quantity,
        "units": units,
        "region": region,
        "passengers": passengers,
        "fuelType": fuel_type,
        "flightClass": flight_class,
    }
    activity = {k: v for k, v in activity.items() if v is not None}
    engine = _engine(factor_table)

    if fallback:
        outcome = calculate_with_fallback(activity, engine=engine)
        if json_output:
            typer.echo(json.dumps(outcome, indent=2))
            return
        if outcome["method"] == "fallback":
            console.print(f"[yellow][WARN][/yellow] Engine failed: {outcome['error']}")
            console.print(f"Fallback estimate: [bold]{outcome['emission']:.3f}[/bold] kgCO2e")
        else:
            _print_result(outcome["result"])
        return

    try:
        result = engine.calculate(activity)
    except FootprintEngineException as e:
        console.print(f"[red][FAIL][/red] {e.message}")
        raise typer.Exit(1)

    if json_output:
        typer.echo(result.to_json())
        return
    _print_result(result.to_dict())


def _print_result(result: dict) -> None:
    factor = result["factor"]
    console.print(f"[bold green]{result['calculated_kgCO2e']:.3f} kgCO2e[/bold green] for {result['activityType']}")
    console.print(
        f"  {result['standardized_quantity']:g} {result['standardized_units']} x {factor['value']} "
        f"{factor['units']} ({factor['source'] or 'unknown source'}, {factor['region'] or 'no region'})"
    )
    for note in result["notes"]:
        console.print(f"  [blue][INFO][/blue] {note}")


@app.command()
def batch(
    file: Path = typer.Argument(..., help="JSON file with an array of activities"),
    json_output: bool = typer.Option(False, "--json", help="Print the batch result as JSON"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Thread pool size"),
    factor_table: Optional[Path] = _factor_table_option(),
):
    """Calculate emissions for a batch of activities"""
    try:
        with open(file, "r", encoding="utf-8") as f:
            activities = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red][FAIL][/red] Cannot read {file}: {e}")
        raise typer.Exit(1)

    if not isinstance(activities, list):
        console.print("[red][FAIL][/red] Batch file must contain a JSON array")
        raise typer.Exit(1)

    result = _engine(factor_table).calculate_batch(activities, max_workers=workers)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Activity", style="cyan")
    table.add_column("kgCO2e", justify="right", style="green")
    table.add_column("Status")
    for index, entry in enumerate(result.results, start=1):
        if entry["success"]:
            table.add_row(str(index), entry["activityType"], f"{entry['calculated_kgCO2e']:.3f}", "[green]OK[/green]")
        else:
            table.add_row(str(index), str(entry["activityType"]), "-", f"[red]{entry['error']}[/red]")
    console.print(table)

    for category, subtotal in sorted(result.by_category.items()):
        console.print(f"  {category}: {subtotal:.3f} kgCO2e")
    console.print(
        f"Total: {result.total_kgCO2e:.3f} kgCO2e "
        f"({result.successful_count} ok, {result.failed_count} failed)"
    )


@app.command()
def factors(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only this category"),
    factor_table: Optional[Path] = _factor_table_option(),
):
    """List the loaded emission factor table"""
    store = load_factor_store(factor_table) if factor_table else load_factor_store()
    rows = store.by_category.get(category.lower(), ()) if category else store.factors

    if not rows:
        console.print(f"[yellow][WARN][/yellow] No factors found in {factor_table or default_table_path()}")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Subtype")
    table.add_column("Value", justify="right", style="green")
    table.add_column("Units")
    table.add_column("Region")
    for factor in rows:
        table.add_row(factor.category, factor.subtype, f"{factor.value:g}", factor.units, factor.region or "-")
    console.print(table)
    console.print(f"\nTotal: {len(rows)} factors")


@app.command()
def version():
    """Show Footprint Engine version"""
    from .. import __version__

    console.print(f"[bold green]Footprint Engine v{__version__}[/bold green]")


def main():
    app()


if __name__ == "__main__":
    main()
