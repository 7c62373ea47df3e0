#!/usr/bin/env python
"""
CLI tool for trying the geocoding providers and the picker from a terminal.

Usage:
    python cli.py --help
    python cli.py search "Andheri East"
    python cli.py reverse 19.076 72.8777
    python cli.py pincode 400001
    python cli.py pick "Mumbai"
"""

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from core.config import settings
from services.geocoding import (
    GeocodingError,
    InvalidCoordinates,
    Location,
    NominatimClient,
    PincodeGeocodingService,
    SearchResult,
)
from services.location_picker import LocationPicker, location_fields, sanitize_pincode

app = typer.Typer(help="Location picker CLI tool")
console = Console()


def make_geocoder() -> NominatimClient:
    return NominatimClient()


def make_pincode_service() -> PincodeGeocodingService:
    return PincodeGeocodingService(
        google_api_key=settings.GOOGLE_MAPS_API_KEY,
        timeout=int(settings.GEOCODING_TIMEOUT),
        country=settings.PINCODE_COUNTRY,
    )


def print_location(location: Location, title: str) -> None:
    console.print(Panel(JSON(location.model_dump_json()), title=title, border_style="green"))


def print_results(results: List[SearchResult]) -> None:
    table = Table(title="Search results")
    table.add_column("#", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Address")
    table.add_column("Lat / Lon", style="cyan")
    for index, result in enumerate(results):
        table.add_row(str(index), result.primary_name, result.display_name, f"{result.lat}, {result.lon}")
    console.print(table)


async def _search(query: str) -> List[SearchResult]:
    geocoder = make_geocoder()
    try:
        return await geocoder.search(query)
    finally:
        await geocoder.close()


async def _reverse(latitude: float, longitude: float) -> Location:
    geocoder = make_geocoder()
    try:
        address = await geocoder.reverse(latitude, longitude)
    finally:
        await geocoder.close()
    return Location(**location_fields(address)).with_coordinates(latitude, longitude)


@app.command()
def search(query: str) -> None:
    """Forward geocode free text"""
    if len(query.strip()) < settings.SEARCH_MIN_QUERY_LENGTH:
        console.print(f"[red]Query must be at least {settings.SEARCH_MIN_QUERY_LENGTH} characters[/red]")
        raise typer.Exit(1)

    try:
        results = asyncio.run(_search(query.strip()))
    except GeocodingError as e:
        console.print(f"[red]Search failed: {e}[/red]")
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No results[/yellow]")
        return
    print_results(results)


@app.command()
def reverse(latitude: float, longitude: float) -> None:
    """Reverse geocode a point into pincode/district/place/state"""
    try:
        location = asyncio.run(_reverse(latitude, longitude))
    except GeocodingError as e:
        console.print(f"[red]Reverse geocoding failed: {e}[/red]")
        raise typer.Exit(1)
    print_location(location, "Location")


@app.command()
def pincode(value: str) -> None:
    """Look up places for a (partial) pincode via Google"""
    digits = sanitize_pincode(value)
    if len(digits) < settings.SEARCH_MIN_QUERY_LENGTH:
        console.print(f"[red]Pincode must contain at least {settings.SEARCH_MIN_QUERY_LENGTH} digits[/red]")
        raise typer.Exit(1)

    try:
        service = make_pincode_service()
        suggestions = asyncio.run(service.lookup(digits))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except GeocodingError as e:
        console.print(f"[red]Pincode lookup failed: {e}[/red]")
        raise typer.Exit(1)

    if not suggestions:
        console.print("[yellow]No places found for that pincode[/yellow]")
        return

    table = Table(title=f"Pincode {digits}")
    table.add_column("Pincode", style="cyan")
    table.add_column("Place", style="bold")
    table.add_column("District")
    table.add_column("State")
    for suggestion in suggestions:
        table.add_row(suggestion.pincode or "-", suggestion.place, suggestion.district, suggestion.state)
    console.print(table)


async def _pick(query: str) -> Optional[Location]:
    geocoder = make_geocoder()
    confirmed: List[Location] = []
    picker = LocationPicker(geocoder, on_confirm=confirmed.append, debounce_interval=0)
    try:
        picker.set_query(query)
        while picker.search.timer_armed:
            await asyncio.sleep(0.01)
        await picker.wait_idle()

        if not picker.search.results:
            console.print("[yellow]No results[/yellow]")
            return None

        print_results(picker.search.results)
        index = typer.prompt("Pick a result", type=int, default=0)
        picker.select_result(index)
        picker.confirm()
        return confirmed[0] if confirmed else None
    finally:
        await picker.aclose()
        await geocoder.close()


@app.command()
def pick(query: str) -> None:
    """Search, choose a result interactively and print the confirmed Location"""
    try:
        location = asyncio.run(_pick(query))
    except InvalidCoordinates as e:
        console.print(f"[red]Result rejected: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if location is None:
        raise typer.Exit(1)
    print_location(location, "Confirmed location")


if __name__ == "__main__":
    app()
