from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Mapping, Optional, Tuple

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from ratedesk.api.client import CurrencyBeaconClient
from ratedesk.config import Config
from ratedesk.converter import ConversionRequester
from ratedesk.filters import SORT_CURRENCY, SORT_KEYS, SORT_RATE, RateTableView, SortState, ASC, DESC, display_name
from ratedesk.models import RateSnapshot, SyncSnapshot
from ratedesk.sync.controller import RateSyncController
from ratedesk.utils.errors import ConfigurationError, DataProviderError, ValidationFailure
from ratedesk.utils.validation import normalize_currency_code, parse_amount


app = typer.Typer(add_completion=False, help="RateDesk: live currency rates and conversion")
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to the YAML config file"),
):
    ctx.obj = {"config_path": str(config)}


def _load_config(ctx: typer.Context) -> Config:
    try:
        return Config(ctx.obj["config_path"])
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


def _rates_table(title: str, view: RateTableView, rates, catalog, limit: Optional[int]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Code", style="bold cyan", width=6)
    table.add_column("Currency")
    table.add_column("Rate", justify="right")

    rows = view.rows(rates, catalog)
    for code, rate in rows[:limit] if limit else rows:
        table.add_row(code, display_name(code, catalog), f"{rate:.4f}")
    return table


def _view(search: str, sort: str, desc: bool) -> RateTableView:
    if sort not in SORT_KEYS:
        typer.secho(f"Unknown sort key: {sort}. Use one of {', '.join(SORT_KEYS)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    return RateTableView(query=search, sort=SortState(sort, DESC if desc else ASC))


def _base_code(base: Optional[str], cfg: Config) -> str:
    try:
        return normalize_currency_code(cfg.default_base_currency if base is None else base)
    except ValidationFailure as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


@app.command("currencies")
def currencies(ctx: typer.Context):
    """List the currency catalog."""
    cfg = _load_config(ctx)

    async def _run() -> RateSyncController:
        controller = RateSyncController(CurrencyBeaconClient.from_config(cfg), cfg.default_base_currency)
        await controller.load_catalog()
        return controller

    controller = asyncio.run(_run())
    if controller.catalog_status.has_error:
        typer.secho(f"⚠️  {controller.catalog_status.error} (showing built-in currencies)", fg=typer.colors.YELLOW)

    table = Table(title=f"Currencies ({len(controller.catalog)})", box=box.SIMPLE)
    table.add_column("Code", style="bold cyan", width=6)
    table.add_column("Name")
    for code in sorted(controller.catalog):
        table.add_row(code, controller.catalog[code])
    console.print(table)


@app.command("rates")
def rates(
    ctx: typer.Context,
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Base currency (defaults to sync.default_base)"),
    search: str = typer.Option("", "--search", "-s", help="Filter by code or currency name"),
    sort: str = typer.Option(SORT_CURRENCY, "--sort", help="Sort by 'currency' or 'rate'"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most N rows"),
):
    """Show latest exchange rates for a base currency."""
    cfg = _load_config(ctx)
    view = _view(search, sort, desc)
    base_code = _base_code(base, cfg)

    async def _run() -> SyncSnapshot:
        controller = RateSyncController(CurrencyBeaconClient.from_config(cfg), base_code)
        await controller.start()
        return controller.snapshot()

    snap = asyncio.run(_run())

    if snap.catalog_status.has_error:
        typer.secho(f"⚠️  {snap.catalog_status.error}", fg=typer.colors.YELLOW)
    if snap.rates_status.has_error:
        typer.secho(snap.rates_status.error, fg=typer.colors.RED, err=True)
        if not snap.rates:
            raise typer.Exit(code=1)

    console.print(_rates_table(f"Exchange rates (base {snap.base_currency})", view, snap.rates, snap.catalog, limit))
    if snap.last_updated:
        console.print(f"Last updated: {snap.last_updated:%Y-%m-%d %H:%M:%S %Z}")


@app.command("convert")
def convert(
    ctx: typer.Context,
    amount: str = typer.Argument(..., help="Amount to convert, e.g. 1000"),
    from_currency: str = typer.Argument(..., help="Source currency code"),
    to_currency: str = typer.Argument(..., help="Target currency code"),
):
    """Convert an amount between two currencies."""
    try:
        parse_amount(amount)
        from_code = normalize_currency_code(from_currency)
        to_code = normalize_currency_code(to_currency)
    except ValidationFailure as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    cfg = _load_config(ctx)

    async def _run() -> ConversionRequester:
        requester = ConversionRequester.from_config(
            CurrencyBeaconClient.from_config(cfg),
            None,
            cfg,
            amount_text=amount,
            from_currency=from_code,
            to_currency=to_code,
        )
        task = requester.convert_now()
        if task is not None:
            await task
        return requester

    requester = asyncio.run(_run())
    if requester.error or requester.result is None:
        typer.secho(f"Conversion failed: {requester.error or 'no result'}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    result = requester.result
    console.print(f"[bold]{requester.display_value} {result.to_currency}[/bold]")
    console.print(f"{result.amount:,.2f} {result.from_currency} =", style="dim")


@app.command("historical")
def historical(
    ctx: typer.Context,
    date: str = typer.Argument(..., help="Date as YYYY-MM-DD"),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Base currency"),
    search: str = typer.Option("", "--search", "-s", help="Filter by code or currency name"),
    sort: str = typer.Option(SORT_RATE, "--sort", help="Sort by 'currency' or 'rate'"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most N rows"),
):
    """Show exchange rates for a past date."""
    cfg = _load_config(ctx)
    view = _view(search, sort, desc)
    base_code = _base_code(base, cfg)

    async def _run() -> Tuple[RateSnapshot, Mapping[str, str]]:
        client = CurrencyBeaconClient.from_config(cfg)
        controller = RateSyncController(client, base_code)
        await controller.load_catalog()
        return await client.get_historical_rates(date, base_code), controller.catalog

    try:
        snapshot, catalog = asyncio.run(_run())
    except DataProviderError as e:
        typer.secho(f"Historical rates loading failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    console.print(_rates_table(f"Exchange rates on {date} (base {snapshot.base_currency})", view, snapshot.rates, catalog, limit))


if __name__ == "__main__":
    app()
