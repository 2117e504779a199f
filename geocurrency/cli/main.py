from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from geocurrency.cli import display
from geocurrency.currency import table as currency_table
from geocurrency.service import GeoCurrencyService
from geocurrency.storage import MemoryStore
from geocurrency.utils.errors import ConfigurationError, ValidationError


app = typer.Typer(add_completion=False, help="Location and currency resolution CLI")
console = Console()

T = TypeVar("T")


def build_service(config_path: str) -> GeoCurrencyService:
    return GeoCurrencyService.from_config(config_path)


def _run(ctx: typer.Context, work: Callable[[GeoCurrencyService], Awaitable[T]]) -> T:
    config_path = (ctx.obj or {}).get("config", "config.yaml")

    async def runner() -> T:
        service = build_service(config_path)
        try:
            return await work(service)
        finally:
            await service.aclose()

    try:
        return asyncio.run(runner())
    except ConfigurationError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    except ValidationError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config: str = typer.Option("config.yaml", "--config", "-c", help="Path to YAML config"),
):
    ctx.obj = {"config": config}


@app.command("detect")
def detect(
    ctx: typer.Context,
    ip: Optional[str] = typer.Option(None, "--ip", help="Client IP to look up (default: this machine)"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Skip the cached result"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Resolve country, currency and payment gateway."""
    loc = _run(ctx, lambda s: s.resolve_location(ip=ip, use_cache=not no_cache))
    if as_json:
        typer.echo(json.dumps(loc.to_dict(), ensure_ascii=False, indent=2))
        return
    console.print(display.location_table(loc))


@app.command("summary")
def summary(
    ctx: typer.Context,
    ip: Optional[str] = typer.Option(None, "--ip", help="Client IP to look up"),
):
    """Short, display-ready location summary."""
    data = _run(ctx, lambda s: s.location_summary(ip=ip))
    console.print(display.summary_table(data))


@app.command("rate")
def rate(
    ctx: typer.Context,
    from_currency: str = typer.Argument(..., help="Base currency, e.g. USD"),
    to_currency: str = typer.Argument(..., help="Quote currency, e.g. NGN"),
):
    """Current exchange rate between two currencies."""
    quote = _run(ctx, lambda s: s.exchange.get_quote(from_currency, to_currency))
    console.print(display.quote_line(quote))


@app.command("convert")
def convert(
    ctx: typer.Context,
    amount: float = typer.Argument(..., help="Amount to convert"),
    from_currency: str = typer.Argument(..., help="Source currency"),
    to_currency: str = typer.Argument(..., help="Target currency"),
):
    """Convert an amount between currencies."""
    converted = _run(ctx, lambda s: s.convert_currency(amount, from_currency, to_currency))
    console.print(display.conversion_line(amount, from_currency, converted, to_currency))


@app.command("is-african")
def is_african(country_code: str = typer.Argument(..., help="Two-letter country code")):
    """Whether a country is African, and which gateway it gets."""
    code = country_code.strip().lower()
    african = currency_table.is_african(code)
    typer.echo(
        f"{currency_table.flag_for(code)} {currency_table.country_name(code)}: "
        f"{'African' if african else 'not African'} -> {currency_table.gateway_for(code)}"
    )


@app.command("clear-cache")
def clear_cache(
    ctx: typer.Context,
    ip: Optional[str] = typer.Option(None, "--ip", help="Only drop the entry for this IP"),
):
    """Invalidate cached location results.

    Only persistent caches (`backend: sqlite`) outlive a single command, so
    with the in-memory backend there is nothing to clear.
    """

    async def work(service: GeoCurrencyService) -> bool:
        service.invalidate_location_cache(ip)
        return isinstance(service.resolver.cache.store, MemoryStore)

    in_memory = _run(ctx, work)
    if in_memory:
        typer.secho(
            "Cache backend is memory: nothing persists between commands, so there was nothing to clear. "
            "Set location.cache.backend to sqlite to keep results across runs.",
            fg=typer.colors.YELLOW,
        )
        return
    typer.secho("Location cache cleared", fg=typer.colors.GREEN)


@app.command("health")
def health(ctx: typer.Context):
    """Probe every configured provider once."""
    results = _run(ctx, lambda s: s.check_providers())
    console.print(display.health_table(results))
    if not any(ok for providers in results.values() for ok in providers.values()):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
