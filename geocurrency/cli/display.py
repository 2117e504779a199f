"""Rich renderables for CLI output."""
from __future__ import annotations

from typing import Dict, Mapping

from rich import box
from rich.table import Table

from geocurrency.currency import table as currency_table
from geocurrency.currency.exchange import RateQuote
from geocurrency.location.models import LocationResult


def location_table(loc: LocationResult) -> Table:
    table = Table(title=f"{loc.flag} {loc.display_name}", box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="cyan bold", width=22)
    table.add_column("Value")

    table.add_row("Country", f"{loc.country} ({loc.country_code.upper()})")
    table.add_row("City", loc.city)
    table.add_row("Region", loc.region)
    table.add_row("Timezone", loc.timezone)
    table.add_row("IP", loc.ip)
    table.add_row("Currency", f"{loc.currency_code.upper()} ({loc.currency_symbol})")
    table.add_row("Rate to base", f"{loc.exchange_rate_to_base:,.4f}")
    table.add_row("African", "yes" if loc.is_african else "no")
    table.add_row("Gateway", loc.recommended_gateway)
    table.add_row("Detected by", loc.detection_method)
    table.add_row("Confidence", f"{loc.confidence:.0%}")
    return table


def summary_table(summary: Mapping[str, object]) -> Table:
    table = Table(title="Location summary", box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="cyan bold", width=22)
    table.add_column("Value")
    for key, value in summary.items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    return table


def quote_line(quote: RateQuote) -> str:
    marker = " [yellow](approximate)[/yellow]" if quote.approximate else ""
    return f"1 {quote.base.upper()} = {quote.rate:,.6g} {quote.quote.upper()} [dim]via {quote.source}[/dim]{marker}"


def conversion_line(amount: float, from_currency: str, converted: float, to_currency: str) -> str:
    return (
        f"{currency_table.format_amount(amount, from_currency)} = "
        f"[bold]{currency_table.format_amount(converted, to_currency)}[/bold]"
    )


def health_table(results: Mapping[str, Dict[str, bool]]) -> Table:
    table = Table(title="Provider health", box=box.SIMPLE)
    table.add_column("Kind", style="cyan")
    table.add_column("Provider")
    table.add_column("Status")
    for kind, providers in results.items():
        if not providers:
            table.add_row(kind, "-", "[yellow]none configured[/yellow]")
        for name, ok in providers.items():
            table.add_row(kind, name, "[green]ok[/green]" if ok else "[red]down[/red]")
    return table
