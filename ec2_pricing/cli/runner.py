# ec2_pricing/cli/runner.py

"""Headless entry points: API server, one-shot poll and CLI reports."""

import logging

from rich.console import Console
from rich.table import Table

from ec2_pricing.config.settings import Settings, get_all_regions
from ec2_pricing.services.notifier import AlertNotifier, SmtpMailer
from ec2_pricing.services.pricing_service import PricingService
from ec2_pricing.services.savings_calculator import calculate_savings
from ec2_pricing.services.scheduler import PriceUpdateScheduler

logger = logging.getLogger("ec2_pricing.cli")

# Stderr console for status messages so stdout stays clean
_err = Console(stderr=True)


def build_scheduler(service: PricingService) -> PriceUpdateScheduler:
    """Wire a scheduler onto the service's gateway and stores."""
    mailer = SmtpMailer.from_settings()
    if mailer is None:
        _err.print(
            "[yellow]SMTP not configured; price alerts will not be "
            "emailed.[/yellow]"
        )
    notifier = AlertNotifier(service.alert_db, mailer)
    return PriceUpdateScheduler(
        service.gateway, service.history_db, notifier,
    )


def run_server() -> int:
    """Serve the REST API with the background price poller."""
    import uvicorn

    from ec2_pricing.api.app import create_app

    service = PricingService.from_settings()
    app = create_app(service, build_scheduler(service))
    _err.print(
        f"[bold]Serving API on {Settings.API_HOST}:{Settings.API_PORT}"
        "[/bold]"
    )
    try:
        uvicorn.run(
            app,
            host=Settings.API_HOST,
            port=Settings.API_PORT,
            log_config=None,
        )
    finally:
        service.close()
    return 0


def run_poll_once() -> int:
    """Run one scheduler tick and report how many points were stored."""
    service = PricingService.from_settings()
    try:
        count = build_scheduler(service).run_once()
    finally:
        service.close()
    _err.print(f"[green]✓ Recorded {count} price points[/green]")
    return 0


def print_regions() -> int:
    """Render the supported regions as a Rich table."""
    table = Table(
        title="AWS Regions",
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("Region", style="bold")
    table.add_column("Name")
    for region in get_all_regions():
        table.add_row(region["id"], region["name"])
    Console().print(table)
    return 0


def run_savings(
    instance_type: str,
    region: str,
    os_name: str,
    hours: float,
    ri_term: str,
    ri_payment: str,
) -> int:
    """Print a reserved/spot savings comparison."""
    try:
        result = calculate_savings(
            instance_type,
            region,
            os_name,
            hours,
            ri_term=ri_term,
            ri_payment=ri_payment,
        )
    except ValueError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    table = Table(
        title=(
            f"Savings for {instance_type} over {hours:g} h "
            f"({ri_term}, {ri_payment})"
        ),
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Option", style="bold")
    table.add_column("Hourly", justify="right")
    table.add_column("Monthly", justify="right", style="green")
    table.add_column("Savings", justify="right")
    table.add_column("Savings %", justify="right")

    table.add_row(
        "On-Demand",
        f"${result['onDemandHourly']:.4f}",
        f"${result['onDemandMonthly']:,.2f}",
        "—",
        "—",
    )
    table.add_row(
        "Reserved",
        f"${result['reservedHourly']:.4f}",
        f"${result['reservedMonthly']:,.2f}",
        f"${result['reservedSavings']:,.2f}",
        f"{result['reservedSavingsPercentage']:.1f}%",
    )
    table.add_row(
        "Spot",
        f"${result['spotHourly']:.4f}",
        f"${result['spotMonthly']:,.2f}",
        f"${result['spotSavings']:,.2f}",
        f"{result['spotSavingsPercentage']:.1f}%",
    )
    Console().print(table)
    return 0


def run_export_chart(
    instance_type: str,
    region: str,
    os_name: str,
    days: int,
) -> int:
    """Export a price history chart for one instance type."""
    from ec2_pricing.storage.chart_exporter import export_price_chart
    from ec2_pricing.storage.price_history_db import PriceHistoryDB

    db = PriceHistoryDB()
    try:
        path = export_price_chart(
            instance_type, region, os_name, db, days=days,
        )
    finally:
        db.close()

    if path is None:
        _err.print(
            "[yellow]Not enough price history for a chart yet.[/yellow]"
        )
        return 1
    _err.print(f"[green]✓ Chart saved → {path}[/green]")
    return 0


def print_trend(instance_type: str, region: str, os_name: str) -> int:
    """Print min / max / avg / latest for each stored price type."""
    service = PricingService.from_settings()
    try:
        summary = service.summarise_history(region, instance_type, os_name)
    finally:
        service.close()

    if not summary:
        _err.print(
            f"[yellow]No stored price history for {instance_type} in "
            f"{region} ({os_name}).[/yellow]"
        )
        return 1

    table = Table(
        title=f"Price trend for {instance_type} in {region} ({os_name})",
        title_style="bold cyan",
    )
    table.add_column("Price type", style="bold")
    for column in ("Min", "Max", "Avg", "Latest"):
        table.add_column(column, justify="right")
    table.add_column("Points", justify="right")
    for price_type, trend in summary.items():
        table.add_row(
            price_type,
            *(f"${trend[key]:.4f}" for key in ("min", "max", "avg", "latest")),
            str(trend["count"]),
        )
    Console().print(table)
    return 0
