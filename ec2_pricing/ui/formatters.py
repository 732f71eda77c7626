# ec2_pricing/ui/formatters.py

"""Display helpers for prices, dates and percentages."""

from datetime import datetime

from ec2_pricing.config.settings import Settings


def format_price(price: float | None, decimals: int = 4) -> str:
    """Format a USD price, ``N/A`` when unknown."""
    if price is None:
        return "N/A"
    return f"${price:.{decimals}f}"


def format_price_breakdown(hourly: float | None) -> dict[str, str]:
    """Hourly, monthly (730 h) and yearly renderings of a rate."""
    if hourly is None:
        return {"hourly": "N/A", "monthly": "N/A", "yearly": "N/A"}
    monthly = hourly * Settings.HOURS_PER_MONTH
    return {
        "hourly": format_price(hourly),
        "monthly": format_price(monthly, 2),
        "yearly": format_price(monthly * 12, 2),
    }


def format_date(value: str | None) -> str:
    """Render an ISO timestamp as ``YYYY-mm-dd HH:MM``."""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M")


def format_percentage(
    value: float | None, include_sign: bool = True,
) -> str:
    """One-decimal percentage, with ``+`` for positives by default."""
    if value is None:
        return "N/A"
    sign = "+" if include_sign and value > 0 else ""
    return f"{sign}{value:.1f}%"


def percentage_difference(
    base: float | None, other: float | None,
) -> float | None:
    """Percent change from ``base`` to ``other``; None if either unset."""
    if not base or not other:
        return None
    return (other - base) / base * 100


def format_memory(memory_gib: float | None) -> str:
    if not memory_gib:
        return "N/A"
    return f"{memory_gib:g} GiB"
