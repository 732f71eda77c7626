# ec2_pricing/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts from price history."""

import importlib
import logging
import webbrowser
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import ModuleType
from typing import Any

from ec2_pricing.config.settings import Settings, get_region_name
from ec2_pricing.models.price_point import PriceHistoryPoint
from ec2_pricing.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("ec2_pricing.chart")

_CHARTS_DIR: Path = Settings.DATA_DIR / "charts"

_TRACE_LABELS: dict[str, str] = {
    "onDemand": "On-Demand",
    "reserved": "Reserved",
    "spot": "Spot",
}


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir() -> Path:
    """Create charts directory if it doesn't exist."""
    _CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    return _CHARTS_DIR


def _build_history_chart(
    points: list[PriceHistoryPoint],
    title: str,
) -> Any:
    """Build a line chart with one trace per price type."""
    go = _get_plotly_go()
    fig: Any = go.Figure()
    for price_type in Settings.PRICE_TYPES:
        series = [p for p in points if p.price_type == price_type]
        if not series:
            continue
        fig.add_trace(go.Scatter(
            x=[p.timestamp for p in series],
            y=[p.price for p in series],
            mode="lines+markers",
            name=_TRACE_LABELS[price_type],
            hovertemplate=(
                "%{x|%Y-%m-%d %H:%M}<br>"
                "Price: $%{y:.4f}/h"
                "<extra></extra>"
            ),
        ))

    fig.update_layout(
        title=f"Price History: {title}",
        xaxis_title="Date",
        yaxis_title="Price (USD / hour)",
        hovermode="x unified",
        template="plotly_white",
        legend={"orientation": "h", "y": -0.15},
    )
    return fig


def export_price_chart(
    instance_type: str,
    region: str,
    os_name: str,
    db: PriceHistoryDB,
    days: int | None = None,
    open_browser: bool = True,
) -> Path | None:
    """Export one instance type's price history as an HTML chart."""
    window = days or Settings.HISTORY_DEFAULT_DAYS
    since = datetime.now(timezone.utc) - timedelta(days=window)
    points = db.query(instance_type, region, os_name, since)
    if len(points) < 2:
        logger.warning(
            "Not enough data points for chart: %s %s/%s",
            instance_type,
            region,
            os_name,
        )
        return None

    fig = _build_history_chart(
        points,
        f"{instance_type} ({os_name}) in {get_region_name(region)}",
    )

    charts_dir = _ensure_charts_dir()
    slug = f"{instance_type}_{region}_{os_name}".replace(".", "-")
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"{slug}_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath
