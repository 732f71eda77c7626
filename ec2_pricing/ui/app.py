# ec2_pricing/ui/app.py

"""Terminal dashboard for comparing EC2 prices across regions."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    Static,
)

from ec2_pricing.client.api_client import PricingApiClient
from ec2_pricing.config.settings import Settings
from ec2_pricing.ui.formatters import (
    format_date,
    format_memory,
    format_percentage,
    format_price,
    format_price_breakdown,
    percentage_difference,
)

logger = logging.getLogger("ec2_pricing.ui")

_PRICE_TYPE_LABELS: dict[str, str] = {
    "onDemand": "On-Demand",
    "reserved": "Reserved",
    "spot": "Spot",
}


def _sort_key(value: float | None) -> float:
    return value if value else float("inf")


def _os_checkbox_id(os_name: str) -> str:
    return f"os_{os_name.lower()}"


class EC2PricingApp(App[object]):
    """Terminal dashboard over the pricing REST API."""

    CSS = """
    #title {
        text-style: bold;
        padding: 0 1;
    }
    #region_bar, #os_filters, #savings_bar, #alert_bar {
        height: auto;
    }
    #region_input, #hours_input, #alert_email {
        width: 1fr;
    }
    #alert_threshold {
        width: 16;
    }
    #ri_term_select, #ri_payment_select, #alert_price_type {
        width: 22;
    }
    #status {
        padding: 0 1;
        color: $text-muted;
    }
    #pricing_table {
        height: 1fr;
    }
    #alerts_table {
        height: 8;
    }
    #detail {
        height: auto;
        padding: 0 1;
        border-top: solid $primary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
        Binding("p", "sort_price", "Price Sort"),
        Binding("s", "sort_spot", "Spot Sort"),
        Binding("h", "history", "History"),
        Binding("i", "specs", "Specs"),
        Binding("c", "savings", "Savings"),
        Binding("e", "export", "Export CSV"),
        Binding("a", "create_alert", "Add Alert"),
        Binding("l", "list_alerts", "Alerts"),
        Binding("t", "toggle_alert", "Pause/Resume"),
        Binding("x", "delete_alert", "Delete Alert"),
    ]

    def __init__(self, client: PricingApiClient | None = None) -> None:
        super().__init__()
        self.client = client or PricingApiClient()
        self.instances: list[dict[str, Any]] = []
        self.rows: list[dict[str, Any]] = []
        self.alerts: list[dict[str, Any]] = []
        self.region_names: dict[str, str] = dict(Settings.AWS_REGIONS)
        self.reserved_terms: dict[str, Any] = {}
        self.current_region: str = Settings.AWS_REGION

    def compose(self) -> ComposeResult:
        """Build the widget tree for the dashboard."""
        yield Header()
        yield Container(
            Static("☁ AWS EC2 Pricing Dashboard", id="title"),

            Horizontal(
                Input(
                    value=Settings.AWS_REGION,
                    placeholder="Region id, e.g. us-east-1",
                    id="region_input",
                ),
                Button("Load", variant="primary", id="load_btn"),
                id="region_bar",
            ),

            # OS filter checkboxes
            Horizontal(
                *(
                    Checkbox(os_name, value=True, id=_os_checkbox_id(os_name))
                    for os_name in Settings.SUPPORTED_OS
                ),
                id="os_filters",
            ),

            Static("Ready", id="status"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="pricing_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            Static("", id="detail"),

            Horizontal(
                Input(
                    value=str(Settings.HOURS_PER_MONTH),
                    placeholder="Hours per month",
                    id="hours_input",
                ),
                Select(
                    [("1yr", "1yr")],
                    value="1yr",
                    allow_blank=False,
                    id="ri_term_select",
                ),
                Select(
                    [("No Upfront", "no_upfront")],
                    value="no_upfront",
                    allow_blank=False,
                    id="ri_payment_select",
                ),
                Button("Savings", id="savings_btn"),
                id="savings_bar",
            ),

            Horizontal(
                Input(placeholder="Alert email", id="alert_email"),
                Input(placeholder="Threshold $/h", id="alert_threshold"),
                Select(
                    [
                        (_PRICE_TYPE_LABELS[pt], pt)
                        for pt in Settings.PRICE_TYPES
                    ],
                    value="spot",
                    allow_blank=False,
                    id="alert_price_type",
                ),
                Button(
                    "Create Alert", variant="success", id="alert_create_btn",
                ),
                Button("My Alerts", id="alert_list_btn"),
                id="alert_bar",
            ),
            cast(
                DataTable[str | Text],
                DataTable(id="alerts_table", cursor_type="row"),
            ),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure the tables and fetch reference data."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#pricing_table", DataTable),
        )
        table.add_columns(
            "Instance",
            "vCPU",
            "Memory",
            "OS",
            "On-Demand",
            "Reserved",
            "Spot",
            "Spot vs OD",
        )
        alerts_table = cast(
            DataTable[str | Text],
            self.query_one("#alerts_table", DataTable),
        )
        alerts_table.add_columns(
            "ID",
            "Instance",
            "Region",
            "OS",
            "Price",
            "Threshold",
            "Active",
            "Sent",
            "Last Sent",
        )
        self.run_worker(self.load_reference_data(), group="reference")

    def on_unmount(self) -> None:
        self.client.close()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "load_btn":
            await self.load_region()
        elif button_id == "savings_btn":
            await self.action_savings()
        elif button_id == "alert_create_btn":
            await self.action_create_alert()
        elif button_id == "alert_list_btn":
            await self.action_list_alerts()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "region_input":
            await self.load_region()
        elif event.input.id == "alert_email":
            await self.action_list_alerts()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        """Re-filter the comparison table when an OS is toggled."""
        self.populate_table()

    # ── Loading ──────────────────────────────────────────

    async def load_reference_data(self) -> None:
        """Fetch regions and reserved terms; keep defaults on failure."""
        try:
            regions: list[dict[str, str]] = await asyncio.to_thread(
                self.client.get_regions
            )
            terms: dict[str, Any] = await asyncio.to_thread(
                self.client.get_reserved_terms
            )
        except Exception:
            logger.warning(
                "Could not load reference data from the API",
                exc_info=True,
            )
            return

        if regions:
            self.region_names = {r["id"]: r["name"] for r in regions}
        if terms:
            self.reserved_terms = terms
            self.query_one("#ri_term_select", Select).set_options(
                [(term, term) for term in terms]
            )
            payments = next(iter(terms.values()))
            self.query_one("#ri_payment_select", Select).set_options(
                [
                    (str(info.get("payment", key)), key)
                    for key, info in payments.items()
                ]
            )

    async def load_region(self, region: str | None = None) -> None:
        """Fetch and display pricing for the requested region."""
        region_input = self.query_one("#region_input", Input)
        region = (region or region_input.value).strip()
        if region not in self.region_names:
            self.notify(f"Unknown region: {region!r}", severity="warning")
            return

        name = self.region_names[region]
        status = self.query_one("#status", Static)
        status.update(f"⏳ Loading {name}...")
        try:
            instances: list[dict[str, Any]] = await asyncio.to_thread(
                self.client.get_instances, region
            )
        except Exception as e:
            logger.error(
                "Failed to load pricing for %s", region, exc_info=True,
            )
            status.update("❌ Failed to load pricing data")
            self.notify(f"Error: {e}", severity="error")
            return

        self.current_region = region
        self.instances = instances
        self.populate_table()
        if instances:
            status.update(f"✅ {len(instances)} instance prices in {name}")
        else:
            status.update(f"No pricing data for {name}")

    def selected_os(self) -> set[str]:
        """OS names whose filter checkbox is ticked."""
        return {
            os_name
            for os_name in Settings.SUPPORTED_OS
            if self.query_one(f"#{_os_checkbox_id(os_name)}", Checkbox).value
        }

    def populate_table(self) -> None:
        """Fill the DataTable from the loaded instances."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#pricing_table", DataTable),
        )
        table.clear()
        wanted = self.selected_os()
        self.rows = [i for i in self.instances if i.get("os") in wanted]
        if not self.rows:
            return

        cheapest = min(
            (i["onDemand"] for i in self.rows if i.get("onDemand")),
            default=0,
        )

        for item in self.rows:
            on_demand = item.get("onDemand")
            is_cheapest = bool(on_demand) and on_demand == cheapest
            spot_delta = percentage_difference(on_demand, item.get("spot"))
            table.add_row(
                item["instanceType"],
                str(item.get("vCPU") or "N/A"),
                format_memory(item.get("memoryGiB")),
                item.get("os", ""),
                Text(
                    format_price(on_demand),
                    style="bold green" if is_cheapest else "",
                ),
                format_price(item.get("reserved")),
                format_price(item.get("spot")),
                Text(
                    format_percentage(spot_delta),
                    style="green" if spot_delta and spot_delta < 0 else "",
                ),
            )

    def _selected_instance(self) -> dict[str, Any] | None:
        table = cast(
            DataTable[str | Text],
            self.query_one("#pricing_table", DataTable),
        )
        row = table.cursor_row
        if 0 <= row < len(self.rows):
            return self.rows[row]
        self.notify("Select an instance first", severity="warning")
        return None

    def on_data_table_row_selected(
        self, event: DataTable.RowSelected
    ) -> None:
        """Show monthly and yearly costs for the selected row."""
        if event.data_table.id != "pricing_table":
            return
        if not 0 <= event.cursor_row < len(self.rows):
            return
        item = self.rows[event.cursor_row]
        lines = [f"[b]{item['instanceType']}[/b] ({item.get('os', '')})"]
        for key, label in _PRICE_TYPE_LABELS.items():
            costs = format_price_breakdown(item.get(key))
            lines.append(
                f"{label}: {costs['hourly']}/h · "
                f"{costs['monthly']}/mo · {costs['yearly']}/yr"
            )
        self.query_one("#detail", Static).update("\n".join(lines))

    # ── Comparison actions ───────────────────────────────

    async def action_reload(self) -> None:
        await self.load_region(self.current_region)

    def action_sort_price(self) -> None:
        """Sort by On-Demand price, ascending."""
        self.instances.sort(key=lambda i: _sort_key(i.get("onDemand")))
        self.populate_table()

    def action_sort_spot(self) -> None:
        """Sort by Spot price, ascending."""
        self.instances.sort(key=lambda i: _sort_key(i.get("spot")))
        self.populate_table()

    async def action_history(self) -> None:
        """Summarise stored price history for the selected row."""
        item = self._selected_instance()
        if item is None:
            return
        try:
            history: list[dict[str, Any]] = await asyncio.to_thread(
                self.client.get_price_history,
                self.current_region,
                item["instanceType"],
                Settings.HISTORY_DEFAULT_DAYS,
                item.get("os", "Linux"),
            )
        except Exception as e:
            logger.error("Failed to load price history", exc_info=True)
            self.notify(f"History failed: {e}", severity="error")
            return

        self.query_one("#detail", Static).update(
            summarise_history(item["instanceType"], history)
        )

    async def action_specs(self) -> None:
        """Show hardware details for the selected instance type."""
        item = self._selected_instance()
        if item is None:
            return
        try:
            specs: dict[str, Any] = await asyncio.to_thread(
                self.client.get_instance_specs, item["instanceType"]
            )
        except Exception as e:
            logger.error("Failed to load instance specs", exc_info=True)
            self.notify(f"Specs failed: {e}", severity="error")
            return

        self.query_one("#detail", Static).update(
            describe_specs(item["instanceType"], specs)
        )

    async def action_savings(self) -> None:
        """Compare reserved and spot costs for the selected row."""
        item = self._selected_instance()
        if item is None:
            return
        try:
            hours = float(self.query_one("#hours_input", Input).value)
        except ValueError:
            self.notify("Hours must be a number", severity="warning")
            return
        term = cast(str, self.query_one("#ri_term_select", Select).value)
        payment = cast(
            str, self.query_one("#ri_payment_select", Select).value
        )

        try:
            result: dict[str, Any] = await asyncio.to_thread(
                self.client.calculate_savings,
                item["instanceType"],
                self.current_region,
                item.get("os", "Linux"),
                hours,
                term,
                payment,
            )
        except Exception as e:
            logger.error("Savings calculation failed", exc_info=True)
            self.notify(f"Savings failed: {e}", severity="error")
            return

        discount = (
            self.reserved_terms.get(term, {})
            .get(payment, {})
            .get("discount")
        )
        self.query_one("#detail", Static).update(
            describe_savings(result, discount)
        )

    async def action_export(self) -> None:
        """Export the loaded region to a CSV file."""
        if not self.instances:
            self.notify("No pricing loaded to export", severity="warning")
            return
        try:
            body: str = await asyncio.to_thread(
                self.client.export_csv, self.current_region
            )
            path = write_export(self.current_region, body)
            logger.info("Exported pricing to %s", path)
            self.notify(f"Exported to {path}")
        except Exception as e:
            logger.error("Failed to export pricing", exc_info=True)
            self.notify(f"Export failed: {e}", severity="error")

    # ── Alert actions ────────────────────────────────────

    def _alert_email(self) -> str | None:
        email = self.query_one("#alert_email", Input).value.strip()
        if not email:
            self.notify("Enter an email address first", severity="warning")
            return None
        return email

    async def action_create_alert(self) -> None:
        """Register an alert on the selected row's price."""
        item = self._selected_instance()
        email = self._alert_email()
        if item is None or email is None:
            return
        try:
            threshold = float(
                self.query_one("#alert_threshold", Input).value
            )
        except ValueError:
            self.notify("Threshold must be a number", severity="warning")
            return
        price_type = cast(
            str, self.query_one("#alert_price_type", Select).value
        )

        try:
            await asyncio.to_thread(
                self.client.create_alert,
                item["instanceType"],
                self.current_region,
                item.get("os", "Linux"),
                price_type,
                threshold,
                email,
            )
        except Exception as e:
            logger.error("Failed to create price alert", exc_info=True)
            self.notify(f"Alert failed: {e}", severity="error")
            return

        self.notify(
            f"Alert set: {item['instanceType']} "
            f"{_PRICE_TYPE_LABELS.get(price_type, price_type)} "
            f"≤ {format_price(threshold)}"
        )
        await self.action_list_alerts()

    async def action_list_alerts(self) -> None:
        """Load the alerts registered for the entered email."""
        email = self._alert_email()
        if email is None:
            return
        try:
            alerts: list[dict[str, Any]] = await asyncio.to_thread(
                self.client.get_alerts, email
            )
        except Exception as e:
            logger.error("Failed to load price alerts", exc_info=True)
            self.notify(f"Alerts failed: {e}", severity="error")
            return
        self.alerts = alerts
        self.populate_alerts()

    def populate_alerts(self) -> None:
        """Fill the alerts table from the loaded alerts."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#alerts_table", DataTable),
        )
        table.clear()
        for alert in self.alerts:
            active = bool(alert.get("active"))
            table.add_row(
                str(alert["id"]),
                alert.get("instanceType", ""),
                alert.get("region", ""),
                alert.get("os", ""),
                _PRICE_TYPE_LABELS.get(
                    alert.get("priceType", ""), alert.get("priceType", "")
                ),
                format_price(alert.get("threshold")),
                Text(
                    "yes" if active else "paused",
                    style="green" if active else "yellow",
                ),
                str(alert.get("notificationCount", 0)),
                format_date(alert["lastNotified"])
                if alert.get("lastNotified") else "never",
            )

    def _selected_alert(self) -> dict[str, Any] | None:
        table = cast(
            DataTable[str | Text],
            self.query_one("#alerts_table", DataTable),
        )
        row = table.cursor_row
        if 0 <= row < len(self.alerts):
            return self.alerts[row]
        self.notify("Select an alert first", severity="warning")
        return None

    async def action_toggle_alert(self) -> None:
        """Pause or resume the highlighted alert."""
        alert = self._selected_alert()
        if alert is None:
            return
        try:
            updated: dict[str, Any] = await asyncio.to_thread(
                self.client.update_alert,
                alert["id"],
                None,
                not alert.get("active"),
            )
        except Exception as e:
            logger.error("Failed to update price alert", exc_info=True)
            self.notify(f"Update failed: {e}", severity="error")
            return
        self.alerts = [
            updated if a["id"] == alert["id"] else a for a in self.alerts
        ]
        self.populate_alerts()

    async def action_delete_alert(self) -> None:
        """Delete the highlighted alert."""
        alert = self._selected_alert()
        if alert is None:
            return
        try:
            await asyncio.to_thread(self.client.delete_alert, alert["id"])
        except Exception as e:
            logger.error("Failed to delete price alert", exc_info=True)
            self.notify(f"Delete failed: {e}", severity="error")
            return
        self.alerts = [a for a in self.alerts if a["id"] != alert["id"]]
        self.populate_alerts()
        self.notify(f"Alert {alert['id']} deleted")


def summarise_history(
    instance_type: str, history: list[dict[str, Any]],
) -> str:
    """One line per price type: min, max and latest price."""
    if not history:
        return f"No price history for {instance_type}"
    lines = [f"[b]{instance_type}[/b] price history"]
    for price_type in Settings.PRICE_TYPES:
        prices = [
            p["price"] for p in history if p["priceType"] == price_type
        ]
        if not prices:
            continue
        lines.append(
            f"{price_type}: min {format_price(min(prices))} · "
            f"max {format_price(max(prices))} · "
            f"latest {format_price(prices[-1])} ({len(prices)} points)"
        )
    return "\n".join(lines)


def describe_specs(instance_type: str, specs: dict[str, Any]) -> str:
    """Render instance specs as ``label: value`` lines."""
    if not specs:
        return f"No specs on file for {instance_type}"
    lines = [f"[b]{instance_type}[/b] specs"]
    lines.extend(f"{key}: {value}" for key, value in specs.items())
    return "\n".join(lines)


def describe_savings(
    result: dict[str, Any], discount: float | None = None,
) -> str:
    """Render a savings calculation as three cost lines."""
    lines = [
        f"[b]{result['instanceType']}[/b] over {result['hours']:g} h "
        f"({result['riTerm']}, {result['riPayment']})",
        f"On-Demand: {format_price(result['onDemandMonthly'], 2)}/mo",
        f"Reserved: {format_price(result['reservedMonthly'], 2)}/mo · "
        f"saves {format_price(result['reservedSavings'], 2)} "
        f"({result['reservedSavingsPercentage']:.1f}%)",
        f"Spot: {format_price(result['spotMonthly'], 2)}/mo · "
        f"saves {format_price(result['spotSavings'], 2)} "
        f"({result['spotSavingsPercentage']:.1f}%)",
    ]
    if discount is not None:
        lines.append(f"Typical {result['riTerm']} discount: {discount:.0%}")
    return "\n".join(lines)


def write_export(region: str, body: str) -> Path:
    """Write an exported CSV body under the exports directory."""
    Settings.EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = Settings.EXPORTS_DIR / f"aws-pricing-{region}_{stamp}.csv"
    path.write_text(body, encoding="utf-8")
    return path
