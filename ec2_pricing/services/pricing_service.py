# ec2_pricing/services/pricing_service.py

"""Request-facing operations over the cache, gateway and stores."""

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ec2_pricing.config.settings import Settings, get_all_regions
from ec2_pricing.models.instance_pricing import InstancePricing
from ec2_pricing.models.price_alert import PriceAlert
from ec2_pricing.models.price_point import PriceHistoryPoint
from ec2_pricing.services.history_seeder import generate_seed_history
from ec2_pricing.services.pricing_gateway import (
    PricingGateway,
    merge_spot_prices,
)
from ec2_pricing.storage.alert_db import AlertDB
from ec2_pricing.storage.price_history_db import PriceHistoryDB
from ec2_pricing.storage.region_cache import RegionCache

logger = logging.getLogger("ec2_pricing.service")

EXPORT_FIELDS: list[str] = [
    "instanceType",
    "vCPU",
    "memoryGiB",
    "networkPerformance",
    "os",
    "onDemand",
    "reserved",
    "spot",
    "spotLastUpdated",
]


@dataclass
class ExportResult:
    """Serialised export body plus how to deliver it."""

    body: str
    media_type: str
    filename: str | None = None


def instances_to_csv(instances: list[InstancePricing]) -> str:
    """Render instance pricing as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=EXPORT_FIELDS, lineterminator="\n",
    )
    writer.writeheader()
    for instance in instances:
        row = instance.to_dict()
        writer.writerow({
            key: "" if row[key] is None else row[key]
            for key in EXPORT_FIELDS
        })
    return buffer.getvalue()


class PricingService:
    """Owns the region cache and stores; one instance per process."""

    def __init__(
        self,
        gateway: PricingGateway,
        cache: RegionCache,
        history_db: PriceHistoryDB,
        alert_db: AlertDB,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.history_db = history_db
        self.alert_db = alert_db

    @classmethod
    def from_settings(
        cls, db_path: Path | None = None,
    ) -> "PricingService":
        """Wire the default boto3 gateway and SQLite stores."""
        gateway = PricingGateway()
        path = db_path or Settings.DATABASE_PATH
        return cls(
            gateway=gateway,
            cache=RegionCache(gateway),
            history_db=PriceHistoryDB(path),
            alert_db=AlertDB(path),
        )

    def close(self) -> None:
        """Close both database connections."""
        self.history_db.close()
        self.alert_db.close()

    # ── Pricing ──────────────────────────────────────────

    def list_regions(self) -> list[dict[str, str]]:
        """Return every supported region."""
        return get_all_regions()

    def get_instances(self, region: str) -> list[InstancePricing]:
        """Return merged pricing for a region (cached)."""
        return self.cache.get(region)

    def _current_pricing(
        self, region: str, instance_type: str, os_name: str,
    ) -> InstancePricing | None:
        list_prices = self.gateway.fetch_list_prices(
            region, os_name, instance_type,
        )
        match = next(
            (
                p for p in list_prices
                if p.instance_type == instance_type
            ),
            None,
        )
        if match is None:
            return None
        quotes = self.gateway.fetch_spot_prices(
            region, os_name, [instance_type],
        )
        return merge_spot_prices([match], quotes)[0]

    def get_price_history(
        self,
        region: str,
        instance_type: str,
        days: int,
        os_name: str,
        now: datetime | None = None,
    ) -> list[PriceHistoryPoint]:
        """Return stored history, seeding it once when empty."""
        moment = now or datetime.now(timezone.utc)
        since = moment - timedelta(days=days)
        history = self.history_db.query(
            instance_type, region, os_name, since,
        )
        if history:
            return history

        logger.info(
            "No history for %s %s/%s, generating seed data",
            instance_type,
            region,
            os_name,
        )
        current = self._current_pricing(region, instance_type, os_name)
        if current is None:
            logger.warning(
                "No current pricing for %s in %s (%s)",
                instance_type,
                region,
                os_name,
            )
            return []

        seeded = generate_seed_history(
            current, region, days, now=moment,
        )
        self.history_db.record_points(seeded)
        return seeded

    def summarise_history(
        self, region: str, instance_type: str, os_name: str,
    ) -> dict[str, dict[str, object]]:
        """Return min / max / avg / latest per stored price type."""
        summary: dict[str, dict[str, object]] = {}
        for price_type in Settings.PRICE_TYPES:
            trend = self.history_db.get_trend_summary(
                instance_type, region, os_name, price_type,
            )
            if trend is not None:
                summary[price_type] = trend
        return summary

    def export_instances(
        self, region: str, fmt: str | None,
    ) -> ExportResult:
        """Export a region's pricing as CSV or JSON."""
        instances = self.cache.get(region)
        if fmt == "csv":
            return ExportResult(
                body=instances_to_csv(instances),
                media_type="text/csv",
                filename=f"aws-pricing-{region}.csv",
            )
        return ExportResult(
            body=json.dumps([i.to_dict() for i in instances]),
            media_type="application/json",
        )

    # ── Alerts ───────────────────────────────────────────

    def create_alert(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        price_type: str,
        threshold: float,
        email: str,
    ) -> PriceAlert:
        """Register a new active price alert."""
        return self.alert_db.create(
            instance_type, region, os_name, price_type, threshold, email,
        )

    def list_alerts(self, email: str) -> list[PriceAlert]:
        """Return the alerts registered for an email address."""
        return self.alert_db.list_by_email(email)

    def update_alert(
        self,
        alert_id: int,
        threshold: float | None = None,
        active: bool | None = None,
    ) -> PriceAlert | None:
        """Update an alert's threshold / active flag."""
        return self.alert_db.update(
            alert_id, threshold=threshold, active=active,
        )

    def delete_alert(self, alert_id: int) -> bool:
        """Delete an alert."""
        return self.alert_db.delete(alert_id)
