# tests/test_pricing_service.py

"""Tests for the request-facing pricing service."""

import csv
import io
import json
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

from ec2_pricing.models.instance_pricing import InstancePricing, SpotQuote
from ec2_pricing.models.price_point import PriceHistoryPoint
from ec2_pricing.services.pricing_service import (
    EXPORT_FIELDS,
    PricingService,
    instances_to_csv,
)
from ec2_pricing.storage.alert_db import AlertDB
from ec2_pricing.storage.price_history_db import PriceHistoryDB
from ec2_pricing.storage.region_cache import RegionCache

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_gateway() -> MagicMock:
    """Gateway double knowing t3.micro in every region but sa-east-1."""
    gateway = MagicMock()

    def list_prices(
        region: str, os_name: str, instance_type: str | None = None,
    ) -> list[InstancePricing]:
        if region == "sa-east-1":
            return []
        items = [
            InstancePricing(
                "t3.micro", 2, 1.0, "Up to 5 Gigabit", os_name,
                on_demand=0.0104, reserved=0.0065,
            ),
        ]
        return [
            i for i in items
            if instance_type is None or i.instance_type == instance_type
        ]

    gateway.fetch_list_prices.side_effect = list_prices
    gateway.fetch_spot_prices.return_value = {
        "t3.micro": SpotQuote(0.0031, NOW),
    }
    return gateway


def make_service(gateway: MagicMock | None = None) -> PricingService:
    """Service over in-memory stores and the gateway double."""
    gw = gateway or make_gateway()
    return PricingService(
        gateway=gw,
        cache=RegionCache(gw, ttl=600, os_list=["Linux", "Windows"]),
        history_db=PriceHistoryDB(db_path=Path(":memory:")),
        alert_db=AlertDB(db_path=Path(":memory:")),
    )


class TestPriceHistory(unittest.TestCase):
    """History reads seed exactly once."""

    def setUp(self) -> None:
        self.gateway = make_gateway()
        self.service = make_service(self.gateway)

    def tearDown(self) -> None:
        self.service.close()

    def test_empty_history_is_seeded_once(self) -> None:
        """The first empty read seeds; the second reads the seed back."""
        first = self.service.get_price_history(
            "us-east-1", "t3.micro", 7, "Linux", now=NOW,
        )
        self.assertEqual(len(first), 7 + 7 + 1)
        second = self.service.get_price_history(
            "us-east-1", "t3.micro", 7, "Linux", now=NOW,
        )
        self.assertEqual(len(second), len(first))
        self.assertEqual(self.gateway.fetch_list_prices.call_count, 1)
        self.gateway.fetch_list_prices.assert_called_with(
            "us-east-1", "Linux", "t3.micro",
        )

    def test_existing_history_not_reseeded(self) -> None:
        """Stored points are returned as-is without calling AWS."""
        self.service.history_db.record_points([
            PriceHistoryPoint(
                "t3.micro", "us-east-1", "Linux", "spot", 0.003,
                NOW - timedelta(days=1),
            ),
        ])
        history = self.service.get_price_history(
            "us-east-1", "t3.micro", 30, "Linux", now=NOW,
        )
        self.assertEqual(len(history), 1)
        self.gateway.fetch_list_prices.assert_not_called()

    def test_unknown_instance_returns_empty(self) -> None:
        """An instance type with no list price yields no history."""
        history = self.service.get_price_history(
            "us-east-1", "z9.mega", 30, "Linux", now=NOW,
        )
        self.assertEqual(history, [])

    def test_summarise_history_per_price_type(self) -> None:
        """Summaries cover only the price types that have points."""
        self.service.history_db.record_points([
            PriceHistoryPoint(
                "t3.micro", "us-east-1", "Linux", "spot", price,
                NOW - timedelta(hours=hours),
            )
            for price, hours in ((0.004, 3), (0.002, 2), (0.003, 1))
        ])
        summary = self.service.summarise_history(
            "us-east-1", "t3.micro", "Linux",
        )
        self.assertEqual(list(summary), ["spot"])
        self.assertEqual(summary["spot"]["min"], 0.002)
        self.assertEqual(summary["spot"]["max"], 0.004)
        self.assertEqual(summary["spot"]["latest"], 0.003)
        self.assertEqual(summary["spot"]["count"], 3)

    def test_summarise_history_empty(self) -> None:
        """No stored points gives an empty summary without seeding."""
        self.assertEqual(self.service.summarise_history(
            "us-east-1", "t3.micro", "Linux",
        ), {})
        self.gateway.fetch_list_prices.assert_not_called()


class TestExport(unittest.TestCase):
    """CSV and JSON export of a region."""

    def setUp(self) -> None:
        self.service = make_service()

    def tearDown(self) -> None:
        self.service.close()

    def test_csv_export(self) -> None:
        """CSV export carries a filename and one row per instance."""
        result = self.service.export_instances("us-east-1", "csv")
        self.assertEqual(result.media_type, "text/csv")
        self.assertEqual(result.filename, "aws-pricing-us-east-1.csv")
        rows = list(csv.DictReader(io.StringIO(result.body)))
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["instanceType"], "t3.micro")
        self.assertEqual(rows[0]["spot"], "0.0031")

    def test_csv_export_empty_region_has_header_only(self) -> None:
        """An empty region exports just the header row."""
        result = self.service.export_instances("sa-east-1", "csv")
        self.assertEqual(result.body, ",".join(EXPORT_FIELDS) + "\n")

    def test_json_export_default(self) -> None:
        """Without a format the export is JSON."""
        result = self.service.export_instances("us-east-1", None)
        self.assertEqual(result.media_type, "application/json")
        self.assertIsNone(result.filename)
        self.assertEqual(len(json.loads(result.body)), 2)

    def test_csv_writes_none_as_blank(self) -> None:
        """Missing prices become empty CSV cells."""
        body = instances_to_csv([
            InstancePricing("m5.large", 2, 8.0, "", "Linux"),
        ])
        row = next(csv.DictReader(io.StringIO(body)))
        self.assertEqual(row["onDemand"], "")
        self.assertEqual(row["spotLastUpdated"], "")


class TestFromSettings(unittest.TestCase):
    """Default wiring."""

    def test_from_settings_with_memory_db(self) -> None:
        """from_settings wires a usable service."""
        service = PricingService.from_settings(db_path=Path(":memory:"))
        self.assertEqual(len(service.list_regions()), 10)
        service.close()
