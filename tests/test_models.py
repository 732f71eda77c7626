# tests/test_models.py

"""Tests for the pricing, history and alert dataclasses."""

import unittest
from datetime import datetime, timedelta, timezone

from ec2_pricing.models.instance_pricing import InstancePricing
from ec2_pricing.models.price_alert import PriceAlert
from ec2_pricing.models.price_point import (
    PriceHistoryPoint,
    utc_isoformat,
)


class TestInstancePricing(unittest.TestCase):
    """Wire form of merged instance pricing."""

    def test_to_dict_camel_case(self) -> None:
        """Instance pricing serialises with camelCase keys."""
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        item = InstancePricing(
            instance_type="t3.micro",
            vcpu=2,
            memory_gib=1.0,
            network_performance="Up to 5 Gigabit",
            os="Linux",
            on_demand=0.0104,
            reserved=0.0065,
            spot=0.0031,
            spot_last_updated=ts,
        )
        self.assertEqual(item.to_dict(), {
            "instanceType": "t3.micro",
            "vCPU": 2,
            "memoryGiB": 1.0,
            "networkPerformance": "Up to 5 Gigabit",
            "os": "Linux",
            "onDemand": 0.0104,
            "reserved": 0.0065,
            "spot": 0.0031,
            "spotLastUpdated": "2024-05-01T12:00:00+00:00",
        })

    def test_missing_prices_serialise_as_none(self) -> None:
        """Absent prices stay None."""
        item = InstancePricing("m5.large", 2, 8.0, "Up to 10 Gigabit", "Windows")
        data = item.to_dict()
        self.assertIsNone(data["onDemand"])
        self.assertIsNone(data["spot"])
        self.assertIsNone(data["spotLastUpdated"])


class TestPriceHistoryPoint(unittest.TestCase):
    """Wire form of history points."""

    def test_to_dict(self) -> None:
        """History points serialise with an ISO timestamp."""
        ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        point = PriceHistoryPoint(
            "t2.micro", "us-east-1", "Linux", "spot", 0.0035, ts,
        )
        data = point.to_dict()
        self.assertEqual(data["priceType"], "spot")
        self.assertEqual(data["timestamp"], ts.isoformat())


class TestUtcIsoformat(unittest.TestCase):
    """Stored timestamps are fixed-width UTC."""

    def test_naive_treated_as_utc(self) -> None:
        """Naive datetimes are taken as UTC."""
        self.assertEqual(
            utc_isoformat(datetime(2024, 1, 1)),
            "2024-01-01T00:00:00.000000+00:00",
        )

    def test_offset_converted_to_utc(self) -> None:
        """Offset datetimes are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        self.assertEqual(
            utc_isoformat(datetime(2024, 1, 1, 2, 0, tzinfo=plus_two)),
            "2024-01-01T00:00:00.000000+00:00",
        )

    def test_lexical_order_matches_chronological(self) -> None:
        """Fixed-width strings sort chronologically."""
        early = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        late = early + timedelta(microseconds=1)
        self.assertLess(utc_isoformat(early), utc_isoformat(late))


class TestPriceAlert(unittest.TestCase):
    """Wire form of alerts."""

    def test_to_dict_defaults(self) -> None:
        """A fresh alert serialises with defaults."""
        alert = PriceAlert(
            id=1,
            instance_type="t2.micro",
            region="us-east-1",
            os="Linux",
            price_type="spot",
            threshold=0.005,
            email="ops@example.com",
        )
        data = alert.to_dict()
        self.assertTrue(data["active"])
        self.assertEqual(data["notificationCount"], 0)
        self.assertIsNone(data["lastNotified"])
        self.assertIsNone(data["createdAt"])
        self.assertEqual(data["priceType"], "spot")
