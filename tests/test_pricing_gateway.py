# tests/test_pricing_gateway.py

"""Tests for Price List parsing and the boto3-backed gateway."""

import json
import unittest
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from ec2_pricing.models.instance_pricing import InstancePricing, SpotQuote
from ec2_pricing.services.pricing_gateway import (
    PricingGateway,
    latest_spot_quotes,
    merge_spot_prices,
    parse_price_list_item,
)


def make_price_item(
    instance_type: str = "t3.micro",
    on_demand: str = "0.0104000000",
    reserved_terms: list[tuple[str, str, str]] | None = None,
    servicecode: str = "AmazonEC2",
) -> dict[str, Any]:
    """Build a Price List entry shaped like a live get_products item."""
    if reserved_terms is None:
        reserved_terms = [
            ("3yr", "No Upfront", "0.0045"),
            ("1yr", "Partial Upfront", "0.0030"),
            ("1yr", "No Upfront", "0.0065"),
        ]
    reserved: dict[str, Any] = {}
    for idx, (lease, option, price) in enumerate(reserved_terms):
        reserved[f"SKU.R{idx}"] = {
            "termAttributes": {
                "LeaseContractLength": lease,
                "PurchaseOption": option,
            },
            "priceDimensions": {
                f"SKU.R{idx}.D": {"pricePerUnit": {"USD": price}},
            },
        }
    return {
        "product": {
            "attributes": {
                "servicecode": servicecode,
                "instanceType": instance_type,
                "vcpu": "2",
                "memory": "1 GiB",
                "networkPerformance": "Up to 5 Gigabit",
            },
        },
        "terms": {
            "OnDemand": {
                "SKU.OD": {
                    "priceDimensions": {
                        "SKU.OD.D": {"pricePerUnit": {"USD": on_demand}},
                    },
                },
            },
            "Reserved": reserved,
        },
    }


def make_paginator(pages: list[dict[str, Any]]) -> MagicMock:
    paginator = MagicMock()
    paginator.paginate.return_value = iter(pages)
    return paginator


class TestParsePriceListItem(unittest.TestCase):
    """Defensive parsing of individual Price List entries."""

    def test_parses_json_string(self) -> None:
        """Price list items arrive as JSON strings."""
        parsed = parse_price_list_item(
            json.dumps(make_price_item()), "Linux",
        )
        assert parsed is not None
        self.assertEqual(parsed.instance_type, "t3.micro")
        self.assertEqual(parsed.vcpu, 2)
        self.assertEqual(parsed.memory_gib, 1.0)
        self.assertEqual(parsed.os, "Linux")
        self.assertAlmostEqual(parsed.on_demand or 0, 0.0104)

    def test_reserved_is_first_1yr_no_upfront(self) -> None:
        """Reserved uses the 1yr No Upfront hourly rate."""
        parsed = parse_price_list_item(make_price_item(), "Linux")
        assert parsed is not None
        self.assertAlmostEqual(parsed.reserved or 0, 0.0065)

    def test_reserved_none_without_matching_term(self) -> None:
        """Other reserved terms leave reserved unset."""
        item = make_price_item(
            reserved_terms=[("3yr", "All Upfront", "0.0")],
        )
        parsed = parse_price_list_item(item, "Linux")
        assert parsed is not None
        self.assertIsNone(parsed.reserved)

    def test_memory_with_thousands_separator(self) -> None:
        """Memory such as 1,024 GiB is parsed."""
        item = make_price_item()
        item["product"]["attributes"]["memory"] = "1,024 GiB"
        parsed = parse_price_list_item(item, "Linux")
        assert parsed is not None
        self.assertEqual(parsed.memory_gib, 1024.0)

    def test_malformed_json_returns_none(self) -> None:
        """Bad JSON items are skipped."""
        self.assertIsNone(parse_price_list_item("{not json", "Linux"))

    def test_missing_attributes_returns_none(self) -> None:
        """Items without attributes are skipped."""
        item = make_price_item()
        del item["product"]["attributes"]["vcpu"]
        self.assertIsNone(parse_price_list_item(item, "Linux"))

    def test_non_ec2_service_returns_none(self) -> None:
        """Non-EC2 items are skipped."""
        item = make_price_item(servicecode="AmazonRDS")
        self.assertIsNone(parse_price_list_item(item, "Linux"))


class TestSpotQuotes(unittest.TestCase):
    """Reduction of Spot history to one quote per type."""

    def test_newest_entry_wins(self) -> None:
        """The newest Spot quote per type is kept."""
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)
        quotes = latest_spot_quotes([
            {
                "InstanceType": "t3.micro",
                "SpotPrice": "0.0040",
                "Timestamp": now - timedelta(hours=2),
            },
            {
                "InstanceType": "t3.micro",
                "SpotPrice": "0.0031",
                "Timestamp": now,
            },
            {
                "InstanceType": "t3.micro",
                "SpotPrice": "0.0050",
                "Timestamp": now - timedelta(hours=1),
            },
        ])
        self.assertEqual(quotes["t3.micro"].price, 0.0031)
        self.assertEqual(quotes["t3.micro"].timestamp, now)

    def test_malformed_entries_skipped(self) -> None:
        """Spot entries without a price are skipped."""
        quotes = latest_spot_quotes([
            {"InstanceType": "m5.large", "SpotPrice": "abc",
             "Timestamp": "2024-06-01T00:00:00Z"},
            {"SpotPrice": "0.1", "Timestamp": "2024-06-01T00:00:00Z"},
            {"InstanceType": "c5.large", "SpotPrice": "0.034",
             "Timestamp": "2024-06-01T00:00:00Z"},
        ])
        self.assertEqual(list(quotes), ["c5.large"])
        self.assertEqual(
            quotes["c5.large"].timestamp.tzinfo, timezone.utc,
        )

    def test_merge_sets_null_when_absent(self) -> None:
        """Types without a Spot quote keep spot None."""
        ts = datetime(2024, 6, 1, tzinfo=timezone.utc)
        instances = [
            InstancePricing("t3.micro", 2, 1.0, "", "Linux", 0.0104),
            InstancePricing("m5.large", 2, 8.0, "", "Linux", 0.096),
        ]
        merged = merge_spot_prices(
            instances, {"t3.micro": SpotQuote(0.0031, ts)},
        )
        self.assertEqual(merged[0].spot, 0.0031)
        self.assertEqual(merged[0].spot_last_updated, ts)
        self.assertIsNone(merged[1].spot)
        self.assertIsNone(merged[1].spot_last_updated)


class TestPricingGateway(unittest.TestCase):
    """Gateway calls against mocked boto3 clients."""

    def setUp(self) -> None:
        self.pricing_client = MagicMock()
        self.ec2_client = MagicMock()
        self.factory = MagicMock(
            side_effect=lambda service, region_name: (
                self.pricing_client if service == "pricing"
                else self.ec2_client
            ),
        )
        self.gateway = PricingGateway(
            client_factory=self.factory, pricing_region="us-east-1",
        )

    def test_fetch_list_prices_filters_and_pages(self) -> None:
        """All pages are read with the region and OS filters."""
        self.pricing_client.get_paginator.return_value = make_paginator([
            {"PriceList": [json.dumps(make_price_item("t3.micro"))]},
            {"PriceList": [
                json.dumps(make_price_item("m5.large")),
                "{broken",
            ]},
        ])
        result = self.gateway.fetch_list_prices("eu-west-1", "Linux")

        self.assertEqual(
            [i.instance_type for i in result], ["t3.micro", "m5.large"],
        )
        self.factory.assert_called_once_with(
            "pricing", region_name="us-east-1",
        )
        kwargs = self.pricing_client.get_paginator.return_value \
            .paginate.call_args.kwargs
        self.assertEqual(kwargs["ServiceCode"], "AmazonEC2")
        fields = {f["Field"]: f["Value"] for f in kwargs["Filters"]}
        self.assertEqual(fields["regionCode"], "eu-west-1")
        self.assertEqual(fields["operatingSystem"], "Linux")
        self.assertEqual(fields["tenancy"], "Shared")
        self.assertEqual(fields["capacitystatus"], "Used")
        self.assertEqual(fields["preInstalledSw"], "NA")
        self.assertNotIn("instanceType", fields)

    def test_fetch_list_prices_single_type_filter(self) -> None:
        """One instance type adds an instanceType filter."""
        self.pricing_client.get_paginator.return_value = make_paginator(
            [{"PriceList": []}],
        )
        self.gateway.fetch_list_prices("us-east-1", "Windows", "c5.large")
        kwargs = self.pricing_client.get_paginator.return_value \
            .paginate.call_args.kwargs
        fields = {f["Field"]: f["Value"] for f in kwargs["Filters"]}
        self.assertEqual(fields["instanceType"], "c5.large")

    def test_fetch_spot_prices_maps_os_description(self) -> None:
        """The OS maps to its Spot product description."""
        now = datetime.now(timezone.utc)
        self.ec2_client.get_paginator.return_value = make_paginator([
            {"SpotPriceHistory": [
                {"InstanceType": "t3.micro", "SpotPrice": "0.0031",
                 "Timestamp": now},
            ]},
        ])
        quotes = self.gateway.fetch_spot_prices(
            "us-west-2", "Linux", ["t3.micro"],
        )
        self.assertEqual(quotes["t3.micro"].price, 0.0031)
        self.factory.assert_called_once_with(
            "ec2", region_name="us-west-2",
        )
        kwargs = self.ec2_client.get_paginator.return_value \
            .paginate.call_args.kwargs
        self.assertEqual(kwargs["ProductDescriptions"], ["Linux/UNIX"])
        self.assertEqual(kwargs["InstanceTypes"], ["t3.micro"])

    def test_ec2_clients_memoised_per_region(self) -> None:
        """One EC2 client is built per region."""
        self.ec2_client.get_paginator.side_effect = (
            lambda _name: make_paginator([{"SpotPriceHistory": []}])
        )
        self.gateway.fetch_spot_prices("us-east-1", "Linux")
        self.gateway.fetch_spot_prices("us-east-1", "Windows")
        self.assertEqual(self.factory.call_count, 1)

    def test_client_error_propagates(self) -> None:
        """AWS client errors reach the caller."""
        paginator = MagicMock()
        paginator.paginate.side_effect = ClientError(
            {"Error": {"Code": "ThrottlingException", "Message": "slow"}},
            "GetProducts",
        )
        self.pricing_client.get_paginator.return_value = paginator
        with self.assertRaises(ClientError):
            self.gateway.fetch_list_prices("us-east-1", "Linux")
