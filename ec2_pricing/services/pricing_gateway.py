# ec2_pricing/services/pricing_gateway.py

"""Fetches EC2 list prices and Spot prices from AWS.

List prices (On-Demand and the 1-year / No Upfront Reserved term) come
from the Price List API, which is only served from a few regions and
answers for every region.  Spot prices come from the regional EC2
``DescribeSpotPriceHistory`` call.

Individual records are parsed defensively: a malformed price list item
or spot entry is skipped and logged.  Transport errors for the batch as
a whole propagate to the caller untouched.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import boto3

from ec2_pricing.config.settings import Settings
from ec2_pricing.models.instance_pricing import InstancePricing, SpotQuote

logger = logging.getLogger("ec2_pricing.gateway")

_RESERVED_LEASE = "1yr"
_RESERVED_PURCHASE_OPTION = "No Upfront"


def _first_usd_price(term: dict[str, Any]) -> float:
    """Return the USD unit price of a term's first price dimension."""
    dimension = next(iter(term["priceDimensions"].values()))
    return float(dimension["pricePerUnit"]["USD"])


def _parse_memory(raw: str) -> float:
    """Parse a Price List memory string such as ``"1,024 GiB"``."""
    return float(raw.replace("GiB", "").replace(",", "").strip())


def parse_price_list_item(
    raw: str | dict[str, Any], os_name: str,
) -> InstancePricing | None:
    """Turn one Price List entry into an :class:`InstancePricing`.

    Returns ``None`` for entries that are not EC2 instances or are
    missing the fields we need.
    """
    try:
        product: dict[str, Any] = (
            json.loads(raw) if isinstance(raw, str) else raw
        )
        # Live responses nest attributes under "product"
        attributes: dict[str, Any] = product.get(
            "product", product
        )["attributes"]
        terms: dict[str, Any] = product.get("terms", {})

        if attributes.get("servicecode", "AmazonEC2") != "AmazonEC2":
            return None
        instance_type = attributes["instanceType"]

        on_demand: float | None = None
        on_demand_terms = terms.get("OnDemand") or {}
        if on_demand_terms:
            on_demand = _first_usd_price(
                next(iter(on_demand_terms.values()))
            )

        reserved: float | None = None
        for term in (terms.get("Reserved") or {}).values():
            term_attrs = term.get("termAttributes", {})
            if (
                term_attrs.get("LeaseContractLength") == _RESERVED_LEASE
                and term_attrs.get("PurchaseOption")
                == _RESERVED_PURCHASE_OPTION
            ):
                reserved = _first_usd_price(term)
                break

        return InstancePricing(
            instance_type=instance_type,
            vcpu=int(attributes["vcpu"]),
            memory_gib=_parse_memory(attributes["memory"]),
            network_performance=attributes.get(
                "networkPerformance", ""
            ),
            os=os_name,
            on_demand=on_demand,
            reserved=reserved,
        )
    except (
        json.JSONDecodeError,
        KeyError,
        StopIteration,
        TypeError,
        ValueError,
        AttributeError,
    ) as exc:
        logger.debug("Skipping malformed price list item: %s", exc)
        return None


def _parse_timestamp(value: Any) -> datetime:
    """Normalise a Spot timestamp (datetime or ISO string) to aware UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def latest_spot_quotes(
    entries: list[dict[str, Any]],
) -> dict[str, SpotQuote]:
    """Reduce raw Spot history entries to the newest quote per type."""
    quotes: dict[str, SpotQuote] = {}
    for entry in entries:
        try:
            instance_type = entry["InstanceType"]
            quote = SpotQuote(
                price=float(entry["SpotPrice"]),
                timestamp=_parse_timestamp(entry["Timestamp"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("Skipping malformed spot entry: %s", exc)
            continue
        current = quotes.get(instance_type)
        if current is None or quote.timestamp > current.timestamp:
            quotes[instance_type] = quote
    return quotes


def merge_spot_prices(
    list_prices: list[InstancePricing],
    spot_quotes: dict[str, SpotQuote],
) -> list[InstancePricing]:
    """Attach Spot quotes to list-price records by instance type."""
    for instance in list_prices:
        quote = spot_quotes.get(instance.instance_type)
        instance.spot = quote.price if quote else None
        instance.spot_last_updated = quote.timestamp if quote else None
    return list_prices


class PricingGateway:
    """Thin boto3 wrapper over the Price List and EC2 APIs."""

    def __init__(
        self,
        client_factory: Callable[..., Any] | None = None,
        pricing_region: str | None = None,
    ) -> None:
        self._client_factory = client_factory or boto3.client
        self._pricing_region = (
            pricing_region or Settings.PRICING_API_REGION
        )
        self._pricing_client: Any = None
        self._ec2_clients: dict[str, Any] = {}

    def _pricing(self) -> Any:
        if self._pricing_client is None:
            self._pricing_client = self._client_factory(
                "pricing", region_name=self._pricing_region,
            )
        return self._pricing_client

    def _ec2(self, region: str) -> Any:
        if region not in self._ec2_clients:
            self._ec2_clients[region] = self._client_factory(
                "ec2", region_name=region,
            )
        return self._ec2_clients[region]

    # ── List prices ──────────────────────────────────────

    def fetch_list_prices(
        self,
        region: str,
        os_name: str,
        instance_type: str | None = None,
    ) -> list[InstancePricing]:
        """Fetch On-Demand and 1yr/No Upfront Reserved prices.

        Pass ``instance_type`` to narrow the query to a single type.
        """
        filters = [
            {"Type": "TERM_MATCH", "Field": "regionCode", "Value": region},
            {"Type": "TERM_MATCH", "Field": "operatingSystem", "Value": os_name},
            {"Type": "TERM_MATCH", "Field": "tenancy", "Value": "Shared"},
            {"Type": "TERM_MATCH", "Field": "capacitystatus", "Value": "Used"},
            {"Type": "TERM_MATCH", "Field": "preInstalledSw", "Value": "NA"},
        ]
        if instance_type:
            filters.append({
                "Type": "TERM_MATCH",
                "Field": "instanceType",
                "Value": instance_type,
            })

        paginator = self._pricing().get_paginator("get_products")
        instances: list[InstancePricing] = []
        skipped = 0
        for page in paginator.paginate(
            ServiceCode="AmazonEC2", Filters=filters,
        ):
            for item in page.get("PriceList", []):
                parsed = parse_price_list_item(item, os_name)
                if parsed is None:
                    skipped += 1
                    continue
                instances.append(parsed)

        logger.info(
            "Fetched %d list prices for %s/%s (%d skipped)",
            len(instances),
            region,
            os_name,
            skipped,
        )
        return instances

    # ── Spot prices ──────────────────────────────────────

    def fetch_spot_prices(
        self,
        region: str,
        os_name: str,
        instance_types: list[str] | None = None,
    ) -> dict[str, SpotQuote]:
        """Fetch the current Spot price per instance type."""
        description = Settings.SPOT_PRODUCT_DESCRIPTIONS.get(
            os_name, os_name
        )
        params: dict[str, Any] = {
            "ProductDescriptions": [description],
            "StartTime": datetime.now(timezone.utc),
        }
        if instance_types:
            params["InstanceTypes"] = list(instance_types)

        paginator = self._ec2(region).get_paginator(
            "describe_spot_price_history"
        )
        entries: list[dict[str, Any]] = []
        for page in paginator.paginate(**params):
            entries.extend(page.get("SpotPriceHistory", []))

        quotes = latest_spot_quotes(entries)
        logger.info(
            "Fetched spot prices for %d instance types in %s/%s",
            len(quotes),
            region,
            os_name,
        )
        return quotes
