# ec2_pricing/models/price_point.py

"""Temporal price point model for price history tracking."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass
class PriceHistoryPoint:
    """A single price observation for an instance type at a point in time."""

    instance_type: str
    region: str
    os: str
    price_type: str
    price: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase wire format used by the API."""
        return {
            "instanceType": self.instance_type,
            "region": self.region,
            "os": self.os,
            "priceType": self.price_type,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
        }


def utc_isoformat(value: datetime) -> str:
    """Render a timestamp as fixed-width UTC ISO text for storage.

    Naive datetimes are taken to be UTC already.  Fixed width keeps
    lexical ordering in SQLite equal to chronological ordering.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(
        timespec="microseconds"
    )
