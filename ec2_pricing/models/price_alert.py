# ec2_pricing/models/price_alert.py

"""Price alert model persisted by the alert store."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class PriceAlert:
    """A user's request to be emailed when a price drops to a threshold.

    The alert fires when the current price is less than or equal to
    ``threshold``.
    """

    id: int
    instance_type: str
    region: str
    os: str
    price_type: str
    threshold: float
    email: str
    active: bool = True
    last_notified: datetime | None = None
    notification_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase wire format used by the API."""
        return {
            "id": self.id,
            "instanceType": self.instance_type,
            "region": self.region,
            "os": self.os,
            "priceType": self.price_type,
            "threshold": self.threshold,
            "email": self.email,
            "active": self.active,
            "lastNotified": _iso(self.last_notified),
            "notificationCount": self.notification_count,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
