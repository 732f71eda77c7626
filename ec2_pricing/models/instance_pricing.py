# ec2_pricing/models/instance_pricing.py

"""Per-instance pricing model assembled on every cache refresh."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class SpotQuote:
    """The most recent Spot price seen for one instance type."""

    price: float
    timestamp: datetime


@dataclass
class InstancePricing:
    """List and Spot prices for one instance type / OS in a region."""

    instance_type: str
    vcpu: int
    memory_gib: float
    network_performance: str
    os: str
    on_demand: float | None = None
    reserved: float | None = None
    spot: float | None = None
    spot_last_updated: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase wire format used by the API."""
        return {
            "instanceType": self.instance_type,
            "vCPU": self.vcpu,
            "memoryGiB": self.memory_gib,
            "networkPerformance": self.network_performance,
            "os": self.os,
            "onDemand": self.on_demand,
            "reserved": self.reserved,
            "spot": self.spot,
            "spotLastUpdated": (
                self.spot_last_updated.isoformat()
                if self.spot_last_updated
                else None
            ),
        }
