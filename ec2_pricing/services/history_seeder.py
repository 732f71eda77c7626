# ec2_pricing/services/history_seeder.py

"""One-shot synthetic history for instance types with no recorded prices.

The generated series is a jittered copy of today's price and exists only
so charts have something to draw before the scheduler has accumulated
real observations.  It is not a model of historical pricing.
"""

import logging
import random
from datetime import datetime, timedelta, timezone

from ec2_pricing.config.settings import Settings
from ec2_pricing.models.instance_pricing import InstancePricing
from ec2_pricing.models.price_point import PriceHistoryPoint

logger = logging.getLogger("ec2_pricing.seeder")


def _jitter(
    price: float, rng: random.Random, jitter: float,
) -> float:
    return price * (1 + rng.uniform(-jitter, jitter))


def generate_seed_history(
    current: InstancePricing,
    region: str,
    days: int,
    now: datetime | None = None,
    rng: random.Random | None = None,
    jitter: float | None = None,
) -> list[PriceHistoryPoint]:
    """Generate ``days`` daily points per known price kind.

    Reserved points are only emitted every seventh day, matching how
    rarely reserved rates change.  Result is sorted oldest first.
    """
    anchor = now or datetime.now(timezone.utc)
    rand = rng or random.Random()
    spread = Settings.HISTORY_JITTER if jitter is None else jitter
    every = Settings.RESERVED_SEED_EVERY_DAYS

    points: list[PriceHistoryPoint] = []
    for i in range(days):
        timestamp = anchor - timedelta(days=i)
        prices: list[tuple[str, float | None]] = [
            ("onDemand", current.on_demand),
            ("reserved", current.reserved if i % every == 0 else None),
            ("spot", current.spot),
        ]
        for price_type, price in prices:
            if price is None:
                continue
            points.append(PriceHistoryPoint(
                instance_type=current.instance_type,
                region=region,
                os=current.os,
                price_type=price_type,
                price=_jitter(price, rand, spread),
                timestamp=timestamp,
            ))

    points.sort(key=lambda p: p.timestamp)
    logger.info(
        "Generated %d seed points for %s in %s (%s, %d days)",
        len(points),
        current.instance_type,
        region,
        current.os,
        days,
    )
    return points
