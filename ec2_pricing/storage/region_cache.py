# ec2_pricing/storage/region_cache.py

"""In-memory per-region pricing cache with a fixed TTL."""

import logging
import threading
import time
from dataclasses import dataclass

from ec2_pricing.config.settings import Settings
from ec2_pricing.models.instance_pricing import InstancePricing
from ec2_pricing.services.pricing_gateway import (
    PricingGateway,
    merge_spot_prices,
)

logger = logging.getLogger("ec2_pricing.cache")


@dataclass
class CacheEntry:
    """Merged pricing for every supported OS in one region."""

    data: list[InstancePricing]
    timestamp: float


class RegionCache:
    """Caches merged list + Spot pricing per region.

    Entries are replaced wholesale on refresh, never patched.  Concurrent
    misses for the same region wait on a per-region lock so that only
    one of them calls the gateway; the others read the freshly stored
    entry.
    """

    def __init__(
        self,
        gateway: PricingGateway,
        ttl: float | None = None,
        os_list: list[str] | None = None,
    ) -> None:
        self._gateway = gateway
        self._ttl: float = (
            Settings.CACHE_TTL if ttl is None else ttl
        )
        self._os_list = os_list or Settings.SUPPORTED_OS
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get(self, region: str) -> list[InstancePricing]:
        """Return pricing for ``region``, refilling it when stale."""
        fresh = self._fresh_entry(region, time.time())
        if fresh is not None:
            logger.debug("Cache hit for %s", region)
            return list(fresh.data)

        with self._region_lock(region):
            # Another caller may have filled it while we waited
            fresh = self._fresh_entry(region, time.time())
            if fresh is not None:
                logger.debug(
                    "Cache filled concurrently for %s", region,
                )
                return list(fresh.data)

            data = self._fetch(region)
            self._entries[region] = CacheEntry(
                data=data, timestamp=time.time(),
            )
            logger.info(
                "Cached %d instances for %s", len(data), region,
            )
            return list(data)

    def _fresh_entry(
        self, region: str, now: float,
    ) -> CacheEntry | None:
        entry = self._entries.get(region)
        if entry is not None and now - entry.timestamp < self._ttl:
            return entry
        return None

    def _region_lock(self, region: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(region, threading.Lock())

    def _fetch(self, region: str) -> list[InstancePricing]:
        """Fetch and merge list + Spot prices for every OS."""
        merged: list[InstancePricing] = []
        for os_name in self._os_list:
            list_prices = self._gateway.fetch_list_prices(
                region, os_name
            )
            spot_quotes = self._gateway.fetch_spot_prices(
                region, os_name
            )
            merged.extend(merge_spot_prices(list_prices, spot_quotes))
        return merged
