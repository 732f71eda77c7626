# ec2_pricing/services/scheduler.py

"""Periodic Spot price polling, history recording and alert checks."""

import asyncio
import logging
from datetime import datetime, timezone

from ec2_pricing.config.settings import Settings
from ec2_pricing.models.price_point import PriceHistoryPoint
from ec2_pricing.services.notifier import AlertNotifier
from ec2_pricing.services.pricing_gateway import PricingGateway
from ec2_pricing.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("ec2_pricing.scheduler")


class PriceUpdateScheduler:
    """Polls Spot prices for tracked instance types on a fixed cadence.

    Each tick walks every region × OS pair.  A failure in one pair is
    logged and that pair is skipped until the next tick; it never stops
    the remaining pairs or the loop.
    """

    def __init__(
        self,
        gateway: PricingGateway,
        history_db: PriceHistoryDB,
        notifier: AlertNotifier,
        regions: list[str] | None = None,
        os_list: list[str] | None = None,
        instance_types: list[str] | None = None,
        interval_hours: float | None = None,
    ) -> None:
        self._gateway = gateway
        self._history_db = history_db
        self._notifier = notifier
        self.regions = regions or list(Settings.AWS_REGIONS)
        self.os_list = os_list or Settings.SUPPORTED_OS
        self.instance_types = (
            instance_types or Settings.TRACKED_INSTANCE_TYPES
        )
        self.interval_hours: float = (
            Settings.PRICE_UPDATE_INTERVAL_HOURS
            if interval_hours is None
            else interval_hours
        )
        self._task: asyncio.Task[None] | None = None

    # ── One tick ─────────────────────────────────────────

    def _update_pair(
        self, region: str, os_name: str, now: datetime,
    ) -> int:
        """Record and evaluate Spot prices for one region/OS pair."""
        quotes = self._gateway.fetch_spot_prices(
            region, os_name, self.instance_types,
        )
        points: list[PriceHistoryPoint] = []
        for instance_type in self.instance_types:
            quote = quotes.get(instance_type)
            if quote is None:
                continue
            points.append(PriceHistoryPoint(
                instance_type=instance_type,
                region=region,
                os=os_name,
                price_type="spot",
                price=quote.price,
                timestamp=now,
            ))
        recorded = self._history_db.record_points(points)

        for point in points:
            try:
                self._notifier.check_alerts(
                    point.instance_type,
                    region,
                    os_name,
                    "spot",
                    point.price,
                    now=now,
                )
            except Exception as exc:
                logger.error(
                    "Alert check failed for %s in %s/%s: %s",
                    point.instance_type,
                    region,
                    os_name,
                    exc,
                    exc_info=True,
                )
        return recorded

    def run_once(self, now: datetime | None = None) -> int:
        """Run a single polling pass.  Returns points recorded."""
        moment = now or datetime.now(timezone.utc)
        logger.info("Running scheduled price history update")
        total = 0
        for region in self.regions:
            for os_name in self.os_list:
                try:
                    total += self._update_pair(region, os_name, moment)
                except Exception as exc:
                    logger.error(
                        "Price update failed for %s/%s: %s",
                        region,
                        os_name,
                        exc,
                        exc_info=True,
                    )

        if total:
            logger.info("Updated %d price points", total)
        else:
            logger.info("No price updates to save")
        return total

    # ── Background loop ──────────────────────────────────

    async def run_forever(self) -> None:
        """Run immediately, then once every ``interval_hours``."""
        logger.info(
            "Price history updates scheduled every %.2f hours",
            self.interval_hours,
        )
        while True:
            try:
                await asyncio.to_thread(self.run_once)
            except Exception:
                logger.error(
                    "Scheduled price update crashed", exc_info=True,
                )
            await asyncio.sleep(self.interval_hours * 3600)

    def start(self) -> asyncio.Task[None]:
        """Start the loop as a task on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Price update scheduler stopped")
