import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional
from uuid import UUID

from loguru import logger
from tortoise.expressions import Q

from livebid.core.clock import as_utc, utcnow
from livebid.core.config import settings
from livebid.enums.auction_status import AuctionStatus
from livebid.models.auction import Auction
from livebid.services.auction.lifecycle import LifecycleService


@dataclass
class SweepResult:
    started: int = 0
    ended: int = 0
    failed: int = 0


class AuctionScheduler:
    """
    Drives the lifecycle state machine.

    Two mechanisms share the same idempotent `LifecycleService.advance`:
    a periodic sweep over every auction whose stored status is stale, and a
    one-shot timer per auction for its next transition. Timers are only a
    latency optimisation rebuilt from the database on start; the sweep is
    what guarantees progress.
    """

    def __init__(
        self,
        lifecycle: LifecycleService,
        interval: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.lifecycle = lifecycle
        self.interval = interval if interval is not None else settings.scheduler_sweep_interval
        self.clock = clock
        self.timers: Dict[UUID, asyncio.Task] = {}
        self._loop_task: Optional[asyncio.Task] = None

    async def start(self):
        result = await self.sweep()
        logger.info(f"Catch-up sweep: {result.started} started, {result.ended} ended, {result.failed} failed")
        armed = await self.rearm()
        logger.info(f"Scheduler armed {armed} timers, sweeping every {self.interval}s")
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self):
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        for auction_id in list(self.timers):
            self.cancel(auction_id)
        logger.info("Scheduler stopped")

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = await self.sweep()
            except Exception:
                logger.exception("Error in scheduled auction status check")
                continue
            if result.started or result.ended:
                logger.info(f"Auction status update: {result.started} started, {result.ended} ended")

    async def sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """Advance every auction whose stored status is behind the clock"""
        now = as_utc(now or self.clock())
        due_ids = await Auction.filter(
            Q(status=AuctionStatus.upcoming, start_time__lte=now)
            | Q(status=AuctionStatus.live, end_time__lte=now)
        ).values_list("id", flat=True)

        result = SweepResult()
        for auction_id in due_ids:
            try:
                transitions = await self.lifecycle.advance(auction_id, now)
            except Exception:
                # One bad auction must not hold up the rest of the sweep
                logger.exception(f"Error advancing auction {auction_id}")
                result.failed += 1
                continue
            for transition in transitions:
                if transition.to_status == AuctionStatus.live:
                    result.started += 1
                else:
                    result.ended += 1
                    self.cancel(auction_id)
        return result

    async def rearm(self) -> int:
        auctions = await Auction.filter(status__in=[AuctionStatus.upcoming, AuctionStatus.live])
        for auction in auctions:
            self.track(auction)
        return len(auctions)

    def track(self, auction: Auction):
        """Arm (or re-arm) the timer for the auction's next transition"""
        self.cancel(auction.id)
        if auction.status == AuctionStatus.ended:
            return
        due_at = auction.start_time if auction.status == AuctionStatus.upcoming else auction.end_time
        delay = max(0.0, (as_utc(due_at) - as_utc(self.clock())).total_seconds())
        self.timers[auction.id] = asyncio.create_task(self._fire(auction.id, delay))

    def cancel(self, auction_id: UUID):
        task = self.timers.pop(auction_id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _fire(self, auction_id: UUID, delay: float):
        await asyncio.sleep(delay)
        if self.timers.get(auction_id) is asyncio.current_task():
            del self.timers[auction_id]
        try:
            await self.lifecycle.advance(auction_id)
            auction = await Auction.get_or_none(id=auction_id)
        except Exception:
            # The next sweep retries this auction
            logger.exception(f"Timer for auction {auction_id} failed")
            return
        if auction is not None and auction.status != AuctionStatus.ended and auction_id not in self.timers:
            self.track(auction)
