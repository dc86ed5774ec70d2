"""Periodic refresh of the quote repository.

The scheduler runs one fetch cycle on start and another every
``REFRESH_INTERVAL`` seconds. Only one cycle runs at a time: a trigger that
arrives while a cycle is in flight is ignored.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cryptocalc.config import REFRESH_INTERVAL
from cryptocalc.data_fetcher import fallback_snapshot, fetch_snapshot
from cryptocalc.models import Snapshot
from cryptocalc.repository import QuoteRepository

logger = logging.getLogger(__name__)

JOB_ID = "price_refresh"

SnapshotCallback = Callable[[Snapshot], None]


class RefreshState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RefreshScheduler:
    """Keep a QuoteRepository fresh and tell the UI when it changed.

    Args:
        repository: Repository to replace on every completed cycle.
        fetch: Coroutine function producing a snapshot (defaults to a live fetch).
        interval: Seconds between the starts of two scheduled cycles.
        on_refresh: Called with the new snapshot after every cycle.
        on_first_load: Called once, after the first cycle completes.
    """

    def __init__(
        self,
        repository: QuoteRepository,
        fetch: Callable[[], Awaitable[Snapshot]] = fetch_snapshot,
        interval: float = REFRESH_INTERVAL,
        on_refresh: SnapshotCallback | None = None,
        on_first_load: SnapshotCallback | None = None,
    ):
        self.repository = repository
        self.interval = interval
        self._fetch = fetch
        self._on_refresh = on_refresh
        self._on_first_load = on_first_load
        self._state = RefreshState.IDLE
        self._loaded = False
        self._cycle: asyncio.Future | None = None
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def refresh(self) -> bool:
        """Run one fetch cycle unless one is already running.

        Returns:
            True if a cycle ran, False if the call was dropped.
        """
        if self._state is RefreshState.FETCHING:
            logger.debug("Refresh already in progress, skipping")
            return False

        self._state = RefreshState.FETCHING
        self._cycle = asyncio.get_running_loop().create_future()
        try:
            try:
                snapshot = await self._fetch()
            except Exception:
                logger.exception("Refresh cycle failed, using static data")
                snapshot = fallback_snapshot()
            self.repository.replace(snapshot)
        finally:
            self._state = RefreshState.IDLE
            self._cycle.set_result(None)

        if snapshot.is_static:
            logger.warning("Showing static data (quotes: %s, rates: %s)",
                           snapshot.quotes_source, snapshot.rates_source)

        self._notify(self._on_refresh, snapshot)
        if not self._loaded:
            self._loaded = True
            self._notify(self._on_first_load, snapshot)
        return True

    def _notify(self, callback: SnapshotCallback | None, snapshot: Snapshot) -> None:
        if callback is None:
            return
        try:
            callback(snapshot)
        except Exception:
            logger.exception("Refresh callback %r raised", callback)

    def start(self) -> AsyncIOScheduler:
        """Start refreshing in the background on the running event loop."""
        if self.running:
            return self._scheduler

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.refresh,
            IntervalTrigger(seconds=self.interval),
            id=JOB_ID,
            name="Price refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(),
        )
        self._scheduler.start()
        logger.info("Starting price refresh every %ss", self.interval)
        return self._scheduler

    async def stop(self) -> None:
        """Stop the background refresh.

        A cycle that is already fetching is allowed to finish first.
        """
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is None or not scheduler.running:
            return
        scheduler.pause()
        if self._cycle is not None and not self._cycle.done():
            await self._cycle
        scheduler.shutdown(wait=False)
        logger.info("Stopped price refresh")
