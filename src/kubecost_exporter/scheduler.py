from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .config import ApiSettings
from .constants import DEFAULT_UPDATE_INTERVAL
from .fetcher import AllocationFetcher, AllocationFetchError, build_url
from .metrics import MetricUpdater
from .window import parse_duration

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    success: bool
    records_fetched: int
    gauges_updated: int
    error: Optional[str] = None


class Poller:
    """Periodically fetches allocations and updates metrics.

    Ticks never overlap: each tick fetches, updates every gauge and only then
    waits for the next one. A tick that overruns the interval is followed
    immediately by the next. An interval of zero or less is replaced by one
    minute.
    """

    def __init__(
        self,
        fetcher: AllocationFetcher,
        updater: MetricUpdater,
        api: ApiSettings,
        interval: timedelta = timedelta(minutes=1),
        clock: Callable[[], Optional[datetime]] = lambda: None,
    ) -> None:
        self.fetcher = fetcher
        self.updater = updater
        self.api = api
        if interval <= timedelta(0):
            logger.warning(
                f"Update interval must be positive, got {interval}. "
                f"Defaulting to {DEFAULT_UPDATE_INTERVAL}"
            )
            interval = parse_duration(DEFAULT_UPDATE_INTERVAL)
        self.interval = interval
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    def build_url(self) -> str:
        """URL for the current tick; the query window is recomputed every time."""
        return build_url(
            self.api.host, self.api.port, self.api.path, self.api.parameters, now=self._clock()
        )

    async def run_once(self) -> PollResult:
        url = self.build_url()
        logger.debug(f"Polling {url}")
        try:
            records = await self.fetcher.fetch(url)
        except AllocationFetchError as e:
            logger.error(f"{e}")
            return PollResult(False, 0, 0, error=str(e))

        updated = self.updater.update(records)
        logger.info(f"Updated {updated} gauges from {len(records)} allocations")
        return PollResult(True, len(records), updated)

    async def _loop(self) -> None:
        interval = self.interval.total_seconds()
        while not self._stop_event.is_set():
            started = time.monotonic()
            await self.run_once()
            remaining = max(0.0, interval - (time.monotonic() - started))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                continue

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._stop_event.clear()
        self._task = loop.create_task(self._loop())

    def stop(self) -> None:
        self._stop_event.set()
        if self._task:
            self._task.cancel()

    async def wait_stopped(self) -> None:
        """Wait until the polling task has finished after ``stop``."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
