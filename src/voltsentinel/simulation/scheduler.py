"""Cooperative periodic tasks on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a synchronous callback every ``interval_s`` seconds.

    A failing callback is logged and the loop carries on with the next tick.
    """

    def __init__(self, name: str, interval_s: float, callback: Callable[[], None]) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._name = name
        self._interval_s = interval_s
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._ticks = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def ticks(self) -> int:
        """Number of callback invocations so far."""
        return self._ticks

    def start(self) -> None:
        """Schedule the loop on the running event loop; no-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_loop(), name=self._name)
        logger.info("periodic task %s started: interval=%.3fs", self._name, self._interval_s)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("periodic task %s stopped after %d ticks", self._name, self._ticks)

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval_s)
            self._ticks += 1
            try:
                self._callback()
            except Exception:
                logger.exception("periodic task %s tick failed", self._name)
