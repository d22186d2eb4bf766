"""Background relationship refits.

A refit fits every ordered pair of tracked markets, so its cost grows
with the square of the market count times the history length. Running it
from ``RefitScheduler`` on a timer keeps that work off the per-tick path;
set ``PipelineConfig.refit_interval`` to 0 to disable the inline refits.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from synarb.core.pipeline import SyntheticArbPipeline
from synarb.logging import get_logger


class RefitScheduler:
    """Refits a pipeline's relationships every ``interval_seconds``.

    Each refit runs in a worker thread so tick processing on the event
    loop is not blocked while the engine fits.

    Attributes:
        pipeline: Pipeline whose relationships are refitted.
        interval_seconds: Seconds between refits.
    """

    def __init__(
        self,
        pipeline: SyntheticArbPipeline,
        interval_seconds: float = 30.0,
    ) -> None:
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None
        self._last_refit_at: datetime | None = None
        self._logger = get_logger("refit_scheduler")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_refit_at(self) -> datetime | None:
        """Completion time of the most recent scheduled refit."""
        return self._last_refit_at

    async def start(self) -> None:
        """Start the refit loop. Does nothing if already running."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        self._logger.info("refit_scheduler_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Stop the refit loop and wait for it to finish."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._logger.info("refit_scheduler_stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                published = await asyncio.to_thread(self.pipeline.refit)
                self._last_refit_at = datetime.now(UTC)
                self._logger.debug("scheduled_refit_completed", published=published)

                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break
