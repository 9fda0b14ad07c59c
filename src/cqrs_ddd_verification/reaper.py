"""ChallengeReaper: best-effort storage hygiene for challenges and devices."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from .domain.challenge import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .ports import IChallengeStore, ITrustedDeviceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReapResult:
    """Rows deleted by one reaper cycle."""

    challenges: int = 0
    devices: int = 0


class ChallengeReaper:
    """Deletes challenges older than the retention window, whatever their
    status, and trusted devices past their expiry.

    Correctness never depends on it: expiry is evaluated lazily by the engine.
    Failures are logged and never propagated.

    Use :meth:`run_once` from a scheduler, :meth:`run_forever` as a task, or
    ``start`` / ``stop`` to manage the task here.
    """

    def __init__(
        self,
        challenges: IChallengeStore,
        devices: ITrustedDeviceStore | None = None,
        retention_days: int = 90,
        poll_interval: float = 3600.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._challenges = challenges
        self._devices = devices
        self.retention = timedelta(days=retention_days)
        self._poll_interval = poll_interval
        self._clock = clock
        self._running = False
        self._task: asyncio.Task[None] | None = None

    async def run_once(self) -> ReapResult:
        """Execute a single cleanup cycle."""
        now = self._clock()
        challenges = devices = 0

        try:
            challenges = await self._challenges.purge(now - self.retention)
        except Exception:
            logger.exception("ChallengeReaper failed to purge challenges")

        if self._devices is not None:
            try:
                devices = await self._devices.purge_expired(now)
            except Exception:
                logger.exception("ChallengeReaper failed to purge trusted devices")

        if challenges or devices:
            logger.info(
                "ChallengeReaper: deleted %d challenge(s), %d trusted device(s)",
                challenges,
                devices,
            )
        return ReapResult(challenges=challenges, devices=devices)

    async def run_forever(self, interval: float | None = None) -> None:
        """Run a cycle every ``interval`` seconds until cancelled."""
        interval = self._poll_interval if interval is None else interval
        while True:
            await self.run_once()
            await asyncio.sleep(interval)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self.run_forever())
        logger.info("ChallengeReaper started (poll_interval=%.1fs)", self._poll_interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._task, timeout=5.0)
            self._task = None
        logger.info("ChallengeReaper stopped")


__all__: list[str] = ["ChallengeReaper", "ReapResult"]
