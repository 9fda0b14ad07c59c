"""Resend throttle: minimum interval between issuances of one chain."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from .domain.challenge import utcnow
from .domain.results import ThrottleDecision

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .domain.enums import Purpose, SubjectType
    from .ports import IChallengeStore

logger = logging.getLogger(__name__)


class ResendThrottle:
    """Denies an issuance while the chain's latest challenge is younger than
    the cool-down.

    No counter store is kept: the decision is read from ``created_at`` of the
    most recent challenge of the (tenant, subject, purpose) chain. Challenges
    whose delivery failed are ignored so a failed send can be retried at once.
    """

    def __init__(
        self,
        store: IChallengeStore,
        cooldown_seconds: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self._clock = clock

    async def allow(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
    ) -> ThrottleDecision:
        if not self.cooldown:
            return ThrottleDecision.allowed()

        latest = await self._store.find_latest(
            tenant_id, subject_id, subject_type, purpose, include_delivery_failed=False
        )
        if latest is None:
            return ThrottleDecision.allowed()

        elapsed = self._clock() - latest.created_at
        if elapsed >= self.cooldown:
            return ThrottleDecision.allowed()

        retry_after = (self.cooldown - elapsed).total_seconds()
        logger.debug(
            "Issuance throttled for subject %s (%s), retry in %.1fs",
            subject_id,
            purpose.value,
            retry_after,
        )
        return ThrottleDecision.denied(retry_after)


__all__: list[str] = ["ResendThrottle"]
