"""In-memory challenge store."""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from typing import TYPE_CHECKING

from ..domain.challenge import live_key
from ..domain.results import ChallengeStats
from ..exceptions import ChallengeStoreError
from ..ports import IChallengeStore

if TYPE_CHECKING:
    from datetime import datetime

    from ..domain.challenge import Challenge
    from ..domain.enums import Channel, Purpose, SubjectType


class InMemoryChallengeStore(IChallengeStore):
    """Dict-backed challenge store for tests and single-process use.

    Every operation runs under one ``asyncio.Lock``. Live keys are tracked in
    a separate map with the same semantics as the unique ``live_key`` column
    of the SQL store: a key is released when its challenge is verified,
    locked, superseded or marked delivery-failed.
    """

    def __init__(self) -> None:
        self._challenges: dict[str, Challenge] = {}
        self._order: dict[str, int] = {}
        self._live: dict[str, str] = {}
        self._seq = itertools.count()
        self._lock = asyncio.Lock()

    def _owned(self, tenant_id: str, challenge_id: str) -> Challenge | None:
        challenge = self._challenges.get(challenge_id)
        if challenge is None or challenge.tenant_id != tenant_id:
            return None
        return challenge

    def _holds_key(self, challenge: Challenge) -> bool:
        return self._live.get(challenge.live_key) == challenge.id

    def _release(self, challenge: Challenge) -> None:
        if self._holds_key(challenge):
            del self._live[challenge.live_key]

    def _insert(self, challenge: Challenge) -> str:
        if challenge.id in self._challenges:
            raise ChallengeStoreError(f"Challenge {challenge.id!r} already exists")
        if challenge.live_key in self._live:
            raise ChallengeStoreError(
                f"A live challenge already exists for {challenge.live_key!r}"
            )
        self._challenges[challenge.id] = challenge
        self._order[challenge.id] = next(self._seq)
        self._live[challenge.live_key] = challenge.id
        return challenge.id

    def _supersede(self, key: str, now: datetime) -> int:
        current_id = self._live.pop(key, None)
        if current_id is None:
            return 0
        current = self._challenges[current_id]
        # An expired holder just gives up the key and stays EXPIRED.
        if not current.is_live(now):
            return 0
        self._challenges[current_id] = current.model_copy(update={"superseded_at": now})
        return 1

    async def create(self, challenge: Challenge) -> str:
        async with self._lock:
            return self._insert(challenge)

    async def supersede_and_create(self, challenge: Challenge, now: datetime) -> int:
        async with self._lock:
            if challenge.id in self._challenges:
                raise ChallengeStoreError(f"Challenge {challenge.id!r} already exists")
            superseded = self._supersede(challenge.live_key, now)
            self._insert(challenge)
            return superseded

    async def get(self, tenant_id: str, challenge_id: str) -> Challenge | None:
        async with self._lock:
            return self._owned(tenant_id, challenge_id)

    async def find_live(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        now: datetime,
    ) -> Challenge | None:
        async with self._lock:
            for challenge in self._chain(tenant_id, subject_id, subject_type, purpose):
                if challenge.is_live(now):
                    return challenge
            return None

    def _chain(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
    ) -> list[Challenge]:
        chain = [
            c
            for c in self._challenges.values()
            if c.tenant_id == tenant_id
            and c.subject_id == subject_id
            and c.subject_type == subject_type
            and c.purpose == purpose
        ]
        chain.sort(key=lambda c: (c.created_at, self._order[c.id]), reverse=True)
        return chain

    async def find_latest(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        *,
        include_delivery_failed: bool = False,
    ) -> Challenge | None:
        async with self._lock:
            for challenge in self._chain(tenant_id, subject_id, subject_type, purpose):
                if include_delivery_failed or challenge.delivery_failed_at is None:
                    return challenge
            return None

    async def supersede_live(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        now: datetime,
    ) -> int:
        async with self._lock:
            return self._supersede(
                live_key(tenant_id, subject_id, subject_type, purpose), now
            )

    async def increment_attempt(
        self, tenant_id: str, challenge_id: str
    ) -> Challenge | None:
        async with self._lock:
            challenge = self._owned(tenant_id, challenge_id)
            if challenge is None or not self._holds_key(challenge):
                return None
            if challenge.attempts >= challenge.max_attempts:
                return None
            updated = challenge.model_copy(update={"attempts": challenge.attempts + 1})
            self._challenges[challenge_id] = updated
            if updated.is_locked:
                self._release(updated)
            return updated

    async def mark_verified(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> Challenge | None:
        async with self._lock:
            challenge = self._owned(tenant_id, challenge_id)
            if challenge is None or not self._holds_key(challenge):
                return None
            if challenge.is_locked or challenge.is_expired(now):
                return None
            updated = challenge.model_copy(update={"verified_at": now})
            self._challenges[challenge_id] = updated
            self._release(updated)
            return updated

    async def mark_delivery_failed(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> Challenge | None:
        async with self._lock:
            challenge = self._owned(tenant_id, challenge_id)
            if challenge is None or not self._holds_key(challenge):
                return None
            updated = challenge.model_copy(update={"delivery_failed_at": now})
            self._challenges[challenge_id] = updated
            self._release(updated)
            return updated

    async def purge(self, older_than: datetime) -> int:
        async with self._lock:
            doomed = [c for c in self._challenges.values() if c.created_at < older_than]
            for challenge in doomed:
                self._release(challenge)
                del self._challenges[challenge.id]
                del self._order[challenge.id]
            return len(doomed)

    async def summarize(self, tenant_id: str, since: datetime) -> list[ChallengeStats]:
        async with self._lock:
            counts: dict[tuple[Purpose, Channel], list[int]] = defaultdict(
                lambda: [0, 0, 0]
            )
            for c in self._challenges.values():
                if c.tenant_id != tenant_id or c.created_at < since:
                    continue
                row = counts[(c.purpose, c.channel)]
                row[0] += 1
                if c.verified_at is not None:
                    row[1] += 1
                elif c.is_locked:
                    row[2] += 1
            return [
                ChallengeStats(purpose, channel, total, verified, locked)
                for (purpose, channel), (total, verified, locked) in sorted(
                    counts.items(), key=lambda item: (item[0][0].value, item[0][1].value)
                )
            ]


__all__: list[str] = ["InMemoryChallengeStore"]
