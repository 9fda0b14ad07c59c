"""
SQLAlchemy implementation of the challenge store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import case, delete, func, null, select, update
from sqlalchemy.exc import IntegrityError

from ..domain.challenge import Challenge, live_key
from ..domain.results import ChallengeStats
from ..exceptions import ChallengeStoreError
from ..ports import IChallengeStore
from .base import SQLAlchemyStore
from .models import ChallengeModel

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from ..domain.enums import Purpose, SubjectType
    from .uow import AsyncSessionFactory

logger = logging.getLogger(__name__)

_FIELDS = tuple(Challenge.model_fields)


def _to_model(challenge: Challenge) -> ChallengeModel:
    model = ChallengeModel(**challenge.model_dump(include=set(_FIELDS)))
    model.live_key = challenge.live_key
    return model


def _to_domain(model: ChallengeModel) -> Challenge:
    return Challenge.model_validate({name: getattr(model, name) for name in _FIELDS})


class SQLAlchemyChallengeStore(SQLAlchemyStore, IChallengeStore):
    """
    SQLAlchemy-backed challenge store.

    Live-challenge uniqueness is enforced by the unique ``live_key`` column.
    State transitions are single conditional ``UPDATE`` statements, so
    concurrent submissions are serialised by the database rather than by
    read-modify-write in Python.
    """

    def __init__(
        self,
        session_factory: AsyncSessionFactory,
        max_insert_retries: int = 3,
    ) -> None:
        super().__init__(session_factory)
        self.max_insert_retries = max_insert_retries

    async def _load(
        self, session: AsyncSession, tenant_id: str, challenge_id: str
    ) -> Challenge | None:
        stmt = select(ChallengeModel).where(
            ChallengeModel.id == challenge_id,
            ChallengeModel.tenant_id == tenant_id,
        )
        model = (await session.execute(stmt)).scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def _supersede(self, session: AsyncSession, key: str, now: datetime) -> int:
        superseded = await session.execute(
            update(ChallengeModel)
            .where(ChallengeModel.live_key == key, ChallengeModel.expires_at >= now)
            .values(superseded_at=now, live_key=None)
            .execution_options(synchronize_session=False)
        )
        # Expired holders give up the key but stay EXPIRED.
        await session.execute(
            update(ChallengeModel)
            .where(ChallengeModel.live_key == key)
            .values(live_key=None)
            .execution_options(synchronize_session=False)
        )
        return superseded.rowcount or 0

    async def create(self, challenge: Challenge) -> str:
        async with self._transaction() as session:
            session.add(_to_model(challenge))
            await session.flush()
        return challenge.id

    async def supersede_and_create(self, challenge: Challenge, now: datetime) -> int:
        for attempt in range(1, self.max_insert_retries + 1):
            try:
                async with self._transaction() as session:
                    count = await self._supersede(session, challenge.live_key, now)
                    session.add(_to_model(challenge))
                    await session.flush()
                return count
            except ChallengeStoreError as e:
                if not isinstance(e.__cause__, IntegrityError):
                    raise
                # A concurrent issue won the live key; supersede it and retry.
                logger.warning(
                    "Live key conflict for challenge %s (attempt %d/%d)",
                    challenge.id,
                    attempt,
                    self.max_insert_retries,
                )
        raise ChallengeStoreError(
            f"Could not insert challenge {challenge.id!r} after "
            f"{self.max_insert_retries} attempts"
        )

    async def get(self, tenant_id: str, challenge_id: str) -> Challenge | None:
        async with self._transaction() as session:
            return await self._load(session, tenant_id, challenge_id)

    async def find_live(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        now: datetime,
    ) -> Challenge | None:
        key = live_key(tenant_id, subject_id, subject_type, purpose)
        stmt = select(ChallengeModel).where(
            ChallengeModel.live_key == key,
            ChallengeModel.expires_at >= now,
        )
        async with self._transaction() as session:
            model = (await session.execute(stmt)).scalar_one_or_none()
            return _to_domain(model) if model is not None else None

    async def find_latest(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        *,
        include_delivery_failed: bool = False,
    ) -> Challenge | None:
        stmt = (
            select(ChallengeModel)
            .where(
                ChallengeModel.tenant_id == tenant_id,
                ChallengeModel.subject_type == subject_type,
                ChallengeModel.subject_id == subject_id,
                ChallengeModel.purpose == purpose,
            )
            .order_by(ChallengeModel.created_at.desc())
            .limit(1)
        )
        if not include_delivery_failed:
            stmt = stmt.where(ChallengeModel.delivery_failed_at.is_(None))
        async with self._transaction() as session:
            model = (await session.execute(stmt)).scalar_one_or_none()
            return _to_domain(model) if model is not None else None

    async def supersede_live(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        now: datetime,
    ) -> int:
        key = live_key(tenant_id, subject_id, subject_type, purpose)
        async with self._transaction() as session:
            return await self._supersede(session, key, now)

    async def increment_attempt(
        self, tenant_id: str, challenge_id: str
    ) -> Challenge | None:
        stmt = (
            update(ChallengeModel)
            .where(
                ChallengeModel.id == challenge_id,
                ChallengeModel.tenant_id == tenant_id,
                ChallengeModel.live_key.is_not(None),
                ChallengeModel.attempts < ChallengeModel.max_attempts,
            )
            .values(
                attempts=ChallengeModel.attempts + 1,
                live_key=case(
                    (ChallengeModel.attempts + 1 >= ChallengeModel.max_attempts, null()),
                    else_=ChallengeModel.live_key,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            if not result.rowcount:
                return None
            return await self._load(session, tenant_id, challenge_id)

    async def mark_verified(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> Challenge | None:
        stmt = (
            update(ChallengeModel)
            .where(
                ChallengeModel.id == challenge_id,
                ChallengeModel.tenant_id == tenant_id,
                ChallengeModel.live_key.is_not(None),
                ChallengeModel.attempts < ChallengeModel.max_attempts,
                ChallengeModel.expires_at >= now,
            )
            .values(verified_at=now, live_key=None)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            if not result.rowcount:
                return None
            return await self._load(session, tenant_id, challenge_id)

    async def mark_delivery_failed(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> Challenge | None:
        stmt = (
            update(ChallengeModel)
            .where(
                ChallengeModel.id == challenge_id,
                ChallengeModel.tenant_id == tenant_id,
                ChallengeModel.live_key.is_not(None),
            )
            .values(delivery_failed_at=now, live_key=None)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            if not result.rowcount:
                return None
            return await self._load(session, tenant_id, challenge_id)

    async def purge(self, older_than: datetime) -> int:
        stmt = (
            delete(ChallengeModel)
            .where(ChallengeModel.created_at < older_than)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def summarize(self, tenant_id: str, since: datetime) -> list[ChallengeStats]:
        verified = case((ChallengeModel.verified_at.is_not(None), 1), else_=0)
        locked = case(
            (
                ChallengeModel.verified_at.is_(None)
                & (ChallengeModel.attempts >= ChallengeModel.max_attempts),
                1,
            ),
            else_=0,
        )
        stmt = (
            select(
                ChallengeModel.purpose,
                ChallengeModel.channel,
                func.count(ChallengeModel.id),
                func.sum(verified),
                func.sum(locked),
            )
            .where(
                ChallengeModel.tenant_id == tenant_id,
                ChallengeModel.created_at >= since,
            )
            .group_by(ChallengeModel.purpose, ChallengeModel.channel)
            .order_by(ChallengeModel.purpose, ChallengeModel.channel)
        )
        async with self._transaction() as session:
            rows = (await session.execute(stmt)).all()
        return [
            ChallengeStats(
                purpose=purpose,
                channel=channel,
                total=int(total),
                verified=int(verified_count or 0),
                locked=int(locked_count or 0),
            )
            for purpose, channel, total, verified_count, locked_count in rows
        ]


__all__: list[str] = ["SQLAlchemyChallengeStore"]
