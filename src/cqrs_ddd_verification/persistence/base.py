"""Shared session handling for the SQLAlchemy stores."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import ChallengeStoreError
from .uow import SQLAlchemyUnitOfWork

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from .uow import AsyncSessionFactory


class SQLAlchemyStore:
    """Base for stores that run each operation in its own unit of work.

    ``session_factory`` is typically an ``async_sessionmaker`` built with
    ``expire_on_commit=False``. SQLAlchemy errors surface as
    :class:`ChallengeStoreError` with the original error as ``__cause__``.
    """

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._session_factory = session_factory

    @contextlib.asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with SQLAlchemyUnitOfWork(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            raise ChallengeStoreError(f"{type(self).__name__} failed: {e}") from e
