"""
SQLAlchemy unit of work: one session and one transaction per store operation.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from ..exceptions import SessionManagementError, UnitOfWorkError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncSession

    AsyncSessionFactory = Callable[[], AsyncSession]


class SQLAlchemyUnitOfWork:
    """
    Opens a session from ``session_factory`` and runs one transaction on it.

    ```python
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with SQLAlchemyUnitOfWork(factory) as session:
        ...
    ```

    The transaction commits when the block exits cleanly and rolls back when
    it raises. The session is closed either way.
    """

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> AsyncSession:
        try:
            self._session = self._session_factory()
            await self._session.begin()
        except Exception as e:  # noqa: BLE001
            if self._session is not None:
                with contextlib.suppress(Exception):
                    await self._session.close()
                self._session = None
            raise SessionManagementError(f"Failed to open session: {e}") from e
        return self._session

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        session = self._session
        if session is None:
            return
        try:
            if exc_type is None:
                await self._commit(session)
            elif session.in_transaction():
                await session.rollback()
        finally:
            self._session = None
            await session.close()

    async def _commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        except Exception as e:  # noqa: BLE001
            with contextlib.suppress(Exception):
                await session.rollback()
            raise UnitOfWorkError(f"Failed to commit transaction: {e}") from e
