from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from cqrs_ddd_verification.exceptions import (
    ChallengeStoreError,
    SessionManagementError,
    UnitOfWorkError,
)
from cqrs_ddd_verification.persistence import (
    SQLAlchemyChallengeStore,
    SQLAlchemyUnitOfWork,
)


def mock_session(in_transaction: bool = False) -> AsyncMock:
    session = AsyncMock(spec=AsyncSession)
    session.in_transaction.return_value = in_transaction
    session.begin = AsyncMock()
    return session


@pytest.mark.asyncio()
async def test_uow_commits_and_closes_on_clean_exit():
    session = mock_session()
    factory = MagicMock(return_value=session)

    async with SQLAlchemyUnitOfWork(factory) as active:
        assert active is session
        session.begin.assert_awaited_once()

    session.commit.assert_awaited_once()
    session.rollback.assert_not_awaited()
    session.close.assert_awaited_once()


@pytest.mark.asyncio()
async def test_uow_rollback_on_exception():
    session = mock_session(in_transaction=True)

    async def _failing_operation():
        async with SQLAlchemyUnitOfWork(MagicMock(return_value=session)):
            raise ValueError("Boom")

    with pytest.raises(ValueError, match="Boom"):
        await _failing_operation()

    session.commit.assert_not_awaited()
    session.rollback.assert_awaited_once()
    session.close.assert_awaited_once()


@pytest.mark.asyncio()
async def test_uow_auto_rollback_on_commit_failure():
    session = mock_session(in_transaction=True)
    session.commit.side_effect = Exception("Commit failed")

    with pytest.raises(UnitOfWorkError, match="Commit failed"):
        async with SQLAlchemyUnitOfWork(MagicMock(return_value=session)):
            pass

    session.rollback.assert_awaited_once()
    session.close.assert_awaited_once()


@pytest.mark.asyncio()
async def test_uow_wraps_session_factory_failure():
    factory = MagicMock(side_effect=RuntimeError("pool exhausted"))

    with pytest.raises(SessionManagementError, match="pool exhausted"):
        async with SQLAlchemyUnitOfWork(factory):
            pass


@pytest.mark.asyncio()
async def test_uow_closes_session_when_begin_fails():
    session = mock_session()
    session.begin.side_effect = RuntimeError("no connection")

    with pytest.raises(SessionManagementError, match="no connection"):
        async with SQLAlchemyUnitOfWork(MagicMock(return_value=session)):
            pass

    session.close.assert_awaited_once()


@pytest.mark.asyncio()
async def test_store_translates_database_errors():
    session = mock_session(in_transaction=True)
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("gone"))
    store = SQLAlchemyChallengeStore(MagicMock(return_value=session))

    with pytest.raises(ChallengeStoreError) as exc_info:
        await store.get("tenant-1", "challenge-1")

    assert isinstance(exc_info.value.__cause__, OperationalError)
    session.rollback.assert_awaited_once()
    session.close.assert_awaited_once()
