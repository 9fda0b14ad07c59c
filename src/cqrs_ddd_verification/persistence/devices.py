"""
SQLAlchemy implementation of the trusted device store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from ..domain.device import TrustedDevice
from ..ports import ITrustedDeviceStore
from .base import SQLAlchemyStore
from .models import TrustedDeviceModel

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import ColumnElement

    from ..domain.enums import SubjectType

_FIELDS = tuple(TrustedDevice.model_fields)


def _to_domain(model: TrustedDeviceModel) -> TrustedDevice:
    return TrustedDevice.model_validate({name: getattr(model, name) for name in _FIELDS})


class SQLAlchemyTrustedDeviceStore(SQLAlchemyStore, ITrustedDeviceStore):
    """SQLAlchemy-backed trusted device store."""

    @staticmethod
    def _owner(
        tenant_id: str, subject_id: str, subject_type: SubjectType
    ) -> tuple[ColumnElement[bool], ...]:
        return (
            TrustedDeviceModel.tenant_id == tenant_id,
            TrustedDeviceModel.subject_type == subject_type,
            TrustedDeviceModel.subject_id == subject_id,
        )

    async def find(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_fingerprint: str,
    ) -> TrustedDevice | None:
        stmt = select(TrustedDeviceModel).where(
            *self._owner(tenant_id, subject_id, subject_type),
            TrustedDeviceModel.device_fingerprint == device_fingerprint,
        )
        async with self._transaction() as session:
            model = (await session.execute(stmt)).scalar_one_or_none()
            return _to_domain(model) if model is not None else None

    async def save(self, device: TrustedDevice) -> TrustedDevice:
        async with self._transaction() as session:
            await session.merge(TrustedDeviceModel(**device.model_dump()))
        return device

    async def list_for_subject(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> list[TrustedDevice]:
        stmt = (
            select(TrustedDeviceModel)
            .where(*self._owner(tenant_id, subject_id, subject_type))
            .order_by(TrustedDeviceModel.last_used_at.desc())
        )
        async with self._transaction() as session:
            models = (await session.execute(stmt)).scalars().all()
            return [_to_domain(m) for m in models]

    async def delete(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_id: str,
    ) -> bool:
        stmt = (
            delete(TrustedDeviceModel)
            .where(
                TrustedDeviceModel.id == device_id,
                *self._owner(tenant_id, subject_id, subject_type),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return bool(result.rowcount)

    async def delete_all(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> int:
        stmt = (
            delete(TrustedDeviceModel)
            .where(*self._owner(tenant_id, subject_id, subject_type))
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    async def purge_expired(self, now: datetime) -> int:
        stmt = (
            delete(TrustedDeviceModel)
            .where(TrustedDeviceModel.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return result.rowcount or 0


__all__: list[str] = ["SQLAlchemyTrustedDeviceStore"]
