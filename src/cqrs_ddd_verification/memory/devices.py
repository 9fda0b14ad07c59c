"""In-memory trusted device store."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..ports import ITrustedDeviceStore

if TYPE_CHECKING:
    from datetime import datetime

    from ..domain.device import TrustedDevice
    from ..domain.enums import SubjectType


class InMemoryTrustedDeviceStore(ITrustedDeviceStore):
    """Dict-backed trusted device store keyed by device id."""

    def __init__(self) -> None:
        self._devices: dict[str, TrustedDevice] = {}
        self._lock = asyncio.Lock()

    def _of_subject(
        self, tenant_id: str, subject_id: str, subject_type: SubjectType
    ) -> list[TrustedDevice]:
        return [
            d
            for d in self._devices.values()
            if d.tenant_id == tenant_id
            and d.subject_id == subject_id
            and d.subject_type == subject_type
        ]

    async def find(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_fingerprint: str,
    ) -> TrustedDevice | None:
        async with self._lock:
            for device in self._of_subject(tenant_id, subject_id, subject_type):
                if device.device_fingerprint == device_fingerprint:
                    return device
            return None

    async def save(self, device: TrustedDevice) -> TrustedDevice:
        async with self._lock:
            self._devices[device.id] = device
            return device

    async def list_for_subject(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> list[TrustedDevice]:
        async with self._lock:
            devices = self._of_subject(tenant_id, subject_id, subject_type)
            return sorted(devices, key=lambda d: d.last_used_at, reverse=True)

    async def delete(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_id: str,
    ) -> bool:
        async with self._lock:
            device = self._devices.get(device_id)
            if device is None or (
                device.tenant_id,
                device.subject_id,
                device.subject_type,
            ) != (tenant_id, subject_id, subject_type):
                return False
            del self._devices[device_id]
            return True

    async def delete_all(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> int:
        async with self._lock:
            devices = self._of_subject(tenant_id, subject_id, subject_type)
            for device in devices:
                del self._devices[device.id]
            return len(devices)

    async def purge_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [d.id for d in self._devices.values() if d.is_expired(now)]
            for device_id in expired:
                del self._devices[device_id]
            return len(expired)


__all__: list[str] = ["InMemoryTrustedDeviceStore"]
