"""Device trust: remembering devices that already passed a Login challenge."""

from __future__ import annotations

import hashlib
import logging
import re
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING

from .config import DeviceTrustConfig
from .domain.challenge import utcnow
from .domain.device import TrustedDevice
from .domain.enums import Purpose
from .exceptions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .domain.enums import SubjectType
    from .ports import ITrustedDeviceStore
    from .request_context import RequestContext

logger = logging.getLogger(__name__)

# Order matters: Edge carries "Chrome" and "Safari", Chrome carries "Safari".
_LABELS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"iPhone", re.IGNORECASE), "iPhone"),
    (re.compile(r"iPad", re.IGNORECASE), "iPad"),
    (re.compile(r"Android", re.IGNORECASE), "Android Device"),
    (re.compile(r"Edg(e|A|iOS)?/"), "Edge Browser"),
    (re.compile(r"Chrome|CriOS", re.IGNORECASE), "Chrome Browser"),
    (re.compile(r"Firefox|FxiOS", re.IGNORECASE), "Firefox Browser"),
    (re.compile(r"Safari", re.IGNORECASE), "Safari Browser"),
)


def device_fingerprint(request: RequestContext) -> str:
    """SHA-256 of user agent, accept-language and accept-encoding.

    Deterministic for one browser across requests. Not an identity check.
    """
    data = "|".join(
        (
            request.user_agent or "",
            request.accept_language or "",
            request.accept_encoding or "",
        )
    )
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def device_label(user_agent: str | None) -> str:
    """Human-readable guess at the device type, for display only."""
    if not user_agent:
        return "Unknown Device"
    for pattern, label in _LABELS:
        if pattern.search(user_agent):
            return label
    return "Web Browser"


class DeviceTrustManager:
    """
    Grants, checks and revokes device trust.

    Trust only ever exempts a Login challenge. Each positive check renews the
    grant by ``grant_days``, capped at ``max_lifetime_days`` after the device
    was first trusted.
    """

    def __init__(
        self,
        store: ITrustedDeviceStore,
        config: DeviceTrustConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self.config = config or DeviceTrustConfig()
        self._clock = clock

    def _expiry(self, now: datetime, created_at: datetime, days: int) -> datetime:
        cap = created_at + timedelta(days=self.config.max_lifetime_days)
        return min(now + timedelta(days=days), cap)

    async def is_trusted(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        request: RequestContext,
        purpose: Purpose = Purpose.LOGIN,
    ) -> bool:
        """Whether this request's device may skip a ``purpose`` challenge.

        Always ``False`` for purposes other than Login. A store failure is
        logged and answered with ``False``, so the caller falls back to a
        challenge.
        """
        if purpose is not Purpose.LOGIN:
            return False

        now = self._clock()
        fingerprint = device_fingerprint(request)
        try:
            device = await self._store.find(tenant_id, subject_id, subject_type, fingerprint)
            if device is None or device.is_expired(now):
                return False

            await self._store.save(
                device.model_copy(
                    update={
                        "last_used_at": now,
                        "expires_at": self._expiry(
                            now, device.created_at, self.config.grant_days
                        ),
                        "source_ip": request.ip_address or device.source_ip,
                    }
                )
            )
        except PersistenceError:
            logger.error(
                "Error checking trusted device for subject %s", subject_id, exc_info=True
            )
            return False

        logger.debug("Trusted device %s used by subject %s", device.id, subject_id)
        return True

    async def trust(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        request: RequestContext,
        days: int | None = None,
    ) -> TrustedDevice:
        """Trust the request's device, or renew an existing grant for it.

        An explicit opt-in always yields a grant of ``days``: when the
        existing record has lapsed, or its lifetime cap would cut the grant
        short, a fresh lifetime starts now.

        Raises:
            ValueError: If ``days`` is not between 1 and ``max_lifetime_days``.
        """
        if days is None:
            days = self.config.grant_days
        if not 0 < days <= self.config.max_lifetime_days:
            raise ValueError(
                f"days must be between 1 and {self.config.max_lifetime_days}"
            )
        now = self._clock()
        fingerprint = device_fingerprint(request)

        existing = await self._store.find(tenant_id, subject_id, subject_type, fingerprint)
        if existing is not None:
            created_at = existing.created_at
            grant_end = now + timedelta(days=days)
            if existing.is_expired(now) or self._expiry(now, created_at, days) < grant_end:
                created_at = now
            device = existing.model_copy(
                update={
                    "created_at": created_at,
                    "last_used_at": now,
                    "expires_at": self._expiry(now, created_at, days),
                    "source_ip": request.ip_address or existing.source_ip,
                    "user_agent": request.user_agent or existing.user_agent,
                }
            )
        else:
            device = TrustedDevice(
                id=str(uuid.uuid4()),
                tenant_id=tenant_id,
                subject_id=subject_id,
                subject_type=subject_type,
                device_fingerprint=fingerprint,
                label=device_label(request.user_agent),
                source_ip=request.ip_address,
                user_agent=request.user_agent,
                created_at=now,
                last_used_at=now,
                expires_at=self._expiry(now, now, days),
            )

        saved = await self._store.save(device)
        logger.info(
            "Device trusted for subject %s (%s, expires %s)",
            subject_id,
            saved.label,
            saved.expires_at.isoformat(),
        )
        return saved

    async def list_devices(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> list[TrustedDevice]:
        """Unexpired devices of a subject, most recently used first."""
        now = self._clock()
        devices = await self._store.list_for_subject(tenant_id, subject_id, subject_type)
        return [d for d in devices if not d.is_expired(now)]

    async def revoke(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_id: str,
    ) -> bool:
        """Revoke one of the subject's own devices. ``False`` if not found."""
        removed = await self._store.delete(tenant_id, subject_id, subject_type, device_id)
        if removed:
            logger.info("Trusted device %s removed for subject %s", device_id, subject_id)
        return removed

    async def revoke_all(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> int:
        count = await self._store.delete_all(tenant_id, subject_id, subject_type)
        logger.info("All trusted devices removed for subject %s (%d)", subject_id, count)
        return count


__all__: list[str] = ["DeviceTrustManager", "device_fingerprint", "device_label"]
