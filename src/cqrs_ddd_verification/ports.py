"""Ports (protocols) for verification storage, delivery and account lookup.

Adapters must explicitly declare the port they implement, e.g.
``class SQLAlchemyChallengeStore(IChallengeStore):``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from .delivery.messages import DeliveryReceipt, RenderedMessage
    from .domain.challenge import Challenge
    from .domain.device import TrustedDevice
    from .domain.enums import Channel, Purpose, SubjectType
    from .domain.results import ChallengeStats


@runtime_checkable
class IChallengeStore(Protocol):
    """Durable, tenant-scoped storage for challenges.

    Every lookup and mutation takes ``tenant_id``; an id that belongs to
    another tenant behaves exactly like an unknown id (``None``), so callers
    cannot test for existence across tenants.

    Mutations that change verification state are compare-and-set: they only
    apply to a challenge that is still live and return ``None`` otherwise,
    so concurrent submissions cannot both succeed nor push ``attempts`` past
    ``max_attempts``.
    """

    async def create(self, challenge: Challenge) -> str:
        """Persist a new challenge and return its id.

        Fails if another live challenge already holds the same live key.
        """
        ...

    async def supersede_and_create(self, challenge: Challenge, now: datetime) -> int:
        """Atomically supersede every live challenge of the same chain, then
        insert ``challenge``.

        Returns:
            Number of challenges marked superseded.
        """
        ...

    async def get(self, tenant_id: str, challenge_id: str) -> Challenge | None:
        """Load a challenge, or ``None`` if unknown or owned by another tenant."""
        ...

    async def find_live(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        now: datetime,
    ) -> Challenge | None:
        """Return the live challenge of a chain, if any."""
        ...

    async def find_latest(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        *,
        include_delivery_failed: bool = False,
    ) -> Challenge | None:
        """Return the most recently created challenge of a chain, if any."""
        ...

    async def supersede_live(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        purpose: Purpose,
        now: datetime,
    ) -> int:
        """Mark every live challenge of a chain superseded.

        Returns:
            Number of challenges marked superseded.
        """
        ...

    async def increment_attempt(
        self, tenant_id: str, challenge_id: str
    ) -> Challenge | None:
        """Atomically add one failed attempt to a live challenge.

        Returns:
            The updated challenge, or ``None`` if it was not live (already
            locked, verified, superseded or failed) or does not exist.
        """
        ...

    async def mark_verified(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> Challenge | None:
        """Atomically set ``verified_at`` on a live, unexpired challenge.

        Returns:
            The updated challenge, or ``None`` if the transition did not apply.
        """
        ...

    async def mark_delivery_failed(
        self, tenant_id: str, challenge_id: str, now: datetime
    ) -> Challenge | None:
        """Mark a live challenge DELIVERY_FAILED."""
        ...

    async def purge(self, older_than: datetime) -> int:
        """Delete challenges created before ``older_than`` across all tenants.

        Returns:
            Number of challenges deleted.
        """
        ...

    async def summarize(self, tenant_id: str, since: datetime) -> list[ChallengeStats]:
        """Count challenges created since ``since`` per purpose and channel."""
        ...


@runtime_checkable
class ITrustedDeviceStore(Protocol):
    """Tenant-scoped storage for trusted devices."""

    async def find(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_fingerprint: str,
    ) -> TrustedDevice | None:
        """Return the device record for a fingerprint, expired or not."""
        ...

    async def save(self, device: TrustedDevice) -> TrustedDevice:
        """Insert or replace a device record (keyed by ``device.id``)."""
        ...

    async def list_for_subject(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> list[TrustedDevice]:
        """Return every device record of a subject."""
        ...

    async def delete(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        device_id: str,
    ) -> bool:
        """Delete one device of a subject. Returns ``False`` if not found."""
        ...

    async def delete_all(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
    ) -> int:
        """Delete every device of a subject. Returns the number deleted."""
        ...

    async def purge_expired(self, now: datetime) -> int:
        """Delete devices whose ``expires_at`` has passed."""
        ...


@runtime_checkable
class IDeliveryGateway(Protocol):
    """Sends a rendered message over one or more channels.

    Implementations report failure through the receipt; they should not
    raise for provider errors.
    """

    async def send(
        self,
        channel: Channel,
        destination: str,
        message: RenderedMessage,
    ) -> DeliveryReceipt:
        """Send ``message`` to ``destination`` and return a delivery receipt."""
        ...


@dataclass(frozen=True)
class AccountContact:
    """Contact details of an account, as supplied by the owning system."""

    subject_id: str
    tenant_id: str
    phone: str | None = None
    email: str | None = None


@runtime_checkable
class IAccountDirectory(Protocol):
    """Read access to one kind of account (staff or customer)."""

    async def get_contact(self, tenant_id: str, subject_id: str) -> AccountContact | None:
        """Return the account's contact details, or ``None`` if unknown."""
        ...


__all__: list[str] = [
    "IChallengeStore",
    "ITrustedDeviceStore",
    "IDeliveryGateway",
    "IAccountDirectory",
    "AccountContact",
]
