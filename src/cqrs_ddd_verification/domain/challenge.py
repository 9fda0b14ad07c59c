"""Challenge record: one verification-code lifecycle."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from .enums import Channel, ChallengeStatus, Purpose, SubjectType


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def live_key(
    tenant_id: str,
    subject_id: str,
    subject_type: SubjectType,
    purpose: Purpose,
) -> str:
    """Key shared by every challenge of one (tenant, subject, purpose) chain.

    At most one live challenge may carry a given key at any instant.
    """
    return f"{tenant_id}:{subject_type.value}:{subject_id}:{purpose.value}"


class Challenge(BaseModel):
    """Immutable snapshot of a verification challenge.

    Only the digest of the code is held. Status is never stored; it is derived
    from the markers below by :meth:`status_at`.

    Attributes:
        id: Opaque identifier handed back to the caller.
        tenant_id: Isolation key; every store operation is scoped to it.
        subject_id: Account being verified.
        subject_type: Staff or customer account.
        purpose: Why the challenge was issued.
        channel: Channel the code was sent over.
        code_digest: One-way digest of the code.
        masked_destination: Display-safe destination.
        attempts: Wrong submissions so far.
        max_attempts: Wrong submissions allowed before lockout.
        created_at: Issuance time (aware UTC).
        expires_at: Time after which the code is no longer accepted.
        verified_at: Set once the correct code was submitted.
        superseded_at: Set when a newer challenge replaced this one.
        delivery_failed_at: Set when the gateway could not deliver the code.
        source_ip: Requesting IP address, for audit.
        user_agent: Requesting user agent, for audit.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    tenant_id: str
    subject_id: str
    subject_type: SubjectType
    purpose: Purpose
    channel: Channel
    code_digest: str = Field(repr=False)
    masked_destination: str
    attempts: int = 0
    max_attempts: int = 5
    created_at: datetime
    expires_at: datetime
    verified_at: datetime | None = None
    superseded_at: datetime | None = None
    delivery_failed_at: datetime | None = None
    source_ip: str | None = None
    user_agent: str | None = None

    @property
    def live_key(self) -> str:
        return live_key(self.tenant_id, self.subject_id, self.subject_type, self.purpose)

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    @property
    def is_locked(self) -> bool:
        return self.attempts >= self.max_attempts

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def status_at(self, now: datetime) -> ChallengeStatus:
        """Derive the lifecycle state at ``now``.

        Explicit markers win over attempt- and time-based states, and lockout
        wins over expiry, so a terminal state never changes once reached.
        """
        if self.verified_at is not None:
            return ChallengeStatus.VERIFIED
        if self.delivery_failed_at is not None:
            return ChallengeStatus.DELIVERY_FAILED
        if self.superseded_at is not None:
            return ChallengeStatus.SUPERSEDED
        if self.is_locked:
            return ChallengeStatus.LOCKED
        if self.is_expired(now):
            return ChallengeStatus.EXPIRED
        return ChallengeStatus.CREATED

    def is_live(self, now: datetime) -> bool:
        return self.status_at(now) is ChallengeStatus.CREATED


__all__: list[str] = ["Challenge", "live_key", "utcnow"]
