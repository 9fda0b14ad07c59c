"""Typed results returned by the verification engine and throttle."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from .enums import Channel, IssueOutcome, Purpose, SubjectType, VerifyOutcome


@dataclass(frozen=True)
class ThrottleDecision:
    """Answer of the resend throttle.

    Attributes:
        ok: Whether a new issuance may proceed now.
        retry_after: Seconds to wait before asking again (0 when ``ok``).
    """

    ok: bool
    retry_after: float = 0.0

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds to wait, rounded up so a countdown never ends early."""
        return max(math.ceil(self.retry_after), 0)

    @classmethod
    def allowed(cls) -> ThrottleDecision:
        return cls(ok=True)

    @classmethod
    def denied(cls, retry_after: float) -> ThrottleDecision:
        return cls(ok=False, retry_after=retry_after)


@dataclass(frozen=True)
class IssueResult:
    """Outcome of ``issue`` / ``resend``.

    On success carries everything a UI needs to prompt for the code. On
    ``RATE_LIMITED`` carries ``retry_after_seconds``.
    """

    outcome: IssueOutcome
    challenge_id: str | None = None
    channel: Channel | None = None
    masked_destination: str | None = None
    expires_at: datetime | None = None
    retry_after_seconds: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is IssueOutcome.ISSUED

    @classmethod
    def issued(
        cls,
        challenge_id: str,
        channel: Channel,
        masked_destination: str,
        expires_at: datetime,
    ) -> IssueResult:
        return cls(
            outcome=IssueOutcome.ISSUED,
            challenge_id=challenge_id,
            channel=channel,
            masked_destination=masked_destination,
            expires_at=expires_at,
        )

    @classmethod
    def rate_limited(cls, retry_after_seconds: int) -> IssueResult:
        return cls(
            outcome=IssueOutcome.RATE_LIMITED,
            retry_after_seconds=retry_after_seconds,
        )

    @classmethod
    def delivery_failed(
        cls,
        challenge_id: str,
        channel: Channel,
        masked_destination: str,
    ) -> IssueResult:
        return cls(
            outcome=IssueOutcome.DELIVERY_FAILED,
            challenge_id=challenge_id,
            channel=channel,
            masked_destination=masked_destination,
        )

    @classmethod
    def failed(cls, outcome: IssueOutcome) -> IssueResult:
        """Result carrying no details (unknown challenge, missing account...)."""
        return cls(outcome=outcome)


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of ``verify``.

    ``VERIFIED`` carries the subject, tenant and purpose so the caller can run
    its purpose-specific follow-up. ``INVALID_CODE`` carries
    ``remaining_attempts``; ``locked`` is set when that wrong submission used
    up the last attempt.
    """

    outcome: VerifyOutcome
    subject_id: str | None = None
    subject_type: SubjectType | None = None
    tenant_id: str | None = None
    purpose: Purpose | None = None
    remaining_attempts: int | None = None
    locked: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is VerifyOutcome.VERIFIED

    @classmethod
    def verified(
        cls,
        subject_id: str,
        subject_type: SubjectType,
        tenant_id: str,
        purpose: Purpose,
    ) -> VerifyResult:
        return cls(
            outcome=VerifyOutcome.VERIFIED,
            subject_id=subject_id,
            subject_type=subject_type,
            tenant_id=tenant_id,
            purpose=purpose,
        )

    @classmethod
    def invalid_code(cls, remaining_attempts: int) -> VerifyResult:
        return cls(
            outcome=VerifyOutcome.INVALID_CODE,
            remaining_attempts=remaining_attempts,
            locked=remaining_attempts <= 0,
        )

    @classmethod
    def failed(cls, outcome: VerifyOutcome) -> VerifyResult:
        return cls(outcome=outcome, locked=outcome is VerifyOutcome.LOCKED)


@dataclass(frozen=True)
class ChallengeStats:
    """Per (purpose, channel) challenge counts for one tenant."""

    purpose: Purpose
    channel: Channel
    total: int
    verified: int
    locked: int


__all__: list[str] = [
    "ThrottleDecision",
    "IssueResult",
    "VerifyResult",
    "ChallengeStats",
]
