"""Configuration objects for the verification engine and device trust."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VerificationConfig:
    """Verification engine configuration.

    Attributes:
        code_length: Number of digits in a code.
        ttl_seconds: Lifetime of a challenge (default 10 minutes).
        max_attempts: Wrong submissions allowed before lockout.
        cooldown_seconds: Minimum seconds between issuances for one
            subject and purpose.
        delivery_timeout_seconds: Upper bound on a single gateway call.
        challenge_retention_days: Age after which the reaper deletes a
            challenge whatever its status.
        digest_secret: Optional key. When set, code digests are
            HMAC-SHA-256 instead of plain SHA-256.
    """

    code_length: int = 6
    ttl_seconds: int = 600
    max_attempts: int = 5
    cooldown_seconds: int = 60
    delivery_timeout_seconds: float = 10.0
    challenge_retention_days: int = 90
    digest_secret: bytes | None = None

    def __post_init__(self) -> None:
        if self.code_length <= 0:
            raise ValueError("code_length must be positive")
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds cannot be negative")
        if self.delivery_timeout_seconds <= 0:
            raise ValueError("delivery_timeout_seconds must be positive")
        if self.challenge_retention_days <= 0:
            raise ValueError("challenge_retention_days must be positive")

    @property
    def ttl_minutes(self) -> int:
        return max(self.ttl_seconds // 60, 1)


@dataclass(frozen=True)
class DeviceTrustConfig:
    """Device trust configuration.

    Attributes:
        grant_days: Length of a trust grant, renewed on each use.
        max_lifetime_days: Cap on renewals, counted from the first grant.
    """

    grant_days: int = 30
    max_lifetime_days: int = 90

    def __post_init__(self) -> None:
        if self.grant_days <= 0:
            raise ValueError("grant_days must be positive")
        if self.max_lifetime_days < self.grant_days:
            raise ValueError("max_lifetime_days cannot be shorter than grant_days")


__all__: list[str] = ["VerificationConfig", "DeviceTrustConfig"]
