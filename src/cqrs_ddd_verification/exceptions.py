"""Exception hierarchy for cqrs-ddd-verification.

Expected verification outcomes (rate limited, expired, locked, wrong code,
replay) are returned as typed results and never raised. Only the failures
below escape the public API.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════
# ROOT
# ═══════════════════════════════════════════════════════════════


class VerificationError(Exception):
    """Root exception for the verification package."""


class DomainError(VerificationError):
    """Base class for domain-level failures."""


class InfrastructureError(VerificationError):
    """Base class for infrastructure failures (store, entropy, gateways)."""


# ═══════════════════════════════════════════════════════════════
# ACCOUNT RESOLUTION
# ═══════════════════════════════════════════════════════════════


class SubjectNotFoundError(DomainError):
    """Raised when the account behind a subject id cannot be found."""

    def __init__(self, subject_type: str, subject_id: str) -> None:
        self.subject_type = subject_type
        self.subject_id = subject_id
        super().__init__(f"{subject_type} with id={subject_id!r} not found")


class DestinationUnavailableError(DomainError):
    """Raised when an account has no destination for the requested channel."""

    def __init__(self, subject_id: str, channel: str) -> None:
        self.subject_id = subject_id
        self.channel = channel
        super().__init__(f"No {channel} destination on file for subject {subject_id!r}")


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE
# ═══════════════════════════════════════════════════════════════


class EntropySourceError(InfrastructureError):
    """Raised when the secure random source fails. Issuance fails closed."""


class PersistenceError(InfrastructureError):
    """Base class for storage failures."""


class ChallengeStoreError(PersistenceError):
    """Raised when a challenge or device store operation fails."""


class SessionManagementError(PersistenceError):
    """Raised when session creation or management fails."""


class UnitOfWorkError(PersistenceError):
    """Raised when Unit of Work operations fail."""


class DeliveryConfigurationError(InfrastructureError):
    """Raised when no gateway is configured for a channel, or a gateway is
    asked to send over a channel it does not support."""

    def __init__(self, channel: str, reason: str) -> None:
        self.channel = channel
        super().__init__(f"Delivery over {channel} is not configured: {reason}")


__all__: list[str] = [
    "VerificationError",
    "DomainError",
    "InfrastructureError",
    "SubjectNotFoundError",
    "DestinationUnavailableError",
    "EntropySourceError",
    "PersistenceError",
    "ChallengeStoreError",
    "SessionManagementError",
    "UnitOfWorkError",
    "DeliveryConfigurationError",
]
