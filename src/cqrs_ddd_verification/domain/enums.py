"""Enumerations shared across the verification domain."""

from __future__ import annotations

from enum import Enum


class SubjectType(str, Enum):
    """Kind of account a challenge verifies."""

    STAFF_ACCOUNT = "staff_account"
    CUSTOMER_ACCOUNT = "customer_account"


class Channel(str, Enum):
    """Delivery channel for a one-time code."""

    SMS = "sms"
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class Purpose(str, Enum):
    """Business reason a challenge was issued."""

    REGISTRATION = "registration"
    LOGIN = "login"
    PASSWORD_RESET = "password_reset"  # noqa: S105
    CONTACT_CHANGE = "contact_change"


class ChallengeStatus(str, Enum):
    """Derived lifecycle state of a challenge.

    Every state except CREATED is terminal.
    """

    CREATED = "created"
    VERIFIED = "verified"
    EXPIRED = "expired"
    LOCKED = "locked"
    SUPERSEDED = "superseded"
    DELIVERY_FAILED = "delivery_failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ChallengeStatus.CREATED


class IssueOutcome(str, Enum):
    """Outcome of an issue or resend request."""

    ISSUED = "issued"
    RATE_LIMITED = "rate_limited"
    DELIVERY_FAILED = "delivery_failed"
    INVALID_CHALLENGE = "invalid_challenge"
    ALREADY_VERIFIED = "already_verified"
    SUBJECT_NOT_FOUND = "subject_not_found"
    DESTINATION_UNAVAILABLE = "destination_unavailable"


class VerifyOutcome(str, Enum):
    """Outcome of a verify request."""

    VERIFIED = "verified"
    INVALID_CODE = "invalid_code"
    INVALID_CHALLENGE = "invalid_challenge"
    EXPIRED = "expired"
    LOCKED = "locked"
    ALREADY_VERIFIED = "already_verified"


__all__: list[str] = [
    "SubjectType",
    "Channel",
    "Purpose",
    "ChallengeStatus",
    "IssueOutcome",
    "VerifyOutcome",
]
