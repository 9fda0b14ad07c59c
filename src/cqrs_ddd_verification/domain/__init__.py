"""Verification domain: records, enums and typed results."""

from .challenge import Challenge, live_key, utcnow
from .device import TrustedDevice
from .enums import (
    Channel,
    ChallengeStatus,
    IssueOutcome,
    Purpose,
    SubjectType,
    VerifyOutcome,
)
from .results import ChallengeStats, IssueResult, ThrottleDecision, VerifyResult

__all__: list[str] = [
    "Challenge",
    "TrustedDevice",
    "live_key",
    "utcnow",
    "Channel",
    "ChallengeStatus",
    "IssueOutcome",
    "Purpose",
    "SubjectType",
    "VerifyOutcome",
    "ChallengeStats",
    "IssueResult",
    "ThrottleDecision",
    "VerifyResult",
]
