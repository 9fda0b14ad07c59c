"""Tests for challenge status derivation, results and config."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from cqrs_ddd_verification.config import DeviceTrustConfig, VerificationConfig
from cqrs_ddd_verification.domain import (
    Challenge,
    ChallengeStatus,
    Channel,
    IssueOutcome,
    IssueResult,
    Purpose,
    SubjectType,
    ThrottleDecision,
    VerifyOutcome,
    VerifyResult,
    live_key,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_challenge(**overrides):
    data = {
        "id": "c-1",
        "tenant_id": "tenant-1",
        "subject_id": "user-1",
        "subject_type": SubjectType.CUSTOMER_ACCOUNT,
        "purpose": Purpose.LOGIN,
        "channel": Channel.SMS,
        "code_digest": "d" * 64,
        "masked_destination": "********5678",
        "created_at": NOW,
        "expires_at": NOW + timedelta(minutes=10),
    }
    data.update(overrides)
    return Challenge(**data)


def test_new_challenge_is_created_and_live():
    challenge = make_challenge()

    assert challenge.status_at(NOW) is ChallengeStatus.CREATED
    assert challenge.is_live(NOW)
    assert challenge.remaining_attempts == 5


def test_expiry_is_strictly_after_expires_at():
    challenge = make_challenge()

    assert challenge.status_at(challenge.expires_at) is ChallengeStatus.CREATED
    later = challenge.expires_at + timedelta(microseconds=1)
    assert challenge.status_at(later) is ChallengeStatus.EXPIRED


def test_locked_when_attempts_reach_max():
    challenge = make_challenge(attempts=5)

    assert challenge.status_at(NOW) is ChallengeStatus.LOCKED
    assert challenge.remaining_attempts == 0


def test_markers_take_precedence():
    late = NOW + timedelta(hours=1)

    assert make_challenge(verified_at=NOW).status_at(late) is ChallengeStatus.VERIFIED
    assert (
        make_challenge(superseded_at=NOW, attempts=5).status_at(late)
        is ChallengeStatus.SUPERSEDED
    )
    assert (
        make_challenge(delivery_failed_at=NOW).status_at(late)
        is ChallengeStatus.DELIVERY_FAILED
    )


def test_terminal_flags():
    assert not ChallengeStatus.CREATED.is_terminal
    assert all(s.is_terminal for s in ChallengeStatus if s is not ChallengeStatus.CREATED)


def test_challenge_is_immutable():
    challenge = make_challenge()

    with pytest.raises(ValidationError):
        challenge.attempts = 3


def test_digest_is_hidden_from_repr():
    assert "d" * 64 not in repr(make_challenge())


def test_live_key_is_scoped_by_tenant_subject_and_purpose():
    challenge = make_challenge()

    assert challenge.live_key == live_key(
        "tenant-1", "user-1", SubjectType.CUSTOMER_ACCOUNT, Purpose.LOGIN
    )
    assert challenge.live_key != make_challenge(tenant_id="tenant-2").live_key
    assert challenge.live_key != make_challenge(purpose=Purpose.REGISTRATION).live_key
    assert (
        challenge.live_key
        != make_challenge(subject_type=SubjectType.STAFF_ACCOUNT).live_key
    )


def test_throttle_decision_rounds_up():
    assert ThrottleDecision.denied(12.1).retry_after_seconds == 13
    assert ThrottleDecision.allowed().retry_after_seconds == 0
    assert ThrottleDecision.allowed().ok


def test_issue_result_constructors():
    issued = IssueResult.issued("c-1", Channel.SMS, "****5678", NOW)
    limited = IssueResult.rate_limited(30)

    assert issued.ok
    assert issued.outcome is IssueOutcome.ISSUED
    assert not limited.ok
    assert limited.retry_after_seconds == 30
    assert limited.challenge_id is None


def test_verify_result_signals_lock_on_last_attempt():
    assert VerifyResult.invalid_code(2).locked is False
    assert VerifyResult.invalid_code(0).locked is True
    assert VerifyResult.failed(VerifyOutcome.LOCKED).locked is True
    assert VerifyResult.failed(VerifyOutcome.EXPIRED).locked is False


def test_verification_config_defaults():
    config = VerificationConfig()

    assert config.code_length == 6
    assert config.ttl_seconds == 600
    assert config.ttl_minutes == 10
    assert config.max_attempts == 5
    assert config.cooldown_seconds == 60
    assert config.challenge_retention_days == 90


@pytest.mark.parametrize(
    "kwargs",
    [
        {"code_length": 0},
        {"ttl_seconds": 0},
        {"max_attempts": 0},
        {"cooldown_seconds": -1},
        {"delivery_timeout_seconds": 0},
        {"challenge_retention_days": 0},
    ],
)
def test_verification_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        VerificationConfig(**kwargs)


def test_device_trust_config_validation():
    assert DeviceTrustConfig().grant_days == 30
    with pytest.raises(ValueError):
        DeviceTrustConfig(grant_days=0)
    with pytest.raises(ValueError):
        DeviceTrustConfig(grant_days=30, max_lifetime_days=10)
