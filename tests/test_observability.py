import pytest
from prometheus_client import REGISTRY

from cqrs_ddd_verification.domain import (
    Channel,
    IssueOutcome,
    Purpose,
    SubjectType,
    VerifyOutcome,
)
from cqrs_ddd_verification.observability import VerificationMetrics


def sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_record_issue():
    labels = {"channel": "whatsapp", "purpose": "contact_change", "outcome": "issued"}
    before = sample("verification_challenges_issued_total", **labels)

    VerificationMetrics.record_issue(Channel.WHATSAPP, Purpose.CONTACT_CHANGE, IssueOutcome.ISSUED)

    assert sample("verification_challenges_issued_total", **labels) == before + 1


def test_record_attempt_without_purpose():
    labels = {"purpose": "unknown", "outcome": "invalid_challenge"}
    before = sample("verification_attempts_total", **labels)

    VerificationMetrics.record_attempt(None, VerifyOutcome.INVALID_CHALLENGE)

    assert sample("verification_attempts_total", **labels) == before + 1


def test_delivery_histogram_records_failures():
    before = sample("verification_delivery_duration_seconds_count", channel="email")

    with pytest.raises(RuntimeError):
        with VerificationMetrics.delivery(Channel.EMAIL):
            raise RuntimeError("boom")

    assert sample("verification_delivery_duration_seconds_count", channel="email") == before + 1


@pytest.mark.asyncio
async def test_engine_records_outcomes(engine, read_code):
    issued_labels = {"channel": "sms", "purpose": "password_reset", "outcome": "issued"}
    verified_labels = {"purpose": "password_reset", "outcome": "verified"}
    issued_before = sample("verification_challenges_issued_total", **issued_labels)
    verified_before = sample("verification_attempts_total", **verified_labels)

    result = await engine.issue(
        "user-1",
        SubjectType.CUSTOMER_ACCOUNT,
        "tenant-1",
        Channel.SMS,
        "+254712345678",
        Purpose.PASSWORD_RESET,
    )
    await engine.verify(result.challenge_id, read_code(), tenant_id="tenant-1")

    assert sample("verification_challenges_issued_total", **issued_labels) == issued_before + 1
    assert sample("verification_attempts_total", **verified_labels) == verified_before + 1
