"""Test configuration for cqrs-ddd-verification."""

import re
from datetime import datetime, timedelta, timezone

import pytest

from cqrs_ddd_verification.accounts import AccountResolver
from cqrs_ddd_verification.config import VerificationConfig
from cqrs_ddd_verification.delivery.memory import InMemoryGateway
from cqrs_ddd_verification.domain.enums import SubjectType
from cqrs_ddd_verification.engine import VerificationEngine
from cqrs_ddd_verification.memory import (
    InMemoryChallengeStore,
    InMemoryTrustedDeviceStore,
)
from cqrs_ddd_verification.ports import AccountContact, IAccountDirectory

TENANT = "tenant-1"
OTHER_TENANT = "tenant-2"
SUBJECT = "user-1"
PHONE = "+254712345678"
EMAIL = "johndoe@example.com"

_CODE_RE = re.compile(r"Your verification code is: (\d+)")


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeAccountDirectory(IAccountDirectory):
    """Account directory backed by a dict keyed by (tenant_id, subject_id)."""

    def __init__(self, contacts: list[AccountContact] | None = None) -> None:
        self.contacts = {(c.tenant_id, c.subject_id): c for c in contacts or []}

    async def get_contact(self, tenant_id, subject_id):
        return self.contacts.get((tenant_id, subject_id))


def code_from(gateway: InMemoryGateway) -> str:
    """Extract the code from the last message the fake gateway sent."""
    match = _CODE_RE.search(gateway.last_message.message.body_text)
    assert match, "no code in message"
    return match.group(1)


def wrong(code: str) -> str:
    """A code of the same width that differs from ``code``."""
    width = len(code)
    return str((int(code) + 1) % 10**width).zfill(width)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryChallengeStore()


@pytest.fixture
def device_store():
    return InMemoryTrustedDeviceStore()


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def customers():
    return FakeAccountDirectory(
        [
            AccountContact(subject_id=SUBJECT, tenant_id=TENANT, phone=PHONE, email=EMAIL),
            AccountContact(subject_id="no-email", tenant_id=TENANT, phone=PHONE),
        ]
    )


@pytest.fixture
def staff():
    return FakeAccountDirectory(
        [AccountContact(subject_id="staff-1", tenant_id=TENANT, email="admin@salon.io")]
    )


@pytest.fixture
def accounts(customers, staff):
    return AccountResolver(
        {
            SubjectType.CUSTOMER_ACCOUNT: customers,
            SubjectType.STAFF_ACCOUNT: staff,
        }
    )


@pytest.fixture
def config():
    return VerificationConfig()


@pytest.fixture
def engine(store, gateway, accounts, clock, config):
    return VerificationEngine(store, gateway, config=config, accounts=accounts, clock=clock)


@pytest.fixture
def read_code(gateway):
    """Callable returning the code of the last message sent through ``gateway``."""
    return lambda: code_from(gateway)


@pytest.fixture
def wrong_code():
    return wrong
