import pytest

from cqrs_ddd_verification.domain import Channel, Purpose, SubjectType
from cqrs_ddd_verification.throttle import ResendThrottle

TENANT = "tenant-1"
CUSTOMER = SubjectType.CUSTOMER_ACCOUNT


@pytest.fixture
def throttle(store, clock):
    return ResendThrottle(store, cooldown_seconds=60, clock=clock)


async def _issue(engine, subject_id="user-1", purpose=Purpose.LOGIN):
    return await engine.issue(
        subject_id, CUSTOMER, TENANT, Channel.SMS, "+254712345678", purpose
    )


@pytest.mark.asyncio
async def test_allows_first_issue(throttle):
    decision = await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.LOGIN)

    assert decision.ok
    assert decision.retry_after_seconds == 0


@pytest.mark.asyncio
async def test_denies_within_cooldown(engine, throttle, clock):
    await _issue(engine)
    clock.advance(seconds=20)

    decision = await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.LOGIN)

    assert not decision.ok
    assert decision.retry_after_seconds == 40


@pytest.mark.asyncio
async def test_rounds_retry_after_up(engine, throttle, clock):
    await _issue(engine)
    clock.advance(seconds=20, milliseconds=500)

    decision = await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.LOGIN)

    assert decision.retry_after_seconds == 40


@pytest.mark.asyncio
async def test_allows_after_cooldown(engine, throttle, clock):
    await _issue(engine)
    clock.advance(seconds=60)

    assert (await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.LOGIN)).ok


@pytest.mark.asyncio
async def test_keyed_by_subject_and_purpose(engine, throttle):
    await _issue(engine)

    assert (await throttle.allow(TENANT, "user-2", CUSTOMER, Purpose.LOGIN)).ok
    assert (await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.REGISTRATION)).ok
    assert (await throttle.allow("tenant-2", "user-1", CUSTOMER, Purpose.LOGIN)).ok


@pytest.mark.asyncio
async def test_ignores_failed_deliveries(engine, gateway, throttle):
    gateway.fail = True
    await _issue(engine)

    assert (await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.LOGIN)).ok


@pytest.mark.asyncio
async def test_zero_cooldown_always_allows(engine, store, clock):
    await _issue(engine)
    throttle = ResendThrottle(store, cooldown_seconds=0, clock=clock)

    assert (await throttle.allow(TENANT, "user-1", CUSTOMER, Purpose.LOGIN)).ok
