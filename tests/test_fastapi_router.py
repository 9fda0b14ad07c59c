import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cqrs_ddd_verification.contrib.fastapi import create_verification_router
from cqrs_ddd_verification.devices import DeviceTrustManager

TENANT_HEADERS = {"X-Tenant-ID": "tenant-1"}
SUBJECT_HEADERS = {
    **TENANT_HEADERS,
    "X-Subject-ID": "user-1",
    "X-Subject-Type": "customer_account",
}
BROWSER_HEADERS = {
    **TENANT_HEADERS,
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Accept-Language": "en-US",
}
SEND_BODY = {
    "subjectId": "user-1",
    "subjectType": "customer_account",
    "channel": "sms",
    "purpose": "login",
}


@pytest.fixture
def device_trust(device_store, clock):
    return DeviceTrustManager(device_store, clock=clock)


@pytest.fixture
def client(engine, device_trust):
    app = FastAPI()
    app.include_router(create_verification_router(engine, device_trust, prefix="/2fa"))
    with TestClient(app) as test_client:
        yield test_client


def _send(client, **overrides):
    return client.post("/2fa/send", json={**SEND_BODY, **overrides}, headers=BROWSER_HEADERS)


def test_send_issues_challenge(client):
    response = _send(client)

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "issued"
    assert body["maskedDestination"] == "********5678"
    assert body["challengeId"]
    assert body["expiresAt"]


def test_send_requires_tenant(client):
    response = client.post("/2fa/send", json=SEND_BODY)

    assert response.status_code == 400


def test_send_rate_limited(client, clock):
    _send(client)
    clock.advance(seconds=45)

    response = _send(client)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "15"
    assert response.json()["retryAfterSeconds"] == 15


def test_send_unknown_subject(client):
    response = _send(client, subjectId="ghost")

    assert response.status_code == 404
    assert response.json()["outcome"] == "subject_not_found"


def test_send_without_destination(client):
    response = _send(client, subjectId="no-email", channel="email")

    assert response.status_code == 422
    assert response.json()["outcome"] == "destination_unavailable"


def test_send_delivery_failure(client, gateway):
    gateway.fail = True

    response = _send(client)

    assert response.status_code == 502
    assert response.json()["outcome"] == "delivery_failed"


def test_send_rejects_unknown_channel(client):
    response = _send(client, channel="pigeon")

    assert response.status_code == 422


def test_verify_flow(client, read_code, wrong_code):
    challenge_id = _send(client).json()["challengeId"]
    code = read_code()

    wrong = client.post(
        "/2fa/verify",
        json={"challengeId": challenge_id, "code": wrong_code(code)},
        headers=TENANT_HEADERS,
    )
    assert wrong.status_code == 400
    assert wrong.json()["status"] == "invalid_code"
    assert wrong.json()["remainingAttempts"] == 4

    right = client.post(
        "/2fa/verify",
        json={"challengeId": challenge_id, "code": code},
        headers=TENANT_HEADERS,
    )
    assert right.status_code == 200
    assert right.json()["status"] == "verified"
    assert right.json()["subjectId"] == "user-1"
    assert right.json()["deviceTrusted"] is False

    replay = client.post(
        "/2fa/verify",
        json={"challengeId": challenge_id, "code": code},
        headers=TENANT_HEADERS,
    )
    assert replay.status_code == 400
    assert replay.json()["status"] == "already_verified"


def test_verify_unknown_challenge(client):
    response = client.post(
        "/2fa/verify",
        json={"challengeId": "nope", "code": "123456"},
        headers=TENANT_HEADERS,
    )

    assert response.status_code == 404
    assert response.json()["status"] == "invalid_challenge"


def test_verify_other_tenant(client, read_code):
    challenge_id = _send(client).json()["challengeId"]

    response = client.post(
        "/2fa/verify",
        json={"challengeId": challenge_id, "code": read_code()},
        headers={"X-Tenant-ID": "tenant-2"},
    )

    assert response.status_code == 404


def test_resend(client, clock):
    challenge_id = _send(client).json()["challengeId"]

    early = client.post(
        "/2fa/resend", json={"challengeId": challenge_id}, headers=BROWSER_HEADERS
    )
    assert early.status_code == 429

    clock.advance(seconds=60)
    resent = client.post(
        "/2fa/resend", json={"challengeId": challenge_id}, headers=BROWSER_HEADERS
    )
    assert resent.status_code == 200
    assert resent.json()["challengeId"] != challenge_id


def test_remember_device_then_manage_devices(client, read_code):
    challenge_id = _send(client).json()["challengeId"]

    verified = client.post(
        "/2fa/verify",
        json={"challengeId": challenge_id, "code": read_code(), "rememberDevice": True},
        headers=BROWSER_HEADERS,
    )
    assert verified.json()["deviceTrusted"] is True

    devices = client.get("/2fa/devices", headers=SUBJECT_HEADERS)
    assert devices.status_code == 200
    [device] = devices.json()
    assert device["label"] == "Firefox Browser"
    assert device["sourceIp"] == "testclient"

    missing = client.delete("/2fa/devices/unknown", headers=SUBJECT_HEADERS)
    assert missing.status_code == 404

    removed = client.delete(f"/2fa/devices/{device['id']}", headers=SUBJECT_HEADERS)
    assert removed.status_code == 204
    assert client.get("/2fa/devices", headers=SUBJECT_HEADERS).json() == []


def test_remember_device_ignored_for_other_purposes(client, read_code):
    challenge_id = _send(client, purpose="registration").json()["challengeId"]

    verified = client.post(
        "/2fa/verify",
        json={"challengeId": challenge_id, "code": read_code(), "rememberDevice": True},
        headers=BROWSER_HEADERS,
    )

    assert verified.status_code == 200
    assert verified.json()["deviceTrusted"] is False
    assert client.get("/2fa/devices", headers=SUBJECT_HEADERS).json() == []


def test_revoke_all_devices(client, device_trust):
    response = client.delete("/2fa/devices", headers=SUBJECT_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"removed": 0}


def test_device_routes_require_subject(client):
    response = client.get("/2fa/devices", headers=TENANT_HEADERS)

    assert response.status_code == 401


def test_device_routes_absent_without_device_trust(engine):
    app = FastAPI()
    app.include_router(create_verification_router(engine))

    with TestClient(app) as client:
        assert client.get("/devices", headers=SUBJECT_HEADERS).status_code == 404
