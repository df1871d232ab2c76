"""Tests for the public signup endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from waitlist.api.dependencies import get_object_store
from waitlist.core.exceptions import StorageError
from waitlist.storage.memory import InMemoryObjectStore


class BrokenObjectStore(InMemoryObjectStore):
    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        raise StorageError("PutObject AccessDenied for signups/abc_123.json", operation="put")


class CrashingObjectStore(InMemoryObjectStore):
    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        raise RuntimeError("unexpected driver bug")


@pytest.mark.asyncio
async def test_signup_success(client, valid_payload, object_store):
    response = await client.post("/api/signup", json=valid_payload)

    assert response.status_code == 200
    assert response.json() == {"message": "Successfully joined the waitlist"}
    assert response.headers["cache-control"] == "no-store"
    assert len(object_store.keys()) == 1


@pytest.mark.asyncio
async def test_honeypot_indistinguishable_from_malformed(client, valid_payload, object_store):
    """Bots get exactly the response a broken client would."""
    honeypot = await client.post("/api/signup", json={**valid_payload, "company": "Acme"})
    malformed = await client.post("/api/signup", json={**valid_payload, "fullName": ""})
    not_json = await client.post(
        "/api/signup",
        content=b"{broken",
        headers={"content-type": "application/json"},
    )

    assert honeypot.status_code == malformed.status_code == not_json.status_code == 400
    assert honeypot.json() == malformed.json() == not_json.json() == {"error": "Invalid request"}
    assert object_store.keys() == []


@pytest.mark.asyncio
async def test_invalid_email_message(client, valid_payload):
    response = await client.post("/api/signup", json={**valid_payload, "email": "nope"})

    assert response.status_code == 400
    assert response.json() == {"error": "Valid email is required"}


@pytest.mark.asyncio
async def test_consent_required_message(client, valid_payload):
    payload = {k: v for k, v in valid_payload.items() if k != "consentToContact"}
    response = await client.post("/api/signup", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Consent is required"}


@pytest.mark.asyncio
async def test_overlong_interest_is_generic_error(client, valid_payload):
    response = await client.post("/api/signup", json={**valid_payload, "mainInterest": "x" * 1001})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request"}


@pytest.mark.asyncio
async def test_rate_limited_response(client, valid_payload, test_settings):
    headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
    for i in range(test_settings.signup_ip_limit):
        ok = await client.post(
            "/api/signup",
            json={**valid_payload, "email": f"user{i}@example.com"},
            headers=headers,
        )
        assert ok.status_code == 200

    response = await client.post(
        "/api/signup",
        json={**valid_payload, "email": "one-more@example.com"},
        headers=headers,
    )

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Too many requests. Please try again later."
    assert body["retryAfter"] > 0
    assert response.headers["retry-after"] == str(body["retryAfter"])


@pytest.mark.asyncio
async def test_different_forwarded_clients_have_separate_limits(client, valid_payload, test_settings):
    for i in range(test_settings.signup_ip_limit):
        await client.post(
            "/api/signup",
            json={**valid_payload, "email": f"user{i}@example.com"},
            headers={"X-Forwarded-For": "203.0.113.9"},
        )

    response = await client.post(
        "/api/signup",
        json={**valid_payload, "email": "fresh@example.com"},
        headers={"X-Real-IP": "198.51.100.4"},
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_storage_failure_hides_details(app, client, valid_payload):
    app.dependency_overrides[get_object_store] = lambda: BrokenObjectStore()

    response = await client.post("/api/signup", json=valid_payload)

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to store signup at this time. Please try again."}
    assert "signups/" not in response.text


@pytest.mark.asyncio
async def test_signup_rejects_get(client):
    response = await client.get("/api/signup")
    assert response.status_code == 405


@pytest.mark.asyncio
@pytest.mark.parametrize("filler", ["   ", "\u200b", "\t\n"])
async def test_blank_honeypot_still_rejected(client, valid_payload, object_store, filler):
    """Whitespace or invisible filler in the hidden field counts as filled."""
    response = await client.post("/api/signup", json={**valid_payload, "company": filler})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request"}
    assert object_store.keys() == []


@pytest.mark.asyncio
async def test_null_honeypot_is_accepted(client, valid_payload):
    response = await client.post("/api/signup", json={**valid_payload, "company": None})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unexpected_error_is_not_cached(app, valid_payload):
    app.dependency_overrides[get_object_store] = lambda: CrashingObjectStore()
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/api/signup", json=valid_payload)

    assert response.status_code == 500
    assert response.json() == {"error": "An unexpected error occurred"}
    assert response.headers["cache-control"] == "no-store"
    assert "driver" not in response.text
