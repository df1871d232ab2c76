"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from waitlist.api.dependencies import get_audit_trail, get_counter_store, get_object_store
from waitlist.api.main import create_app
from waitlist.core.config import Settings, get_settings
from waitlist.services.audit import AuditTrail, InMemoryAuditSink
from waitlist.services.crypto.codec import SignupCodec, generate_key
from waitlist.services.ratelimit.limiter import RateLimiter
from waitlist.services.signup.intake import SignupIntake
from waitlist.services.signup.retrieval import AdminRetrieval
from waitlist.storage.memory import InMemoryCounterStore, InMemoryObjectStore

ADMIN_TOKEN = "test-admin-token-0123456789abcdef"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def encryption_key():
    """Fresh AES-256 key per test."""
    return generate_key()


@pytest.fixture
def test_settings(encryption_key):
    """Settings isolated from the process environment."""
    return Settings(
        _env_file=None,
        app_env="development",
        admin_token=ADMIN_TOKEN,
        signup_encryption_key=encryption_key,
        redis_url=None,
        signup_bucket="",
        signup_ip_limit=5,
        signup_ip_window=3600,
        signup_email_limit=3,
        signup_email_window=86400,
        admin_default_limit=50,
        admin_max_limit=200,
        store_timeout_seconds=1.0,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counter_store(clock):
    """In-memory counters driven by the fake clock."""
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def object_store():
    """In-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit_trail(audit_sink):
    return AuditTrail(audit_sink)


@pytest.fixture
def codec(encryption_key):
    return SignupCodec(encryption_key)


@pytest.fixture
def limiter(counter_store):
    return RateLimiter(counter_store, timeout_seconds=1.0)


@pytest.fixture
def intake(test_settings, limiter, object_store, codec, audit_trail):
    return SignupIntake(test_settings, limiter, object_store, codec, audit_trail)


@pytest.fixture
def retrieval(test_settings, object_store, codec):
    return AdminRetrieval(test_settings, object_store, codec)


@pytest.fixture
def app(test_settings, counter_store, object_store, audit_trail):
    """Create test application wired to in-memory stores."""
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: test_settings
    application.dependency_overrides[get_counter_store] = lambda: counter_store
    application.dependency_overrides[get_object_store] = lambda: object_store
    application.dependency_overrides[get_audit_trail] = lambda: audit_trail
    return application


@pytest_asyncio.fixture
async def client(app, audit_trail):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await audit_trail.flush()


@pytest.fixture
def valid_payload():
    """A submission that passes every intake stage."""
    return {
        "fullName": "Ada Lovelace",
        "email": "  Ada@Example.COM ",
        "mainInterest": "Analytical engines",
        "policyVersion": "2024-01",
        "consentToContact": True,
    }
