"""FastAPI dependencies for dependency injection."""

from typing import Annotated

import structlog
from fastapi import Depends, Header, Request

from waitlist.core.config import Settings, get_settings, settings
from waitlist.core.exceptions import AppException
from waitlist.models.audit import AuditAction
from waitlist.services.audit import AuditSink, AuditTrail, InMemoryAuditSink, RedisAuditSink
from waitlist.services.auth.gate import AuthGate, extract_token
from waitlist.services.crypto.codec import SignupCodec
from waitlist.services.ratelimit.limiter import RateLimiter
from waitlist.services.signup.intake import SignupIntake
from waitlist.services.signup.retrieval import AdminRetrieval
from waitlist.storage.base import CounterStore, ObjectStore
from waitlist.storage.memory import InMemoryCounterStore, InMemoryObjectStore

logger = structlog.get_logger()

# Store singletons
_counter_store: CounterStore | None = None
_object_store: ObjectStore | None = None
_audit_trail: AuditTrail | None = None


def get_counter_store() -> CounterStore:
    """Get the counter store singleton.

    Uses Redis when configured, in-memory counters otherwise.
    """
    global _counter_store
    if _counter_store is None:
        if settings.redis_url:
            from waitlist.storage.redis import RedisCounterStore
            _counter_store = RedisCounterStore(settings.redis_url)
        else:
            if not settings.is_development:
                logger.warning("REDIS_URL not set - rate limits are per process")
            _counter_store = InMemoryCounterStore()
    return _counter_store


def get_object_store() -> ObjectStore:
    """Get the object store singleton.

    Uses S3 when a bucket is configured, in-memory storage otherwise.
    """
    global _object_store
    if _object_store is None:
        if settings.signup_bucket:
            from waitlist.storage.s3 import S3ObjectStore
            _object_store = S3ObjectStore(
                bucket=settings.signup_bucket,
                endpoint_url=settings.s3_endpoint_url,
                region=settings.aws_region,
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
            )
        else:
            _object_store = InMemoryObjectStore()
    return _object_store


def get_audit_trail() -> AuditTrail:
    """Get the audit trail singleton, sharing the Redis client when present."""
    global _audit_trail
    if _audit_trail is None:
        sink: AuditSink = InMemoryAuditSink()
        if settings.redis_url:
            from waitlist.storage.redis import RedisCounterStore
            store = get_counter_store()
            if isinstance(store, RedisCounterStore):
                sink = RedisAuditSink(store.client)
        _audit_trail = AuditTrail(sink)
    return _audit_trail


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
CounterStoreDep = Annotated[CounterStore, Depends(get_counter_store)]
ObjectStoreDep = Annotated[ObjectStore, Depends(get_object_store)]
AuditDep = Annotated[AuditTrail, Depends(get_audit_trail)]


def get_codec(config: SettingsDep) -> SignupCodec:
    return SignupCodec(config.signup_encryption_key)


CodecDep = Annotated[SignupCodec, Depends(get_codec)]


def get_rate_limiter(config: SettingsDep, store: CounterStoreDep) -> RateLimiter:
    return RateLimiter(store, timeout_seconds=config.store_timeout_seconds)


LimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


def get_intake(
    config: SettingsDep,
    limiter: LimiterDep,
    store: ObjectStoreDep,
    codec: CodecDep,
    audit: AuditDep,
) -> SignupIntake:
    """Get signup intake wired to the shared stores."""
    return SignupIntake(config, limiter, store, codec, audit)


def get_retrieval(config: SettingsDep, store: ObjectStoreDep, codec: CodecDep) -> AdminRetrieval:
    """Get admin retrieval wired to the shared object store."""
    return AdminRetrieval(config, store, codec)


def get_auth_gate(config: SettingsDep) -> AuthGate:
    return AuthGate(config.admin_token)


IntakeDep = Annotated[SignupIntake, Depends(get_intake)]
RetrievalDep = Annotated[AdminRetrieval, Depends(get_retrieval)]
AuthGateDep = Annotated[AuthGate, Depends(get_auth_gate)]


def get_client_ip(request: Request) -> str:
    """Client address: first X-Forwarded-For hop, then X-Real-IP, then the peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


ClientIpDep = Annotated[str, Depends(get_client_ip)]


async def require_admin(
    request: Request,
    gate: AuthGateDep,
    audit: AuditDep,
    client_ip: ClientIpDep,
    authorization: Annotated[str | None, Header()] = None,
    x_admin_token: Annotated[str | None, Header()] = None,
) -> str:
    """Authenticate an admin caller and audit the attempt.

    Returns the caller's IP for downstream audit entries.
    """
    token = extract_token(authorization, x_admin_token)
    try:
        gate.authenticate(token)
    except AppException as e:
        audit.record(
            AuditAction.ADMIN_AUTH,
            ip=client_ip,
            success=False,
            reason=e.message,
            endpoint=request.url.path,
        )
        raise

    audit.record(AuditAction.ADMIN_AUTH, ip=client_ip, success=True, endpoint=request.url.path)
    return client_ip


AdminDep = Annotated[str, Depends(require_admin)]
