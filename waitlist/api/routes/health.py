"""Health check endpoints."""

import asyncio
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Response, status

from waitlist.api.dependencies import CodecDep, CounterStoreDep, ObjectStoreDep, SettingsDep
from waitlist.core.config import settings

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["Health"])


async def _probe(name: str, check: Awaitable[bool], timeout: float) -> bool:
    try:
        return await asyncio.wait_for(check, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("health_probe_timeout", store=name, timeout=timeout)
        return False


@router.get("")
@router.get("/")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.app_env,
    }


@router.get("/ready")
async def readiness_check(
    response: Response,
    config: SettingsDep,
    codec: CodecDep,
    counters: CounterStoreDep,
    objects: ObjectStoreDep,
) -> dict[str, Any]:
    """Readiness: both stores answer within the store timeout.

    Encryption and admin configuration are reported but never fail the probe;
    signups still flow without them.
    """
    timeout = config.store_timeout_seconds
    counter_ok, object_ok = await asyncio.gather(
        _probe("counter_store", counters.health_check(), timeout),
        _probe("object_store", objects.health_check(), timeout),
    )
    checks = {"counter_store": counter_ok, "object_store": object_ok}

    ready = all(checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "encryption": codec.encrypted,
        "admin_configured": bool(config.admin_token),
    }


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}
