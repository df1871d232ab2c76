"""Admin endpoints for reviewing waitlist signups."""

import structlog
from fastapi import APIRouter, Request

from waitlist.api.dependencies import AdminDep, AuditDep, RetrievalDep
from waitlist.core.exceptions import AppException
from waitlist.models import AuditAction, SignupPage

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/signups", response_model=SignupPage)
async def list_signups(
    request: Request,
    client_ip: AdminDep,
    retrieval: RetrievalDep,
    audit: AuditDep,
    limit: str | None = None,
    cursor: str | None = None,
    email: str | None = None,
) -> SignupPage:
    """List signups, newest first.

    ``limit`` is deliberately a string so that junk falls back to the
    default page size instead of failing validation.
    """
    try:
        page = await retrieval.list_signups(filter_email=email, cursor=cursor, limit=limit)
    except AppException as e:
        audit.record(
            AuditAction.SIGNUPS_READ,
            ip=client_ip,
            success=False,
            reason=e.code,
            endpoint=request.url.path,
        )
        raise

    audit.record(AuditAction.SIGNUPS_READ, ip=client_ip, success=True, endpoint=request.url.path)
    return page
