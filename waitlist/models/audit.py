"""Audit trail entries."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from waitlist.models.signup import utcnow


class AuditAction(str, Enum):
    """Kinds of audited events."""

    ADMIN_AUTH = "ADMIN_AUTH"
    SIGNUPS_READ = "SIGNUPS_READ"
    RATE_LIMITED = "RATE_LIMITED"
    HONEYPOT_TRIGGERED = "HONEYPOT_TRIGGERED"


class AuditEntry(BaseModel):
    """Append-only forensic record of an authentication or privileged action."""

    action: AuditAction
    ip: str
    success: bool
    reason: str | None = None
    endpoint: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
