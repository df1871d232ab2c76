"""Data models for the application."""

from waitlist.models.audit import AuditAction, AuditEntry
from waitlist.models.signup import (
    SignupAcknowledgement,
    SignupPage,
    SignupRecord,
    SignupSubmission,
    SignupView,
)

__all__ = [
    # Signups
    "SignupAcknowledgement",
    "SignupPage",
    "SignupRecord",
    "SignupSubmission",
    "SignupView",
    # Audit
    "AuditAction",
    "AuditEntry",
]
