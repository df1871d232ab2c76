"""Admin authentication."""

from waitlist.services.auth.gate import AuthGate, extract_token, verify

__all__ = ["AuthGate", "extract_token", "verify"]
