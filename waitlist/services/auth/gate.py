"""Admin token extraction and constant-time verification."""

import hmac

from waitlist.core.exceptions import NotConfigured, Unauthorized

BEARER_PREFIX = "bearer "


def extract_token(authorization: str | None, admin_token_header: str | None) -> str:
    """Pull the admin token from request headers.

    A ``Bearer`` authorization header wins over ``X-Admin-Token``.
    """
    if authorization and authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip()
    return (admin_token_header or "").strip()


def verify(provided: str | None, expected: str | None) -> bool:
    """Compare tokens in time independent of their content.

    Empty values never match.
    """
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


class AuthGate:
    """Guards admin endpoints with a single shared token."""

    def __init__(self, expected_token: str | None) -> None:
        self._expected_token = expected_token or None

    @property
    def configured(self) -> bool:
        return self._expected_token is not None

    def authenticate(self, provided: str | None) -> None:
        """Raise unless ``provided`` matches the configured token.

        Raises:
            NotConfigured: no admin token is configured server-side, whatever
                the caller sent
            Unauthorized: token absent or wrong
        """
        if self._expected_token is None:
            raise NotConfigured()
        if not provided:
            raise Unauthorized("Authorization token required")
        if not verify(provided, self._expected_token):
            raise Unauthorized("Invalid authorization token")
