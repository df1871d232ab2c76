"""Custom exceptions for the application.

Every exception carries an internal ``message`` (logged server-side) and a
``public_message`` (the only text that may reach a response body).
"""

from typing import Any

GENERIC_INVALID_REQUEST = "Invalid request"


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        public_message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.public_message = public_message or message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(AppException):
    """Raised when there's a configuration problem."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            public_message="Service is misconfigured",
        )


class ValidationError(AppException):
    """Raised when client input has the wrong shape."""

    status_code = 400

    def __init__(self, message: str = GENERIC_INVALID_REQUEST, field: str | None = None) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field} if field else {},
        )
        self.field = field


class RateLimited(AppException):
    """Raised when a rate-limit scope is exhausted for the current window."""

    status_code = 429

    def __init__(self, retry_after: int, scope: str) -> None:
        super().__init__(
            f"Rate limit exceeded for scope {scope}",
            code="RATE_LIMITED",
            details={"scope": scope, "retry_after": retry_after},
            public_message="Too many requests. Please try again later.",
        )
        self.retry_after = retry_after
        self.scope = scope


class Unauthorized(AppException):
    """Raised when an admin credential is missing or wrong."""

    status_code = 401

    def __init__(self, reason: str = "Invalid authorization token") -> None:
        super().__init__(reason, code="UNAUTHORIZED", public_message="Unauthorized")


class NotConfigured(AppException):
    """Raised when admin access has no server-side token configured."""

    status_code = 503

    def __init__(self) -> None:
        super().__init__(
            "Admin token is not configured",
            code="NOT_CONFIGURED",
            public_message="Admin access is not configured",
        )


class EncryptionError(AppException):
    """Raised when a record cannot be encrypted."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(
            message,
            code="ENCRYPTION_ERROR",
            public_message="Unable to store signup at this time. Please try again.",
        )


class DecryptionError(AppException):
    """Raised when a stored envelope cannot be decrypted or understood."""

    status_code = 500

    def __init__(self, message: str, version: int | None = None) -> None:
        super().__init__(
            message,
            code="DECRYPTION_ERROR",
            details={"version": version} if version is not None else {},
            public_message="Unable to load signups",
        )


class StorageError(AppException):
    """Raised when a counter or object store operation fails."""

    status_code = 500

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        public_message: str = "Service temporarily unavailable. Please try again later.",
    ) -> None:
        super().__init__(
            message,
            code="STORAGE_ERROR",
            details={"operation": operation} if operation else {},
            public_message=public_message,
        )
