"""Core module - configuration and utilities."""

from waitlist.core.config import Settings, get_settings, settings
from waitlist.core.exceptions import (
    AppException,
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    NotConfigured,
    RateLimited,
    StorageError,
    Unauthorized,
    ValidationError,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "AppException",
    "ConfigurationError",
    "DecryptionError",
    "EncryptionError",
    "NotConfigured",
    "RateLimited",
    "StorageError",
    "Unauthorized",
    "ValidationError",
]
