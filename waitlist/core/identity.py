"""Email normalization, validation and one-way namespace hashing."""

import hashlib
import re

MAX_EMAIL_LENGTH = 254
DEFAULT_HASH_LENGTH = 16

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Zero-width, bidi and separator characters, then C0/C1 controls except \t and \n
_INVISIBLE_CHARS = re.compile(r"[\u200b-\u200f\u2028-\u202f\ufeff]")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def sanitize_string(value: object) -> str:
    """Strip invisible and control characters, then surrounding whitespace.

    Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""
    cleaned = _INVISIBLE_CHARS.sub("", value)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    return cleaned.strip()


def normalize_email(value: object) -> str:
    """Trim and lower-case an email address."""
    return sanitize_string(value).lower()


def is_valid_email(email: str) -> bool:
    """Check a normalized email against the basic local@domain.tld shape."""
    return 0 < len(email) <= MAX_EMAIL_LENGTH and EMAIL_PATTERN.match(email) is not None


def hash_email(email: str, length: int = DEFAULT_HASH_LENGTH) -> str:
    """Hash a normalized email into a fixed-length hex namespace.

    The SHA-256 hex digest is truncated to ``length`` characters. The result
    groups every record for one address under a shared storage prefix; it is
    never used to recover the address.
    """
    if not 1 <= length <= 64:
        raise ValueError(f"hash length must be between 1 and 64, got {length}")
    return hashlib.sha256(email.encode("utf-8")).hexdigest()[:length]
