"""Encryption at rest for signup records."""

from waitlist.services.crypto.codec import (
    EncryptedEnvelope,
    SignupCodec,
    decrypt,
    encrypt,
    generate_key,
)

__all__ = ["EncryptedEnvelope", "SignupCodec", "decrypt", "encrypt", "generate_key"]
