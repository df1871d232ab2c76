"""Versioned AES-GCM envelope for signup records at rest."""

import base64
import binascii
import json
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from waitlist.core.exceptions import DecryptionError, EncryptionError
from waitlist.models.signup import SignupRecord, utcnow

logger = structlog.get_logger()

ENVELOPE_VERSION = 1
LEGACY_PLAINTEXT_VERSION = 0
KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16

# Binds ciphertext to its envelope version
_ASSOCIATED_DATA = {ENVELOPE_VERSION: b"waitlist-signup:v1"}


@dataclass(frozen=True)
class EncryptedEnvelope:
    """Ciphertext wrapper: ``payload`` is base64(nonce || ciphertext || tag)."""

    payload: str
    version: int
    stored_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload,
            "version": self.version,
            "storedAt": self.stored_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncryptedEnvelope":
        try:
            payload = data["payload"]
            version = data["version"]
            stored_at = datetime.fromisoformat(str(data.get("storedAt") or utcnow().isoformat()))
        except (KeyError, ValueError) as e:
            raise DecryptionError(f"Malformed envelope: {e}") from e
        if not isinstance(payload, str) or not isinstance(version, int):
            raise DecryptionError("Malformed envelope fields")
        return cls(payload=payload, version=version, stored_at=stored_at)

    @staticmethod
    def is_envelope(data: Any) -> bool:
        return isinstance(data, dict) and "payload" in data and "version" in data


def generate_key() -> str:
    """Generate a fresh base64-encoded 256-bit key."""
    return base64.b64encode(AESGCM.generate_key(bit_length=KEY_LENGTH * 8)).decode("ascii")


def load_key(key: str) -> bytes:
    """Decode a base64 (standard or URL-safe) key into 32 raw bytes.

    Raises:
        ValueError: if the key is not valid base64 or has the wrong length
    """
    text = key.strip()
    padded = text + "=" * (-len(text) % 4)
    try:
        if "-" in text or "_" in text:
            raw = base64.urlsafe_b64decode(padded)
        else:
            raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("encryption key is not valid base64") from e
    if len(raw) != KEY_LENGTH:
        raise ValueError(f"encryption key must decode to {KEY_LENGTH} bytes, got {len(raw)}")
    return raw


def encrypt(plaintext_json: str, key: str) -> EncryptedEnvelope:
    """Encrypt record JSON into a version 1 envelope.

    Raises:
        EncryptionError: if the key is malformed
    """
    try:
        raw_key = load_key(key)
    except ValueError as e:
        raise EncryptionError(f"Invalid encryption key: {e}") from e

    nonce = os.urandom(NONCE_LENGTH)
    ciphertext = AESGCM(raw_key).encrypt(
        nonce,
        plaintext_json.encode("utf-8"),
        _ASSOCIATED_DATA[ENVELOPE_VERSION],
    )
    return EncryptedEnvelope(
        payload=base64.b64encode(nonce + ciphertext).decode("ascii"),
        version=ENVELOPE_VERSION,
        stored_at=utcnow(),
    )


def decrypt(envelope: EncryptedEnvelope, key: str) -> str:
    """Decrypt an envelope back into record JSON.

    Raises:
        DecryptionError: on unknown version, malformed payload, wrong key or
            tampered ciphertext
    """
    associated_data = _ASSOCIATED_DATA.get(envelope.version)
    if associated_data is None:
        raise DecryptionError(f"Unsupported envelope version {envelope.version}", version=envelope.version)

    try:
        raw_key = load_key(key)
    except ValueError as e:
        raise DecryptionError(f"Invalid encryption key: {e}", version=envelope.version) from e

    try:
        blob = base64.b64decode(envelope.payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("Envelope payload is not valid base64", version=envelope.version) from e
    if len(blob) < NONCE_LENGTH + TAG_LENGTH:
        raise DecryptionError("Envelope payload is truncated", version=envelope.version)

    nonce, ciphertext = blob[:NONCE_LENGTH], blob[NONCE_LENGTH:]
    try:
        plaintext = AESGCM(raw_key).decrypt(nonce, ciphertext, associated_data)
    except InvalidTag as e:
        raise DecryptionError("Authentication tag verification failed", version=envelope.version) from e
    return plaintext.decode("utf-8")


class SignupCodec:
    """Encodes records for storage with the process-wide key.

    Without a key, records are stored as plain JSON (envelope version 0) and
    every write logs a warning.
    """

    def __init__(self, key: str | None = None) -> None:
        self._key = key or None

    @property
    def encrypted(self) -> bool:
        return self._key is not None

    def validate_key(self) -> None:
        """Raise ValueError if a configured key is malformed."""
        if self._key is not None:
            load_key(self._key)

    def encode_record(self, record: SignupRecord) -> bytes:
        plaintext = record.to_json()
        if self._key is None:
            logger.warning("signup_stored_unencrypted", reason="no encryption key configured")
            return plaintext.encode("utf-8")
        envelope = encrypt(plaintext, self._key)
        return json.dumps(envelope.to_dict()).encode("utf-8")

    def decode_record(self, raw: bytes) -> dict[str, Any]:
        """Decode stored bytes into record JSON, handling legacy plaintext."""
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecryptionError(f"Stored object is not JSON: {e}") from e

        if EncryptedEnvelope.is_envelope(data):
            if self._key is None:
                raise DecryptionError("Encrypted record found but no key is configured")
            data = json.loads(decrypt(EncryptedEnvelope.from_dict(data), self._key))

        if not isinstance(data, dict):
            raise DecryptionError("Stored record is not a JSON object", version=LEGACY_PLAINTEXT_VERSION)
        return data
