"""Waitlist signup intake pipeline."""

import asyncio
import secrets
import time

import structlog

from waitlist.core.config import Settings
from waitlist.core.exceptions import RateLimited, StorageError, ValidationError
from waitlist.core.identity import hash_email, is_valid_email, normalize_email
from waitlist.models.audit import AuditAction
from waitlist.models.signup import SignupAcknowledgement, SignupRecord, SignupSubmission
from waitlist.services.audit import AuditTrail
from waitlist.services.crypto.codec import SignupCodec
from waitlist.services.ratelimit.limiter import RateLimiter
from waitlist.storage.base import ObjectStore

logger = structlog.get_logger()

SIGNUP_PREFIX = "signups/"
IP_SCOPE = "signup-ip"
EMAIL_SCOPE = "signup-email"
STORE_FAILURE_MESSAGE = "Unable to store signup at this time. Please try again."


def storage_prefix(email_hash: str | None = None) -> str:
    """Listing prefix for all signups, or for one hashed email."""
    if email_hash is None:
        return SIGNUP_PREFIX
    return f"{SIGNUP_PREFIX}{email_hash}_"


def build_storage_key(email_hash: str) -> str:
    """Fresh key under the email's prefix; never reuses an existing record."""
    return f"{storage_prefix(email_hash)}{int(time.time() * 1000)}-{secrets.token_hex(4)}.json"


class SignupIntake:
    """Validates, rate-limits, encodes and stores waitlist submissions.

    Stages run in order and the first failure short-circuits:
    honeypot, email format, IP scope, email scope, consent, encode, store.
    """

    def __init__(
        self,
        settings: Settings,
        limiter: RateLimiter,
        store: ObjectStore,
        codec: SignupCodec,
        audit: AuditTrail | None = None,
    ) -> None:
        self.settings = settings
        self.limiter = limiter
        self.store = store
        self.codec = codec
        self.audit = audit

    async def submit(self, submission: SignupSubmission, client_ip: str) -> SignupAcknowledgement:
        """Accept a submission or raise the error for the first failing stage.

        Raises:
            ValidationError: honeypot filled, bad email, or consent missing
            RateLimited: IP or email scope exhausted
            EncryptionError: configured key is malformed
            StorageError: the record could not be written
        """
        if submission.company:
            logger.info("signup_honeypot_triggered", ip=client_ip)
            self._audit(AuditAction.HONEYPOT_TRIGGERED, client_ip, "honeypot field populated")
            raise ValidationError()

        email = normalize_email(submission.email)
        if not is_valid_email(email):
            raise ValidationError("Valid email is required", field="email")

        email_hash = hash_email(email, self.settings.email_hash_length)

        await self._enforce(IP_SCOPE, client_ip, self.settings.signup_ip_limit, self.settings.signup_ip_window, client_ip)
        await self._enforce(
            EMAIL_SCOPE,
            email_hash,
            self.settings.signup_email_limit,
            self.settings.signup_email_window,
            client_ip,
        )

        if submission.consent_to_contact is not True:
            raise ValidationError("Consent is required", field="consentToContact")

        record = SignupRecord.accept(
            email=email,
            full_name=submission.full_name,
            main_interest=submission.main_interest,
            policy_version=submission.policy_version,
        )
        data = self.codec.encode_record(record)

        key = build_storage_key(email_hash)
        try:
            await asyncio.wait_for(
                self.store.put(key, data, content_type="application/json"),
                timeout=self.settings.store_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("signup_store_failed", key=key, error="timeout")
            raise StorageError(f"Timed out writing {key}", operation="put", public_message=STORE_FAILURE_MESSAGE) from e
        except StorageError as e:
            logger.error("signup_store_failed", key=key, error=e.message)
            raise StorageError(e.message, operation="put", public_message=STORE_FAILURE_MESSAGE) from e

        logger.info("signup_accepted", email_hash=email_hash, encrypted=self.codec.encrypted)
        return SignupAcknowledgement()

    async def _enforce(self, scope: str, identity: str, limit: int, window: int, client_ip: str) -> None:
        result = await self.limiter.check(RateLimiter.scoped_key(scope, identity), limit, window)
        if result.limited:
            logger.info("signup_rate_limited", scope=scope, retry_after=result.retry_after)
            self._audit(AuditAction.RATE_LIMITED, client_ip, scope)
            raise RateLimited(retry_after=result.retry_after, scope=scope)

    def _audit(self, action: AuditAction, ip: str, reason: str) -> None:
        if self.audit is not None:
            self.audit.record(action, ip=ip, success=False, reason=reason, endpoint="/api/signup")
