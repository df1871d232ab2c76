"""Admin retrieval of stored signups."""

import asyncio
import re
from typing import Any

import structlog

from waitlist.core.config import Settings
from waitlist.core.exceptions import ConfigurationError, StorageError, ValidationError
from waitlist.core.identity import hash_email, is_valid_email, normalize_email
from waitlist.models.signup import SignupPage, SignupView
from waitlist.services.crypto.codec import SignupCodec
from waitlist.services.signup.intake import storage_prefix
from waitlist.storage.base import ObjectStore, StoredObject

logger = structlog.get_logger()

LIST_FAILURE_MESSAGE = "Unable to load signups"
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def clamp_limit(raw: Any, default: int, maximum: int) -> int:
    """Coerce a page size into ``[1, maximum]``.

    The leading integer is used (``"12abc"`` is 12, ``"1.5"`` is 1); input
    without one gets ``default``.
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return default
    value = int(match.group(1))
    return min(max(value, 1), maximum)


class AdminRetrieval:
    """Lists, fetches and decodes signups for operators.

    Callers must authenticate first. Records that fail to fetch or decode
    are dropped from the page individually; only a listing failure fails the
    whole call.
    """

    def __init__(self, settings: Settings, store: ObjectStore, codec: SignupCodec) -> None:
        if not 1 <= settings.admin_default_limit <= settings.admin_max_limit:
            raise ConfigurationError(
                "admin_default_limit must be between 1 and admin_max_limit",
                details={"default": settings.admin_default_limit, "maximum": settings.admin_max_limit},
            )
        self.settings = settings
        self.store = store
        self.codec = codec

    async def list_signups(
        self,
        filter_email: str | None = None,
        cursor: str | None = None,
        limit: Any = None,
    ) -> SignupPage:
        """Return one page of signups, newest first.

        Args:
            filter_email: Only return records for this address
            cursor: Opaque cursor from a previous page, passed through verbatim
            limit: Requested page size, clamped to the configured maximum

        Returns:
            SignupPage with decoded records, the next cursor and ``has_more``
            as reported by the listing

        Raises:
            ValidationError: filter_email is not a valid address
            StorageError: the listing itself failed
        """
        page_size = clamp_limit(limit, self.settings.admin_default_limit, self.settings.admin_max_limit)

        prefix = storage_prefix()
        if filter_email is not None and filter_email.strip():
            email = normalize_email(filter_email)
            if not is_valid_email(email):
                raise ValidationError("Valid email is required", field="email")
            prefix = storage_prefix(hash_email(email, self.settings.email_hash_length))

        try:
            listing = await asyncio.wait_for(
                self.store.list(prefix, page_size, cursor or None),
                timeout=self.settings.store_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("signup_listing_failed", prefix=prefix, error="timeout")
            raise StorageError(f"Timed out listing {prefix}", operation="list", public_message=LIST_FAILURE_MESSAGE) from e
        except StorageError as e:
            logger.error("signup_listing_failed", prefix=prefix, error=e.message)
            raise StorageError(e.message, operation="list", public_message=LIST_FAILURE_MESSAGE) from e

        results = await asyncio.gather(
            *(self._load(obj) for obj in listing.objects),
            return_exceptions=True,
        )

        signups: list[SignupView] = []
        for obj, result in zip(listing.objects, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "signup_record_skipped",
                    key=obj.key,
                    error_type=type(result).__name__,
                    error=str(result),
                )
                continue
            signups.append(result)

        signups.sort(key=lambda s: s.signup_date, reverse=True)

        logger.info(
            "signups_listed",
            listed=len(listing.objects),
            returned=len(signups),
            filtered=prefix != storage_prefix(),
            has_more=listing.has_more,
        )

        return SignupPage(signups=signups, cursor=listing.cursor, has_more=listing.has_more)

    async def _load(self, obj: StoredObject) -> SignupView:
        raw = await asyncio.wait_for(self.store.get(obj.key), timeout=self.settings.store_timeout_seconds)
        data = self.codec.decode_record(raw)
        return SignupView.from_stored(obj.key, data, obj.uploaded_at)
