"""Signup models: inbound submission, stored record and admin views."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from waitlist.core.identity import sanitize_string

MAX_NAME_LENGTH = 120
MAX_INTEREST_LENGTH = 1000
MAX_POLICY_VERSION_LENGTH = 32
DEFAULT_POLICY_VERSION = "unknown"

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}

_DATETIME = TypeAdapter(datetime)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> datetime | None:
    """Parse a stored timestamp, or None when it is missing or unreadable."""
    if value is None or value == "":
        return None
    try:
        return _DATETIME.validate_python(value)
    except PydanticValidationError:
        return None


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupSubmission(CamelModel):
    """Schema for a waitlist submission.

    Presence and length rules live here; email format, consent and the
    honeypot are checked by the intake pipeline so that they can be ordered
    against rate limiting.
    """

    full_name: str = Field(min_length=1)
    email: str = ""
    main_interest: str = Field(min_length=1, max_length=MAX_INTEREST_LENGTH)
    policy_version: str = Field(default="", max_length=MAX_POLICY_VERSION_LENGTH)
    consent_to_contact: bool | None = None

    # Honeypot: hidden from real users. Kept raw so that blank or invisible
    # filler still counts as filled.
    company: str = ""

    @field_validator("full_name", "email", "main_interest", "policy_version", mode="before")
    @classmethod
    def _sanitize(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return sanitize_string(value)
        return value

    @field_validator("company", mode="before")
    @classmethod
    def _honeypot_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("full_name")
    @classmethod
    def _truncate_name(cls, value: str) -> str:
        return value[:MAX_NAME_LENGTH]

    @field_validator("consent_to_contact", mode="before")
    @classmethod
    def _parse_consent(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return value


class SignupRecord(CamelModel):
    """A single accepted waitlist signup. Never mutated after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    email: str = Field(min_length=1, max_length=254)
    full_name: str = Field(max_length=MAX_NAME_LENGTH)
    main_interest: str = Field(max_length=MAX_INTEREST_LENGTH)
    policy_version: str = Field(default=DEFAULT_POLICY_VERSION, max_length=MAX_POLICY_VERSION_LENGTH)
    consent_to_contact: bool
    consent_timestamp: datetime
    signup_date: datetime

    @classmethod
    def accept(
        cls,
        email: str,
        full_name: str,
        main_interest: str,
        policy_version: str,
        now: datetime | None = None,
    ) -> "SignupRecord":
        """Build a record with server-assigned timestamps."""
        timestamp = now or utcnow()
        return cls(
            email=email,
            full_name=full_name,
            main_interest=main_interest,
            policy_version=policy_version or DEFAULT_POLICY_VERSION,
            consent_to_contact=True,
            consent_timestamp=timestamp,
            signup_date=timestamp,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SignupAcknowledgement(BaseModel):
    """Opaque success response; carries no internal identifiers."""

    message: str = "Successfully joined the waitlist"


class SignupView(CamelModel):
    """A decoded signup as returned by the admin listing."""

    id: str
    full_name: str = ""
    email: str = ""
    main_interest: str = ""
    signup_date: datetime
    stored_at: datetime

    @field_validator("signup_date", "stored_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_stored(cls, key: str, data: dict[str, Any], stored_at: datetime) -> "SignupView":
        """Build a view from decoded record JSON, tolerating legacy gaps."""
        return cls(
            id=key,
            full_name=data.get("fullName") or "",
            email=data.get("email") or "",
            main_interest=data.get("mainInterest") or "",
            signup_date=parse_datetime(data.get("signupDate")) or stored_at,
            stored_at=stored_at,
        )


class SignupPage(CamelModel):
    """One page of the admin listing."""

    signups: list[SignupView] = Field(default_factory=list)
    cursor: str | None = None
    has_more: bool = False
