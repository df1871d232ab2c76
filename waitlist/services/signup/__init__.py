"""Signup intake and admin retrieval."""

from waitlist.services.signup.intake import SignupIntake, build_storage_key, storage_prefix
from waitlist.services.signup.retrieval import AdminRetrieval, clamp_limit

__all__ = ["SignupIntake", "AdminRetrieval", "build_storage_key", "clamp_limit", "storage_prefix"]
