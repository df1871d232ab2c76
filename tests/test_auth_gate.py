"""Tests for admin token handling."""

import hmac
from unittest.mock import patch

import pytest

from waitlist.core.exceptions import NotConfigured, Unauthorized
from waitlist.services.auth.gate import AuthGate, extract_token, verify

TOKEN = "s3cret-admin-token"


class TestExtractToken:
    """Tests for header precedence."""

    def test_bearer_header(self):
        assert extract_token(f"Bearer {TOKEN}", None) == TOKEN

    def test_bearer_scheme_is_case_insensitive(self):
        assert extract_token(f"bearer   {TOKEN} ", None) == TOKEN

    def test_bearer_wins_over_admin_header(self):
        assert extract_token("Bearer from-bearer", "from-header") == "from-bearer"

    def test_falls_back_to_admin_header(self):
        assert extract_token(None, f" {TOKEN} ") == TOKEN

    def test_non_bearer_authorization_is_ignored(self):
        assert extract_token(f"Basic {TOKEN}", None) == ""

    def test_nothing_supplied(self):
        assert extract_token(None, None) == ""


class TestVerify:
    """Tests for token comparison."""

    def test_match(self):
        assert verify(TOKEN, TOKEN) is True

    @pytest.mark.parametrize("provided", ["", "s3cret-admin-tokeN", "s3cret", TOKEN + "x"])
    def test_mismatch(self, provided):
        assert verify(provided, TOKEN) is False

    def test_empty_expected_never_matches(self):
        assert verify("", "") is False

    def test_uses_constant_time_comparison(self):
        """Near-misses and total misses take the same comparison path."""
        with patch("waitlist.services.auth.gate.hmac.compare_digest", wraps=hmac.compare_digest) as spy:
            verify("s3cret-admin-tokeX", TOKEN)
            verify("XXXXXXXXXXXXXXXXXX", TOKEN)
        assert spy.call_count == 2


class TestAuthGate:
    """Tests for the authenticate outcome taxonomy."""

    def test_accepts_correct_token(self):
        AuthGate(TOKEN).authenticate(TOKEN)

    def test_not_configured_even_with_token(self):
        with pytest.raises(NotConfigured) as exc_info:
            AuthGate("").authenticate(TOKEN)
        assert exc_info.value.status_code == 503

    def test_missing_token(self):
        with pytest.raises(Unauthorized) as exc_info:
            AuthGate(TOKEN).authenticate("")
        assert exc_info.value.status_code == 401

    def test_wrong_token(self):
        with pytest.raises(Unauthorized):
            AuthGate(TOKEN).authenticate("wrong")

    def test_configured_flag(self):
        assert AuthGate(TOKEN).configured is True
        assert AuthGate(None).configured is False
