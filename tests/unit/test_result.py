"""Unit tests for tokengate/result.py"""

from datetime import UTC, datetime, timedelta

import pytest

from tokengate.errors import ClientAuthError
from tokengate.result import AuthenticationResult, build_authentication_result

NOW = datetime(2024, 1, 1, tzinfo=UTC)


class TestBuildAuthenticationResult:
    """Tests for build_authentication_result."""

    def test_builds_full_result(self):
        """Should map every success field."""
        response = {
            "token_type": "Bearer",
            "scope": "openid profile",
            "expires_in": 3600,
            "ext_expires_in": 7200,
            "access_token": "at",
            "refresh_token": "rt",
            "id_token": "idt",
        }
        result = build_authentication_result(response, ["openid"], now=NOW)
        assert result.access_token == "at"
        assert result.token_type == "Bearer"
        assert result.scopes == ("openid", "profile")
        assert result.expires_on == NOW + timedelta(seconds=3600)
        assert result.ext_expires_on == NOW + timedelta(seconds=7200)
        assert result.refresh_token == "rt"
        assert result.id_token == "idt"

    def test_missing_access_token_raises(self):
        """Should reject a success candidate without an access token."""
        with pytest.raises(ClientAuthError) as exc_info:
            build_authentication_result({}, now=NOW)
        assert exc_info.value.code == ClientAuthError.EMPTY_ACCESS_TOKEN

    def test_empty_access_token_raises(self):
        """Should reject an empty access token."""
        with pytest.raises(ClientAuthError):
            build_authentication_result({"access_token": ""}, now=NOW)

    def test_defaults_token_type_to_bearer(self):
        """Should default a missing token_type."""
        result = build_authentication_result({"access_token": "at"}, now=NOW)
        assert result.token_type == "Bearer"

    def test_falls_back_to_requested_scopes(self):
        """Should use requested scopes when the response has no scope."""
        result = build_authentication_result(
            {"access_token": "at"}, ["read", "write"], now=NOW
        )
        assert result.scopes == ("read", "write")
        assert result.scope == "read write"

    def test_missing_lifetime_means_no_expiry(self):
        """Should leave expires_on unset without expires_in."""
        result = build_authentication_result({"access_token": "at"}, now=NOW)
        assert result.expires_on is None
        assert result.ext_expires_on is None
        assert result.is_expired(now=NOW + timedelta(days=365)) is False

    def test_numeric_string_lifetime(self):
        """Should accept lifetimes sent as numeric strings."""
        result = build_authentication_result(
            {"access_token": "at", "expires_in": "60"}, now=NOW
        )
        assert result.expires_on == NOW + timedelta(seconds=60)

    @pytest.mark.parametrize("value", ["soon", [], True])
    def test_invalid_lifetime_raises(self, value):
        """Should reject lifetimes that are not integers."""
        with pytest.raises(ClientAuthError) as exc_info:
            build_authentication_result({"access_token": "at", "expires_in": value})
        assert exc_info.value.code == ClientAuthError.INVALID_EXPIRES_IN

    def test_does_not_mutate_response(self):
        """Should leave the response untouched."""
        response = {"access_token": "at", "expires_in": 10}
        build_authentication_result(response, now=NOW)
        assert response == {"access_token": "at", "expires_in": 10}


class TestAuthenticationResult:
    """Tests for AuthenticationResult."""

    def test_is_expired_honors_offset(self):
        """Should report expiry once within the renewal offset."""
        result = AuthenticationResult(
            access_token="at",
            token_type="Bearer",
            scopes=(),
            expires_on=NOW + timedelta(seconds=200),
        )
        assert result.is_expired(now=NOW) is False
        assert result.is_expired(offset_seconds=300, now=NOW) is True

    def test_is_frozen(self):
        """Should not allow reassignment."""
        result = AuthenticationResult(
            access_token="at", token_type="Bearer", scopes=(), expires_on=None
        )
        with pytest.raises(AttributeError):
            result.access_token = "other"
