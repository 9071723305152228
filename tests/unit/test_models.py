"""Unit tests for tokengate/models.py"""

from datetime import UTC, datetime, timedelta

import peewee
import pytest

from tokengate import config
from tokengate.models import (
    AuthorizationCode,
    CacheEntry,
    Client,
    RefreshToken,
    create_test_data,
)


class TestClient:
    """Tests for Client model."""

    def test_client_id_uniqueness(self, database):
        Client.create(client_id="c", client_secret="s", name="n", redirect_uris="")
        with pytest.raises(peewee.IntegrityError):
            Client.create(client_id="c", client_secret="s", name="n", redirect_uris="")

    def test_validate_redirect_uri(self, test_client_oauth):
        assert test_client_oauth.validate_redirect_uri("http://localhost:8080/callback")
        assert not test_client_oauth.validate_redirect_uri("http://evil/cb")
        assert not test_client_oauth.validate_redirect_uri(None)

    def test_validate_scopes(self, test_client_oauth):
        assert test_client_oauth.validate_scopes("openid read")
        assert test_client_oauth.validate_scopes("")
        assert not test_client_oauth.validate_scopes("openid admin")

    def test_create_test_data_is_idempotent(self, database):
        create_test_data()
        create_test_data()
        assert Client.select().where(Client.client_id == config.TEST_CLIENT_ID).count() == 1


class TestAuthorizationCode:
    def test_create_code(self, test_client_oauth):
        code = AuthorizationCode.create_code(
            client=test_client_oauth,
            redirect_uri="http://localhost:8080/callback",
            scopes="openid",
            code_challenge="challenge",
        )
        assert len(code.code) > 20
        assert code.used is False
        assert code.code_challenge == "challenge"
        assert not code.is_expired()

    def test_expiry_round_trips_as_aware_datetime(self, test_auth_code):
        reloaded = AuthorizationCode.get_by_id(test_auth_code.id)
        assert reloaded.expires_at.tzinfo is not None
        reloaded.expires_at = datetime.now(UTC) - timedelta(seconds=1)
        assert reloaded.is_expired()


class TestRefreshToken:
    def test_default_lifetime(self, test_refresh_token):
        remaining = test_refresh_token.expires_at - datetime.now(UTC)
        assert remaining > timedelta(seconds=config.REFRESH_TOKEN_EXPIRES_IN - 60)
        assert test_refresh_token.is_valid()

    def test_revoked_is_invalid(self, test_refresh_token):
        test_refresh_token.revoked = True
        assert not test_refresh_token.is_valid()

    def test_expired_is_invalid(self, expired_refresh_token):
        assert expired_refresh_token.is_expired()
        assert not expired_refresh_token.is_valid()

    def test_backref(self, test_client_oauth, test_refresh_token):
        assert list(test_client_oauth.refresh_tokens) == [test_refresh_token]
        assert isinstance(test_refresh_token, RefreshToken)


class TestCacheEntry:
    def test_scope_set_is_lowercased(self, database):
        entry = CacheEntry.create(
            environment="http://idp/token",
            client_id="c",
            credential_type=CacheEntry.ACCESS_TOKEN,
            target="OpenID Read",
            secret="at",
        )
        assert entry.scope_set() == {"openid", "read"}

    def test_optional_expiry(self, database):
        entry = CacheEntry.create(
            environment="http://idp/token",
            client_id="c",
            credential_type=CacheEntry.REFRESH_TOKEN,
            secret="rt",
        )
        reloaded = CacheEntry.get_by_id(entry.id)
        assert reloaded.expires_on is None
        assert reloaded.target == ""
