"""Pytest configuration and fixtures for the tokengate tests."""

import os
import tempfile
from datetime import UTC, datetime, timedelta

import httpx
import pytest

# Set test environment variables BEFORE any imports from tokengate
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "warning"

# Create a temp file for the database
_temp_db_fd, _temp_db_path = tempfile.mkstemp(suffix=".db")
os.close(_temp_db_fd)
os.environ["DATABASE_PATH"] = _temp_db_path

PROVIDER_URL = "http://provider.test"
TOKEN_ENDPOINT = f"{PROVIDER_URL}/token"
REDIRECT_URI = "http://localhost:8080/callback"


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    """Set up a fresh database for each test."""
    from tokengate.models import MODELS, db

    # Reinitialize db to our test path
    db.init(_temp_db_path)

    if not db.is_closed():
        db.close()
    db.connect()

    # Drop and recreate tables for each test
    db.drop_tables(MODELS, safe=True)
    db.create_tables(MODELS)

    yield db

    db.drop_tables(MODELS, safe=True)
    if not db.is_closed():
        db.close()


@pytest.fixture(scope="function")
def database(setup_database):
    """Alias for setup_database fixture."""
    return setup_database


@pytest.fixture(scope="function")
def app(setup_database):
    from tokengate.server import app

    app.config["TESTING"] = True
    app.config["MIXED_ERROR_ENVELOPES"] = False
    return app


@pytest.fixture(scope="function")
def client(app):
    """Create a Flask test client with fresh database."""
    with app.test_client() as test_client, app.app_context():
        yield test_client


@pytest.fixture
def test_client_oauth(setup_database):
    """Register an OAuth2 client with the mock provider."""
    from tokengate.models import Client

    return Client.create(
        client_id="fixture-test-client-id",
        client_secret="fixture-test-client-secret",
        name="Test Application",
        redirect_uris=f"{REDIRECT_URI} http://localhost:3000/callback",
        allowed_scopes="openid profile email read write",
    )


@pytest.fixture
def test_auth_code(test_client_oauth):
    """Create an authorization code without a PKCE challenge."""
    from tokengate.models import AuthorizationCode

    return AuthorizationCode.create_code(
        client=test_client_oauth,
        redirect_uri=REDIRECT_URI,
        scopes="openid profile",
    )


@pytest.fixture
def test_refresh_token(test_client_oauth):
    from tokengate.models import RefreshToken

    return RefreshToken.create_token(test_client_oauth, "openid profile read")


@pytest.fixture
def expired_refresh_token(test_client_oauth):
    from tokengate.models import RefreshToken

    return RefreshToken.create(
        token="expired-refresh-token",
        client=test_client_oauth,
        scopes="openid",
        expires_at=datetime.now(UTC) - timedelta(hours=1),
    )


@pytest.fixture
def http_client(app):
    """httpx client routed to the mock provider in-process."""
    with httpx.Client(
        transport=httpx.WSGITransport(app=app), base_url=PROVIDER_URL
    ) as http:
        yield http


@pytest.fixture
def token_cache(setup_database):
    from tokengate.cache import TokenCache

    return TokenCache(renewal_offset_seconds=300)


@pytest.fixture
def token_client(http_client, test_client_oauth, token_cache):
    from tokengate.client import TokenClient

    return TokenClient(
        TOKEN_ENDPOINT,
        test_client_oauth.client_id,
        client_secret=test_client_oauth.client_secret,
        redirect_uri=REDIRECT_URI,
        cache=token_cache,
        http_client=http_client,
    )
