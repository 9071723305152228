"""Centralized configuration for tokengate and its mock identity provider.

All configurations can be overridden via environment variables with the same name.
"""

import os
import secrets


def get_env(name: str, default: str) -> str:
    """Get environment variable or return default."""
    return os.getenv(name, default)


def get_env_int(name: str, default: int) -> int:
    """Get environment variable as integer or return default."""
    value = os.getenv(name)
    if value is not None:
        return int(value)
    return default


def get_env_float(name: str, default: float) -> float:
    """Get environment variable as float or return default."""
    value = os.getenv(name)
    if value is not None:
        return float(value)
    return default


def get_env_bool(name: str, default: bool) -> bool:
    """Get environment variable as boolean or return default."""
    value = os.getenv(name)
    if value is not None:
        return value.lower() in ("true", "1", "yes")
    return default


# Mock provider (Flask) settings
SECRET_KEY = get_env("SECRET_KEY", secrets.token_hex(32))
DEBUG = get_env_bool("DEBUG", True)
HOST = get_env("HOST", "127.0.0.1")
PORT = get_env_int("PORT", 8083)

# Database shared by the provider and the client-side token cache
DATABASE_PATH = get_env("DATABASE_PATH", "tokengate.db")

# Lifetimes issued by the mock provider (in seconds)
AUTHORIZATION_CODE_EXPIRES_IN = get_env_int(
    "AUTHORIZATION_CODE_EXPIRES_IN", 600
)  # 10 minutes
ACCESS_TOKEN_EXPIRES_IN = get_env_int("ACCESS_TOKEN_EXPIRES_IN", 3600)  # 1 hour
EXT_ACCESS_TOKEN_EXPIRES_IN = get_env_int(
    "EXT_ACCESS_TOKEN_EXPIRES_IN", 7200
)  # 2 hours
REFRESH_TOKEN_EXPIRES_IN = get_env_int("REFRESH_TOKEN_EXPIRES_IN", 2592000)  # 30 days

# Client registered with the mock provider on startup
TEST_CLIENT_ID = get_env("TEST_CLIENT_ID", "test-client")
TEST_CLIENT_SECRET = get_env("TEST_CLIENT_SECRET", "test-secret")
TEST_CLIENT_NAME = get_env("TEST_CLIENT_NAME", "Test Application")
TEST_CLIENT_REDIRECT_URIS = get_env(
    "TEST_CLIENT_REDIRECT_URIS",
    "http://localhost:8080/callback http://localhost:3000/callback",
)
TEST_CLIENT_SCOPES = get_env("TEST_CLIENT_SCOPES", "openid profile email read write")

# Token client
HTTP_TIMEOUT = get_env_float("HTTP_TIMEOUT", 10.0)
TOKEN_RENEWAL_OFFSET_SECONDS = get_env_int("TOKEN_RENEWAL_OFFSET_SECONDS", 300)

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "info")
LOG_JSON = get_env_bool("LOG_JSON", False)
