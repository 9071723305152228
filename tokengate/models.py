from __future__ import annotations

import secrets
import sqlite3
from datetime import UTC, datetime, timedelta
from typing import Self

from peewee import (
    AutoField,
    BooleanField,
    CharField,
    DateTimeField,
    DoesNotExist,
    ForeignKeyField,
    Model,
    SqliteDatabase,
    TextField,
)

from tokengate import config


# Register datetime adapter and converter for SQLite
# This ensures datetime objects are properly serialized/deserialized
def _adapt_datetime(dt: datetime) -> str:
    """Convert datetime to ISO format string for SQLite storage."""
    return dt.isoformat()


def _convert_datetime(val: bytes | str) -> datetime:
    """Convert ISO format string back to an aware datetime."""
    if isinstance(val, bytes):
        val = val.decode("utf-8")
    if val.endswith("Z"):
        val = val[:-1] + "+00:00"
    parsed = datetime.fromisoformat(val)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("datetime", _convert_datetime)
sqlite3.register_converter("DATETIME", _convert_datetime)
sqlite3.register_converter("timestamp", _convert_datetime)
sqlite3.register_converter("TIMESTAMP", _convert_datetime)

db = SqliteDatabase(
    config.DATABASE_PATH,
    pragmas={
        "journal_mode": "wal",
        "foreign_keys": 1,
    },
    detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
)


class BaseModel(Model):
    id: int
    DoesNotExist: type[DoesNotExist]
    created_at: datetime

    id = AutoField(primary_key=True)
    created_at = DateTimeField(default=lambda: datetime.now(tz=UTC))

    class Meta:
        database = db


def _split(value: str) -> list[str]:
    return value.split() if value else []


# Mock identity provider


class Client(BaseModel):
    client_id: str
    client_secret: str
    name: str
    redirect_uris: str  # Space-separated URIs
    allowed_scopes: str  # Space-separated scopes

    client_id = CharField(unique=True)
    client_secret = CharField()
    name = CharField()
    redirect_uris = TextField()
    allowed_scopes = TextField(default="openid profile email")

    def validate_redirect_uri(self, uri: str | None) -> bool:
        return uri in _split(self.redirect_uris)

    def validate_scopes(self, scopes: str) -> bool:
        return set(_split(scopes)).issubset(_split(self.allowed_scopes))


class AuthorizationCode(BaseModel):
    code: str
    client: Client
    redirect_uri: str
    scopes: str
    code_challenge: str | None
    expires_at: datetime
    used: bool

    code = CharField(unique=True)
    client = ForeignKeyField(Client, backref="auth_codes")
    redirect_uri = CharField()
    scopes = TextField()
    code_challenge = CharField(null=True)
    expires_at = DateTimeField()
    used = BooleanField(default=False)

    @classmethod
    def create_code(
        cls,
        client: Client,
        redirect_uri: str,
        scopes: str,
        code_challenge: str | None = None,
    ) -> Self:
        expires_at = datetime.now(UTC) + timedelta(
            seconds=config.AUTHORIZATION_CODE_EXPIRES_IN
        )
        return cls.create(
            code=secrets.token_urlsafe(32),
            client=client,
            redirect_uri=redirect_uri,
            scopes=scopes,
            code_challenge=code_challenge,
            expires_at=expires_at,
        )

    def is_expired(self) -> bool:
        return datetime.now(UTC) > self.expires_at


class RefreshToken(BaseModel):
    token: str
    client: Client
    scopes: str
    expires_at: datetime
    revoked: bool

    token = CharField(unique=True)
    client = ForeignKeyField(Client, backref="refresh_tokens")
    scopes = TextField()
    expires_at = DateTimeField()
    revoked = BooleanField(default=False)

    @classmethod
    def create_token(
        cls,
        client: Client,
        scopes: str,
        expires_in: int | None = None,
    ) -> Self:
        if expires_in is None:
            expires_in = config.REFRESH_TOKEN_EXPIRES_IN
        expires_at = datetime.now(UTC) + timedelta(seconds=expires_in)
        return cls.create(
            token=secrets.token_urlsafe(32),
            client=client,
            scopes=scopes,
            expires_at=expires_at,
        )

    def is_expired(self) -> bool:
        return datetime.now(UTC) > self.expires_at

    def is_valid(self) -> bool:
        return not self.revoked and not self.is_expired()


# Client-side token cache


class CacheEntry(BaseModel):
    ACCESS_TOKEN = "AccessToken"
    REFRESH_TOKEN = "RefreshToken"
    ID_TOKEN = "IdToken"

    environment: str
    client_id: str
    credential_type: str
    target: str
    secret: str
    token_type: str | None
    expires_on: datetime | None
    ext_expires_on: datetime | None

    environment = CharField(index=True)  # Token endpoint URL
    client_id = CharField(index=True)
    credential_type = CharField()
    target = TextField(default="")  # Space-separated scopes
    secret = TextField()
    token_type = CharField(null=True)
    expires_on = DateTimeField(null=True)
    ext_expires_on = DateTimeField(null=True)

    def scope_set(self) -> set[str]:
        return {scope.lower() for scope in _split(self.target)}


MODELS = [Client, AuthorizationCode, RefreshToken, CacheEntry]


def init_db() -> None:
    db.connect(reuse_if_open=True)
    db.create_tables(MODELS)


def create_test_data() -> None:
    """Register the development client with the mock provider."""
    init_db()

    Client.get_or_create(
        client_id=config.TEST_CLIENT_ID,
        defaults={
            "client_secret": config.TEST_CLIENT_SECRET,
            "name": config.TEST_CLIENT_NAME,
            "redirect_uris": config.TEST_CLIENT_REDIRECT_URIS,
            "allowed_scopes": config.TEST_CLIENT_SCOPES,
        },
    )
