"""Persistent token cache backed by the peewee CacheEntry model."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from tokengate import config
from tokengate.models import CacheEntry, db, init_db
from tokengate.result import AuthenticationResult


def _normalize_scopes(scopes: Iterable[str]) -> set[str]:
    return {scope.lower() for scope in scopes if scope}


class TokenCache:
    """Stores tokens per (token endpoint, client id).

    Access tokens are additionally keyed by the scopes they were granted
    for; a lookup succeeds when the cached scopes cover the requested ones.
    """

    def __init__(self, renewal_offset_seconds: int | None = None):
        if renewal_offset_seconds is None:
            renewal_offset_seconds = config.TOKEN_RENEWAL_OFFSET_SECONDS
        self.renewal_offset_seconds = renewal_offset_seconds
        init_db()

    def _entries(self, environment: str, client_id: str, credential_type: str):
        return CacheEntry.select().where(
            (CacheEntry.environment == environment)
            & (CacheEntry.client_id == client_id)
            & (CacheEntry.credential_type == credential_type)
        )

    def save(
        self, environment: str, client_id: str, result: AuthenticationResult
    ) -> None:
        granted = _normalize_scopes(result.scopes)
        with db.atomic():
            stale = list(self._entries(environment, client_id, CacheEntry.ACCESS_TOKEN))
            for entry in stale:
                if entry.scope_set() & granted or not granted:
                    entry.delete_instance()
            CacheEntry.create(
                environment=environment,
                client_id=client_id,
                credential_type=CacheEntry.ACCESS_TOKEN,
                target=result.scope,
                secret=result.access_token,
                token_type=result.token_type,
                expires_on=result.expires_on,
                ext_expires_on=result.ext_expires_on,
            )
            if result.refresh_token:
                self._replace(
                    environment, client_id, CacheEntry.REFRESH_TOKEN, result.refresh_token
                )
            if result.id_token:
                self._replace(environment, client_id, CacheEntry.ID_TOKEN, result.id_token)

    def _replace(
        self, environment: str, client_id: str, credential_type: str, secret: str
    ) -> None:
        CacheEntry.delete().where(
            (CacheEntry.environment == environment)
            & (CacheEntry.client_id == client_id)
            & (CacheEntry.credential_type == credential_type)
        ).execute()
        CacheEntry.create(
            environment=environment,
            client_id=client_id,
            credential_type=credential_type,
            secret=secret,
        )

    def get_access_token(
        self,
        environment: str,
        client_id: str,
        scopes: Iterable[str],
        now: datetime | None = None,
    ) -> AuthenticationResult | None:
        """Return a cached access token that stays valid past the renewal offset."""
        requested = _normalize_scopes(scopes)
        threshold = (now or datetime.now(UTC)) + timedelta(
            seconds=self.renewal_offset_seconds
        )
        for entry in list(self._entries(environment, client_id, CacheEntry.ACCESS_TOKEN)):
            if not requested.issubset(entry.scope_set()):
                continue
            if entry.expires_on is not None and entry.expires_on <= threshold:
                continue
            return AuthenticationResult(
                access_token=entry.secret,
                token_type=entry.token_type or "Bearer",
                scopes=tuple(entry.target.split()),
                expires_on=entry.expires_on,
                ext_expires_on=entry.ext_expires_on,
                refresh_token=self.get_refresh_token(environment, client_id),
                id_token=self.get_id_token(environment, client_id),
            )
        return None

    def _get_secret(
        self, environment: str, client_id: str, credential_type: str
    ) -> str | None:
        entry = self._entries(environment, client_id, credential_type).first()
        return entry.secret if entry else None

    def get_refresh_token(self, environment: str, client_id: str) -> str | None:
        return self._get_secret(environment, client_id, CacheEntry.REFRESH_TOKEN)

    def get_id_token(self, environment: str, client_id: str) -> str | None:
        return self._get_secret(environment, client_id, CacheEntry.ID_TOKEN)

    def remove(self, environment: str, client_id: str) -> int:
        return (
            CacheEntry.delete()
            .where(
                (CacheEntry.environment == environment)
                & (CacheEntry.client_id == client_id)
            )
            .execute()
        )

    def clear(self) -> int:
        return CacheEntry.delete().execute()
