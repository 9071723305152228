from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from tokengate.dto import TokenResponse
from tokengate.errors import ClientAuthError

DEFAULT_TOKEN_TYPE = "Bearer"


@dataclass(frozen=True)
class AuthenticationResult:
    access_token: str
    token_type: str
    scopes: tuple[str, ...]
    expires_on: datetime | None
    ext_expires_on: datetime | None = None
    refresh_token: str | None = None
    id_token: str | None = None

    def is_expired(self, offset_seconds: int = 0, now: datetime | None = None) -> bool:
        if self.expires_on is None:
            return False
        now = now or datetime.now(UTC)
        return now + timedelta(seconds=offset_seconds) >= self.expires_on

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)


def _parse_lifetime(response: TokenResponse, field: str) -> int | None:
    value = response.get(field)
    if value is None:
        return None
    # Some providers send lifetimes as numeric strings.
    if isinstance(value, bool):
        raise ClientAuthError.invalid_expires_in(field, value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ClientAuthError.invalid_expires_in(field, value) from e


def build_authentication_result(
    response: TokenResponse,
    requested_scopes: list[str] | tuple[str, ...] = (),
    now: datetime | None = None,
) -> AuthenticationResult:
    """Assemble an AuthenticationResult from a classified success response.

    Only call this after validate_token_response has passed; error fields
    are not looked at here.
    """
    access_token = response.get("access_token")
    if not access_token:
        raise ClientAuthError.empty_access_token()

    now = now or datetime.now(UTC)
    expires_in = _parse_lifetime(response, "expires_in")
    ext_expires_in = _parse_lifetime(response, "ext_expires_in")

    granted = response.get("scope")
    scopes = tuple(granted.split()) if granted else tuple(requested_scopes)

    return AuthenticationResult(
        access_token=access_token,
        token_type=response.get("token_type") or DEFAULT_TOKEN_TYPE,
        scopes=scopes,
        expires_on=now + timedelta(seconds=expires_in)
        if expires_in is not None
        else None,
        ext_expires_on=now + timedelta(seconds=ext_expires_in)
        if ext_expires_in is not None
        else None,
        refresh_token=response.get("refresh_token") or None,
        id_token=response.get("id_token") or None,
    )
