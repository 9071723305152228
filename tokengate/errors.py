"""Errors raised while acquiring tokens."""

from __future__ import annotations

from collections.abc import Sequence


class AuthError(Exception):
    """Base class for every token acquisition failure."""

    def __init__(self, code: str | None, message: str):
        self._code = code
        self._message = message
        super().__init__(message)

    def __reduce__(self):
        # args only holds the message; rebuild from code and message and
        # restore subclass diagnostics from the instance dict.
        return (self.__class__, (self._code, self._message), self.__dict__.copy())

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def message(self) -> str:
        return self._message


class ServerError(AuthError):
    """The identity provider reported an authorization error.

    ``code`` is the provider's ``error`` value exactly as received, which
    may be ``None`` when only a description was sent.
    """

    def __init__(
        self,
        code: str | None,
        message: str,
        *,
        error_description: str | None = None,
        error_codes: Sequence[str] | None = None,
        timestamp: str | None = None,
        trace_id: str | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(code, message)
        self._error_description = error_description
        self._error_codes = tuple(error_codes) if error_codes is not None else None
        self._timestamp = timestamp
        self._trace_id = trace_id
        self._correlation_id = correlation_id

    @property
    def error_description(self) -> str | None:
        return self._error_description

    @property
    def error_codes(self) -> tuple[str, ...] | None:
        return self._error_codes

    @property
    def timestamp(self) -> str | None:
        return self._timestamp

    @property
    def trace_id(self) -> str | None:
        return self._trace_id

    @property
    def correlation_id(self) -> str | None:
        return self._correlation_id


class ClientAuthError(AuthError):
    """A failure detected by the client rather than reported by the provider."""

    NETWORK_ERROR = "network_error"
    INVALID_JSON = "invalid_json"
    EMPTY_ACCESS_TOKEN = "empty_access_token"
    INVALID_EXPIRES_IN = "invalid_expires_in"
    NO_TOKENS_FOUND = "no_tokens_found"

    @classmethod
    def network_error(cls, endpoint: str, reason: str) -> ClientAuthError:
        return cls(
            cls.NETWORK_ERROR,
            f"Network request to {endpoint} failed: {reason}",
        )

    @classmethod
    def invalid_json(cls, status_code: int) -> ClientAuthError:
        return cls(
            cls.INVALID_JSON,
            f"Token endpoint returned a body that is not a JSON object "
            f"(HTTP {status_code})",
        )

    @classmethod
    def empty_access_token(cls) -> ClientAuthError:
        return cls(
            cls.EMPTY_ACCESS_TOKEN,
            "Token response did not contain an access token",
        )

    @classmethod
    def invalid_expires_in(cls, field: str, value: object) -> ClientAuthError:
        return cls(
            cls.INVALID_EXPIRES_IN,
            f"Token response field {field} is not an integer: {value!r}",
        )

    @classmethod
    def no_tokens_found(cls) -> ClientAuthError:
        return cls(
            cls.NO_TOKENS_FOUND,
            "No cached access token or refresh token matches the request",
        )
