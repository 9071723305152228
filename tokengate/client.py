"""HTTP transport for token endpoint requests."""

from __future__ import annotations

import uuid
from collections.abc import Sequence

import httpx

from tokengate import config
from tokengate.cache import TokenCache
from tokengate.dto import TokenResponse
from tokengate.errors import ClientAuthError, ServerError
from tokengate.logging_config import get_logger
from tokengate.result import AuthenticationResult, build_authentication_result
from tokengate.validation import validate_token_response

logger = get_logger("tokengate.client")

CORRELATION_HEADER = "client-request-id"


class TokenClient:
    """Acquires tokens from one token endpoint on behalf of one client."""

    def __init__(
        self,
        token_endpoint: str,
        client_id: str,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        cache: TokenCache | None = None,
        http_client: httpx.Client | None = None,
        timeout: float | None = None,
    ):
        self.token_endpoint = token_endpoint
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.cache = cache
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(
            timeout=timeout if timeout is not None else config.HTTP_TIMEOUT
        )

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> TokenClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def acquire_token_by_authorization_code(
        self,
        code: str,
        scopes: Sequence[str],
        code_verifier: str | None = None,
    ) -> AuthenticationResult:
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "scope": " ".join(scopes),
        }
        if self.redirect_uri:
            form["redirect_uri"] = self.redirect_uri
        if code_verifier:
            form["code_verifier"] = code_verifier
        return self._acquire(form, scopes)

    def acquire_token_by_refresh_token(
        self, refresh_token: str, scopes: Sequence[str]
    ) -> AuthenticationResult:
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "scope": " ".join(scopes),
        }
        return self._acquire(form, scopes)

    def acquire_token_for_client(self, scopes: Sequence[str]) -> AuthenticationResult:
        form = {"grant_type": "client_credentials", "scope": " ".join(scopes)}
        return self._acquire(form, scopes)

    def acquire_token_silent(self, scopes: Sequence[str]) -> AuthenticationResult:
        """Serve from cache, falling back to a cached refresh token."""
        if self.cache is not None:
            cached = self.cache.get_access_token(
                self.token_endpoint, self.client_id, scopes
            )
            if cached is not None:
                logger.debug("Access token served from cache", client_id=self.client_id)
                return cached
            refresh_token = self.cache.get_refresh_token(
                self.token_endpoint, self.client_id
            )
            if refresh_token:
                return self.acquire_token_by_refresh_token(refresh_token, scopes)
        raise ClientAuthError.no_tokens_found()

    def _acquire(
        self, form: dict[str, str], scopes: Sequence[str]
    ) -> AuthenticationResult:
        response = self.execute_token_request(form)
        result = build_authentication_result(response, scopes)
        if self.cache is not None:
            self.cache.save(self.token_endpoint, self.client_id, result)
        return result

    def execute_token_request(self, form: dict[str, str]) -> TokenResponse:
        """POST a token request and return the classified response body.

        Raises ServerError when the provider reports an error and
        ClientAuthError when the request or its body is unusable.
        """
        body = {"client_id": self.client_id, **form}
        if self.client_secret:
            body["client_secret"] = self.client_secret
        correlation_id = str(uuid.uuid4())
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
            CORRELATION_HEADER: correlation_id,
        }

        logger.info(
            "Sending token request",
            endpoint=self.token_endpoint,
            grant_type=form.get("grant_type"),
            correlation_id=correlation_id,
        )
        try:
            http_response = self.http_client.post(
                self.token_endpoint, data=body, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(
                "Token request failed",
                endpoint=self.token_endpoint,
                correlation_id=correlation_id,
                error=str(e),
            )
            raise ClientAuthError.network_error(self.token_endpoint, str(e)) from e

        # Error envelopes arrive with 4xx statuses; the body decides.
        try:
            payload = http_response.json()
        except ValueError as e:
            raise ClientAuthError.invalid_json(http_response.status_code) from e
        if not isinstance(payload, dict):
            raise ClientAuthError.invalid_json(http_response.status_code)

        response: TokenResponse = payload
        try:
            validate_token_response(response)
        except ServerError as e:
            logger.warning(
                "Token endpoint reported an error",
                endpoint=self.token_endpoint,
                status_code=http_response.status_code,
                error=e.code,
                correlation_id=e.correlation_id,
                trace_id=e.trace_id,
            )
            raise

        logger.info(
            "Token response accepted",
            endpoint=self.token_endpoint,
            status_code=http_response.status_code,
            has_refresh_token=bool(response.get("refresh_token")),
            has_id_token=bool(response.get("id_token")),
        )
        return response
