from typing import NotRequired, TypedDict


class TokenResponse(TypedDict, total=False):
    """Deserialized reply from a token endpoint.

    Success fields:
    - token_type: the token type, ``Bearer`` for every supported provider.
    - scope: space-delimited scopes the access token is valid for.
    - expires_in: access token lifetime in seconds.
    - ext_expires_in: lifetime in seconds honored while the provider is degraded.
    - access_token: the bearer token presented to resource servers.
    - refresh_token: used to acquire new access tokens once this one expires.
    - id_token: signed identity token, carried as an opaque string.

    Error fields:
    - error: short error code used to classify and react to failures.
    - error_description: human-readable root cause.
    - error_codes: provider-specific codes that help with diagnostics.
    - timestamp: when the error occurred.
    - trace_id: identifies the request on the provider side.
    - correlation_id: identifies the request across components.

    Every field is optional; the same shape carries both branches.
    """

    token_type: str
    scope: str
    expires_in: int
    ext_expires_in: int
    access_token: str
    refresh_token: str
    id_token: str
    error: str
    error_description: str
    error_codes: list[str]
    timestamp: str
    trace_id: str
    correlation_id: str


class ErrorResponse(TypedDict):
    error: str
    error_description: NotRequired[str]
    error_codes: NotRequired[list[str]]
    timestamp: NotRequired[str]
    trace_id: NotRequired[str]
    correlation_id: NotRequired[str]


class OAuthMetadataResponse(TypedDict):
    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    response_types_supported: list[str]
    grant_types_supported: list[str]
    token_endpoint_auth_methods_supported: list[str]
    code_challenge_methods_supported: list[str]
    scopes_supported: list[str]
