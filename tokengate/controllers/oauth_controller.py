import secrets
import uuid
from datetime import UTC, datetime
from urllib.parse import urlencode

from flask import Blueprint, current_app, jsonify, redirect, request

from tokengate import config
from tokengate.dto import ErrorResponse, OAuthMetadataResponse, TokenResponse
from tokengate.logging_config import get_logger
from tokengate.models import AuthorizationCode, Client, RefreshToken
from tokengate.pkce import CODE_CHALLENGE_METHOD, verify_code_challenge

logger = get_logger("tokengate.provider")

oauth_bp = Blueprint("oauth", __name__)

# Provider-specific diagnostic codes attached to error envelopes
ERROR_CODES = {
    "invalid_request": "900144",
    "invalid_client": "7000215",
    "invalid_grant": "70000",
    "invalid_scope": "70011",
    "unsupported_grant_type": "70003",
    "unsupported_response_type": "900171",
    "code_expired": "70008",
    "pkce_mismatch": "501481",
}


def error_response(
    error: str,
    description: str,
    status: int = 400,
    diagnostic: str | None = None,
):
    """Build a token endpoint error envelope with full diagnostics."""
    sts_code = ERROR_CODES[diagnostic or error]
    envelope = ErrorResponse(
        error=error,
        error_description=f"MOCKSTS{sts_code}: {description}",
        error_codes=[sts_code],
        timestamp=datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%SZ"),
        trace_id=str(uuid.uuid4()),
        correlation_id=request.headers.get("client-request-id") or str(uuid.uuid4()),
    )
    body = dict(envelope)
    if current_app.config.get("MIXED_ERROR_ENVELOPES"):
        # Success-shaped fields riding along with the error
        body.update(token_type="Bearer", expires_in=0, access_token="")
    logger.info(
        "Token request rejected",
        error=error,
        error_codes=envelope["error_codes"],
        correlation_id=envelope["correlation_id"],
        trace_id=envelope["trace_id"],
    )
    return jsonify(body), status


def authenticate_client() -> Client | None:
    """Authenticate client from Basic auth or POST body."""
    auth = request.authorization
    if auth:
        client_id = auth.username
        client_secret = auth.password
    else:
        client_id = request.form.get("client_id")
        client_secret = request.form.get("client_secret")

    if not client_id or not client_secret:
        return None

    try:
        client = Client.get(Client.client_id == client_id)
    except Client.DoesNotExist:
        return None
    if secrets.compare_digest(client.client_secret, client_secret):
        return client
    return None


def public_client() -> Client | None:
    """Identify a client that sent only its client_id in the body.

    Such a client is trusted only for codes bound to a PKCE challenge.
    """
    if request.authorization or request.form.get("client_secret"):
        return None
    client_id = request.form.get("client_id")
    if not client_id:
        return None
    try:
        return Client.get(Client.client_id == client_id)
    except Client.DoesNotExist:
        return None


def issue_tokens(
    client: Client, scopes: str, with_refresh_token: bool = True
) -> TokenResponse:
    response = TokenResponse(
        token_type="Bearer",
        scope=scopes,
        expires_in=config.ACCESS_TOKEN_EXPIRES_IN,
        ext_expires_in=config.EXT_ACCESS_TOKEN_EXPIRES_IN,
        access_token=secrets.token_urlsafe(32),
    )
    if with_refresh_token:
        response["refresh_token"] = RefreshToken.create_token(client, scopes).token
    if "openid" in scopes.split():
        # Opaque here; decoding id tokens is left to the consumer.
        response["id_token"] = secrets.token_urlsafe(48)
    return response


@oauth_bp.route("/authorize", methods=["GET"])
def authorize():
    """Non-interactive authorization endpoint.
    ---
    tags:
      - OAuth2
    parameters:
      - name: response_type
        in: query
        type: string
        required: true
        enum: [code]
      - name: client_id
        in: query
        type: string
        required: true
      - name: redirect_uri
        in: query
        type: string
        required: true
      - name: scope
        in: query
        type: string
        required: false
        description: Space-separated list of scopes
      - name: state
        in: query
        type: string
        required: false
      - name: code_challenge
        in: query
        type: string
        required: false
        description: PKCE challenge
      - name: code_challenge_method
        in: query
        type: string
        required: false
        enum: [S256]
    responses:
      302:
        description: Redirects to redirect_uri with code and state
      400:
        description: Invalid request parameters
    """
    response_type = request.args.get("response_type")
    client_id = request.args.get("client_id")
    redirect_uri = request.args.get("redirect_uri")
    scope = request.args.get("scope", "")
    state = request.args.get("state", "")
    code_challenge = request.args.get("code_challenge")
    challenge_method = request.args.get("code_challenge_method", CODE_CHALLENGE_METHOD)

    if response_type != "code":
        return error_response(
            "unsupported_response_type", "Only the code response type is supported"
        )

    try:
        client = Client.get(Client.client_id == client_id)
    except Client.DoesNotExist:
        return error_response("invalid_client", f"Unknown client {client_id}")

    if not client.validate_redirect_uri(redirect_uri):
        return error_response(
            "invalid_request", "Redirect URI is not registered for this client"
        )

    params = {}
    if not client.validate_scopes(scope):
        params["error"] = "invalid_scope"
    elif code_challenge and challenge_method != CODE_CHALLENGE_METHOD:
        params["error"] = "invalid_request"
    else:
        auth_code = AuthorizationCode.create_code(
            client=client,
            redirect_uri=redirect_uri,
            scopes=scope,
            code_challenge=code_challenge,
        )
        params["code"] = auth_code.code
    if state:
        params["state"] = state
    return redirect(f"{redirect_uri}?{urlencode(params)}")


@oauth_bp.route("/token", methods=["POST"])
def token():
    """Token endpoint.
    ---
    tags:
      - OAuth2
    consumes:
      - application/x-www-form-urlencoded
    parameters:
      - name: grant_type
        in: formData
        type: string
        required: true
        enum: [authorization_code, client_credentials, refresh_token]
      - name: code
        in: formData
        type: string
        required: false
      - name: redirect_uri
        in: formData
        type: string
        required: false
      - name: code_verifier
        in: formData
        type: string
        required: false
      - name: client_id
        in: formData
        type: string
        required: false
      - name: client_secret
        in: formData
        type: string
        required: false
      - name: refresh_token
        in: formData
        type: string
        required: false
      - name: scope
        in: formData
        type: string
        required: false
      - name: client-request-id
        in: header
        type: string
        required: false
        description: Echoed back as correlation_id on errors
    security:
      - BasicAuth: []
    responses:
      200:
        description: Token response
        schema:
          type: object
          properties:
            token_type:
              type: string
              example: "Bearer"
            scope:
              type: string
            expires_in:
              type: integer
              example: 3600
            ext_expires_in:
              type: integer
              example: 7200
            access_token:
              type: string
            refresh_token:
              type: string
            id_token:
              type: string
      400:
        description: Error envelope
        schema:
          type: object
          properties:
            error:
              type: string
              example: "invalid_grant"
            error_description:
              type: string
            error_codes:
              type: array
              items:
                type: string
            timestamp:
              type: string
            trace_id:
              type: string
            correlation_id:
              type: string
      401:
        description: Invalid client credentials
    """
    grant_type = request.form.get("grant_type")

    if grant_type == "authorization_code":
        return _handle_authorization_code_grant()
    elif grant_type == "client_credentials":
        return _handle_client_credentials_grant()
    elif grant_type == "refresh_token":
        return _handle_refresh_token_grant()
    else:
        return error_response(
            "unsupported_grant_type", f"Grant type {grant_type!r} is not supported"
        )


def _handle_authorization_code_grant():
    """Handle authorization_code grant type."""
    code = request.form.get("code")
    redirect_uri = request.form.get("redirect_uri")
    code_verifier = request.form.get("code_verifier")

    client = authenticate_client()
    is_public = client is None
    if is_public:
        client = public_client()
    if not client:
        return error_response("invalid_client", "Client authentication failed", 401)

    if not code:
        return error_response("invalid_request", "Missing code")

    try:
        auth_code = AuthorizationCode.get(AuthorizationCode.code == code)
    except AuthorizationCode.DoesNotExist:
        return error_response("invalid_grant", "Unknown authorization code")

    if auth_code.client.id != client.id:
        return error_response("invalid_grant", "Code was issued to another client")

    if is_public and not auth_code.code_challenge:
        return error_response("invalid_client", "Client authentication failed", 401)

    if auth_code.used:
        return error_response("invalid_grant", "Code already used")

    if auth_code.is_expired():
        return error_response("invalid_grant", "Code expired", diagnostic="code_expired")

    if auth_code.redirect_uri != redirect_uri:
        return error_response("invalid_grant", "Redirect URI mismatch")

    if auth_code.code_challenge and not (
        code_verifier and verify_code_challenge(code_verifier, auth_code.code_challenge)
    ):
        return error_response(
            "invalid_grant", "PKCE code verifier mismatch", diagnostic="pkce_mismatch"
        )

    auth_code.used = True
    auth_code.save()

    return jsonify(issue_tokens(client, auth_code.scopes))


def _handle_client_credentials_grant():
    """Handle client_credentials grant type."""
    client = authenticate_client()
    if not client:
        return error_response("invalid_client", "Client authentication failed", 401)

    scope = request.form.get("scope") or client.allowed_scopes

    if not client.validate_scopes(scope):
        return error_response("invalid_scope", f"Scope {scope!r} is not allowed")

    return jsonify(issue_tokens(client, scope, with_refresh_token=False))


def _handle_refresh_token_grant():
    """Handle refresh_token grant type."""
    refresh_token_value = request.form.get("refresh_token")

    client = authenticate_client()
    if not client:
        return error_response("invalid_client", "Client authentication failed", 401)

    if not refresh_token_value:
        return error_response("invalid_request", "Missing refresh_token")

    try:
        refresh_token = RefreshToken.get(RefreshToken.token == refresh_token_value)
    except RefreshToken.DoesNotExist:
        return error_response("invalid_grant", "Unknown refresh token")

    if not refresh_token.is_valid() or refresh_token.client.id != client.id:
        return error_response("invalid_grant", "Refresh token is not valid")

    scope = request.form.get("scope") or refresh_token.scopes
    if not set(scope.split()).issubset(refresh_token.scopes.split()):
        return error_response(
            "invalid_scope", "Requested scopes exceed the original grant"
        )

    refresh_token.revoked = True
    refresh_token.save()

    return jsonify(issue_tokens(client, scope))


@oauth_bp.route("/.well-known/oauth-authorization-server")
def oauth_metadata():
    """Authorization Server Metadata.
    ---
    tags:
      - OAuth2
    responses:
      200:
        description: Provider metadata
    """
    base_url = request.host_url.rstrip("/")
    return jsonify(
        OAuthMetadataResponse(
            issuer=base_url,
            authorization_endpoint=f"{base_url}/authorize",
            token_endpoint=f"{base_url}/token",
            response_types_supported=["code"],
            grant_types_supported=[
                "authorization_code",
                "client_credentials",
                "refresh_token",
            ],
            token_endpoint_auth_methods_supported=[
                "client_secret_basic",
                "client_secret_post",
            ],
            code_challenge_methods_supported=[CODE_CHALLENGE_METHOD],
            scopes_supported=config.TEST_CLIENT_SCOPES.split(),
        )
    )


@oauth_bp.route("/.well-known/openid-configuration")
def openid_configuration():
    """OpenID Connect Discovery document.
    ---
    tags:
      - OAuth2
    responses:
      200:
        description: OpenID Connect discovery document (same as OAuth2 metadata)
    """
    return oauth_metadata()
