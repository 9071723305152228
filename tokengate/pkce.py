"""PKCE (RFC 7636) helpers for the authorization code flow."""

import base64
import hashlib
import secrets

CODE_CHALLENGE_METHOD = "S256"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_code_verifier() -> str:
    """Generate a 43 character code verifier from 32 random bytes."""
    return _b64url(secrets.token_bytes(32))


def generate_code_challenge(verifier: str) -> str:
    """Return the S256 challenge for a code verifier."""
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


def verify_code_challenge(verifier: str, challenge: str) -> bool:
    return secrets.compare_digest(generate_code_challenge(verifier), challenge)
