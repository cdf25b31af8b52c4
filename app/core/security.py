# File: app/core/security.py

"""
Security helpers for the Roomify API.

Sessions are opaque bearer tokens stored in the auth_tokens table; there
is no password flow, only (temporary) account creation on sign-in.
"""

import secrets
from typing import Optional

TOKEN_BYTES = 32


def create_access_token() -> str:
    """Random URL-safe session token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an "Authorization: Bearer <token>" header value.

    Returns None for a missing header, another scheme, or an empty token.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
