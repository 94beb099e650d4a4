"""Caller identity from a bearer token.

The token is looked up in the ``Authorization: Bearer`` header first, then
``x-access-token``, then the auth cookie. Its signature and expiry are
verified with the key shared with the identity-issuing service before any
claim is trusted. Every failure downgrades to the anonymous identity; nothing
here raises to the caller.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Request

from doc_library.config import settings

logger = logging.getLogger(__name__)

ANONYMOUS_ID = "anonymous"
ANONYMOUS_NAME = "Anonymous User"


@dataclass(frozen=True)
class Identity:
    id: str = ANONYMOUS_ID
    name: str = ANONYMOUS_NAME

    @property
    def is_anonymous(self) -> bool:
        return self.id == ANONYMOUS_ID


ANONYMOUS = Identity()


def extract_token(headers, cookies=None) -> Optional[str]:
    """Return the first token found in headers (or cookies), else None."""
    auth_header = headers.get("authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        if token:
            return token

    access_token = headers.get("x-access-token")
    if access_token:
        return access_token.strip()

    if cookies:
        cookie_token = cookies.get(settings.AUTH_COOKIE_NAME)
        if cookie_token:
            return cookie_token
    return None


def decode_claims(token: str) -> dict:
    """Decode the token payload. Raises jwt.InvalidTokenError on failure."""
    if not settings.AUTH_VERIFY_SIGNATURE:
        return jwt.decode(token, options={"verify_signature": False})

    if not settings.AUTH_JWT_SECRET:
        raise jwt.InvalidTokenError("AUTH_JWT_SECRET is not configured")

    algorithms = [a.strip() for a in settings.AUTH_JWT_ALGORITHMS.split(",") if a.strip()]
    return jwt.decode(token, settings.AUTH_JWT_SECRET, algorithms=algorithms)


def identity_from_claims(claims: dict) -> Identity:
    user_id = claims.get("id") or claims.get("sub") or ANONYMOUS_ID
    name = claims.get("username") or claims.get("name") or ANONYMOUS_NAME
    return Identity(id=str(user_id), name=str(name))


def resolve_identity(token: Optional[str]) -> Identity:
    """Turn a raw token into an identity, anonymous on any failure."""
    if not token:
        return ANONYMOUS
    try:
        claims = decode_claims(token)
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected bearer token: %s", e)
        return ANONYMOUS
    if not isinstance(claims, dict):
        return ANONYMOUS
    return identity_from_claims(claims)


async def get_current_identity(request: Request) -> Identity:
    """FastAPI dependency yielding the caller identity for this request."""
    identity = resolve_identity(extract_token(request.headers, request.cookies))
    logger.debug("Request identity: id=%s", identity.id)
    return identity
