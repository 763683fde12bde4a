from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from tutorledger.config import Settings, get_settings
from tutorledger.shared.exceptions import UnauthorizedError


def create_access_token(
    owner_id: UUID,
    *,
    expires_in: timedelta = timedelta(hours=1),
    settings: Optional[Settings] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Mint an HS* bearer token whose ``sub`` is the owner id.

    Production tokens come from the hosted auth provider; this exists for
    local tooling and tests that need a token signed with the same secret.
    """
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(owner_id),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> UUID:
    """
    Verify a bearer token and return the owner id carried in ``sub``.

    Raises:
        UnauthorizedError: If the token is invalid, expired, or has no usable subject
    """
    settings = settings or get_settings()
    options = {"verify_exp": True, "verify_aud": settings.jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code="token_expired")
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(f"Invalid token: {e}", code="invalid_token")

    try:
        return UUID(str(claims["sub"]))
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid owner id in token", code="invalid_token")
