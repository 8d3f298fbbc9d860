"""HS256 JWT session tokens.

Tokens carry the wallet address so that handlers can check ownership without
a lookup; ``sub`` is the user's database ID.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from runera.config import get_settings


def _secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        msg = "RUNERA_JWT_SECRET is not configured"
        raise RuntimeError(msg)
    return secret


def create_access_token(user_id: int, wallet_address: str) -> str:
    """
    Create a session token.

    Args:
        user_id: The user's database ID.
        wallet_address: The user's lowercase wallet address.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "walletAddress": wallet_address,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
        "type": "access",
    }
    return jwt.encode(payload, _secret(), algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or wrong type.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(token, _secret(), algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != "access":
        msg = f"Expected token type 'access', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload
