"""
Wallet login: one-time auth challenges and session issuance.

The auth challenge is a random single-use string the wallet signs; it lives in
Redis under ``auth:challenge:{wallet}`` with a TTL and is unrelated to the
attestation sequence on the user row.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from runera.auth.jwt import create_access_token
from runera.auth.wallet import build_login_message, recover_signer
from runera.config import get_settings
from runera.db.models import User
from runera.errors import AuthenticationError, BadRequestError
from runera.redis_client import challenge_key
from runera.users.service import get_or_create_user

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthChallenge:
    challenge: str
    message: str
    expires_in: int


async def issue_challenge(redis: Redis, wallet_address: str) -> AuthChallenge:
    """Create and store a fresh challenge, replacing any outstanding one."""
    settings = get_settings()
    challenge = secrets.token_hex(16)
    await redis.set(challenge_key(wallet_address), challenge, ex=settings.auth_challenge_ttl_seconds)
    return AuthChallenge(
        challenge=challenge,
        message=build_login_message(challenge),
        expires_in=settings.auth_challenge_ttl_seconds,
    )


async def connect_wallet(
    db: AsyncSession,
    redis: Redis,
    wallet_address: str,
    challenge: str,
    signature: str,
) -> tuple[User, str]:
    """
    Verify a signed challenge and open a session.

    Returns:
        Tuple of (user, access_token).

    Raises:
        BadRequestError: challenge missing, expired, mismatched, or signature malformed.
        AuthenticationError: signature valid but made by another address.
    """
    wallet_address = wallet_address.lower()
    key = challenge_key(wallet_address)

    stored = await redis.get(key)
    if stored is None:
        raise BadRequestError("Challenge expired or not found", code="ERR_INVALID_CHALLENGE")
    if stored != challenge:
        raise BadRequestError("Challenge does not match", code="ERR_INVALID_CHALLENGE")

    # One-time use, even if the signature below turns out to be bad
    await redis.delete(key)

    recovered = recover_signer(build_login_message(challenge), signature)
    if recovered is None:
        raise BadRequestError("Signature verification failed", code="ERR_SIGNATURE_INVALID")
    if recovered != wallet_address:
        raise AuthenticationError("Signature does not match wallet address", code="ERR_SIGNATURE_MISMATCH")

    user, _created = await get_or_create_user(db, wallet_address)
    user.last_login = datetime.now(timezone.utc)
    user.login_count = (user.login_count or 0) + 1
    await db.commit()

    logger.info("wallet_connected", user_id=user.id, wallet_address=wallet_address)
    return user, create_access_token(user.id, user.wallet_address)
