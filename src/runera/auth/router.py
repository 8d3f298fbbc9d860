"""Wallet login endpoints under /api/v1/auth."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from runera.auth.schemas import ChallengeRequest, ChallengeResponse, ConnectRequest, ConnectResponse
from runera.auth.service import connect_wallet, issue_challenge
from runera.database import get_session
from runera.redis_client import get_redis
from runera.users.schemas import user_response

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/challenge", response_model=ChallengeResponse)
async def challenge(
    body: ChallengeRequest,
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> ChallengeResponse:
    """Request a wallet signing challenge."""
    issued = await issue_challenge(redis, body.wallet_address)
    return ChallengeResponse(
        challenge=issued.challenge,
        message=issued.message,
        expires_in=issued.expires_in,
    )


@router.post("/connect", response_model=ConnectResponse)
async def connect(
    body: ConnectRequest,
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
    db: AsyncSession = Depends(get_session),
) -> ConnectResponse:
    """Verify a signed challenge, create the user on first login, issue a session token."""
    user, token = await connect_wallet(db, redis, body.wallet_address, body.challenge, body.signature)
    return ConnectResponse(token=token, user=user_response(user))
