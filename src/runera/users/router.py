"""User profile endpoints under /api/v1/users."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from runera.auth.address_validation import is_valid_wallet_address
from runera.auth.dependencies import get_current_user
from runera.database import get_session
from runera.db.models import User
from runera.errors import BadRequestError, NotFoundError
from runera.users.schemas import RunListResponse, UserResponse, run_summary, user_response
from runera.users.service import get_user_by_address, list_runs

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


async def _user_or_404(db: AsyncSession, wallet_address: str) -> User:
    if not is_valid_wallet_address(wallet_address):
        raise BadRequestError("walletAddress must be a valid 0x address")
    user = await get_user_by_address(db, wallet_address)
    if user is None:
        raise NotFoundError(f"User {wallet_address.lower()} not found")
    return user


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """The authenticated user's profile and progression."""
    return user_response(user)


@router.get("/{wallet_address}", response_model=UserResponse)
async def get_profile(
    wallet_address: str,
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Public profile and progression for a wallet."""
    return user_response(await _user_or_404(db, wallet_address))


@router.get("/{wallet_address}/runs", response_model=RunListResponse)
async def get_runs(
    wallet_address: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
) -> RunListResponse:
    """A wallet's runs, newest first."""
    user = await _user_or_404(db, wallet_address)
    runs = await list_runs(db, user.id, limit=limit, offset=offset)
    return RunListResponse(runs=[run_summary(r) for r in runs], limit=limit, offset=offset)
