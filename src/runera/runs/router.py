"""Run submission and run detail endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runera.auth.dependencies import get_optional_user
from runera.database import get_session
from runera.db.models import Run, User
from runera.errors import ForbiddenError, NotFoundError
from runera.runs.coordinator import RunSubmissionCoordinator, get_coordinator
from runera.runs.schemas import RunDetailResponse, SubmitRunRequest, SubmitRunResponse, run_detail
from runera.runs.state_machine import get_history

router = APIRouter(prefix="/api/v1", tags=["Runs"])


@router.post("/run/submit", response_model=SubmitRunResponse)
async def submit_run(
    body: SubmitRunRequest,
    db: AsyncSession = Depends(get_session),
    coordinator: RunSubmissionCoordinator = Depends(get_coordinator),
    current_user: User | None = Depends(get_optional_user),
) -> SubmitRunResponse:
    """Submit a run for verification.

    Anonymous submissions are accepted for the wallet in the body; with a
    bearer token the body's wallet must be the token's.
    """
    if current_user is not None and current_user.wallet_address != body.wallet_address:
        raise ForbiddenError("walletAddress does not match the authenticated wallet")

    result = await coordinator.submit(db, body.to_submission())
    return SubmitRunResponse.from_result(result)


@router.get("/runs/{run_id}", response_model=RunDetailResponse)
async def get_run(
    run_id: int,
    db: AsyncSession = Depends(get_session),
) -> RunDetailResponse:
    """A run with its ordered status history."""
    result = await db.execute(
        select(Run, User.wallet_address).join(User, User.id == Run.user_id).where(Run.id == run_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError(f"Run {run_id} not found")
    run, wallet_address = row
    return run_detail(run, wallet_address, await get_history(db, run_id))
