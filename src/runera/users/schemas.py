"""Response schemas for user profiles and run history."""

from __future__ import annotations

from datetime import datetime

from runera.db.models import Run, User
from runera.schemas import CamelModel


class UserResponse(CamelModel):
    id: int
    wallet_address: str
    exp: int
    level: int
    tier: int
    run_count: int
    verified_run_count: int
    total_distance_meters: float
    longest_streak_days: int
    attestation_sequence: int
    last_sync_at: datetime | None = None
    created_at: datetime | None = None


class RunSummaryResponse(CamelModel):
    run_id: int
    status: str
    reason_code: str | None = None
    distance_meters: float
    duration_seconds: float
    avg_pace_seconds: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    submitted_at: datetime


class RunListResponse(CamelModel):
    runs: list[RunSummaryResponse]
    limit: int
    offset: int


def user_response(user: User) -> UserResponse:
    """Build a UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        wallet_address=user.wallet_address,
        exp=user.exp,
        level=user.level,
        tier=user.tier,
        run_count=user.run_count,
        verified_run_count=user.verified_run_count,
        total_distance_meters=user.total_distance_meters,
        longest_streak_days=user.longest_streak_days,
        attestation_sequence=user.attestation_sequence,
        last_sync_at=user.last_sync_at,
        created_at=user.created_at,
    )


def run_summary(run: Run) -> RunSummaryResponse:
    return RunSummaryResponse(
        run_id=run.id,
        status=run.status,
        reason_code=run.reason_code,
        distance_meters=run.distance_meters,
        duration_seconds=run.duration_seconds,
        avg_pace_seconds=run.avg_pace_seconds,
        start_time=run.start_time,
        end_time=run.end_time,
        submitted_at=run.submitted_at,
    )
