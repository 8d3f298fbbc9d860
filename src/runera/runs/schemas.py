"""Request/response schemas for run submission and run detail."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import Field, field_validator

from runera.auth.address_validation import normalize_wallet_address
from runera.chain.attestation import OnchainSync
from runera.db.models import Run, RunStatusHistory
from runera.runs.coordinator import RunSubmission, SubmissionResult
from runera.schemas import CamelModel

# Upper bounds on a single run; keep profile totals inside the attested uint widths
MAX_RUN_DISTANCE_METERS = 1_000_000
MAX_RUN_DURATION_SECONDS = 7 * 24 * 3600


class SubmitRunRequest(CamelModel):
    """A GPS run as reported by the client.

    Only the shape and the upper bounds are checked here. Non-positive distance
    or duration and end <= start are rule rejections, persisted as REJECTED runs.
    """

    wallet_address: str
    distance_meters: float = Field(..., le=MAX_RUN_DISTANCE_METERS, allow_inf_nan=False)
    duration_seconds: float = Field(..., le=MAX_RUN_DURATION_SECONDS, allow_inf_nan=False)
    start_time: datetime
    end_time: datetime
    device_hash: str | None = Field(None, max_length=256)

    @field_validator("wallet_address")
    @classmethod
    def normalize_wallet(cls, v: str) -> str:
        return normalize_wallet_address(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        """Timestamps without an offset are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("device_hash")
    @classmethod
    def strip_device_hash(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    def to_submission(self) -> RunSubmission:
        return RunSubmission(
            wallet_address=self.wallet_address,
            distance_meters=self.distance_meters,
            duration_seconds=self.duration_seconds,
            start_time=self.start_time,
            end_time=self.end_time,
            device_hash=self.device_hash,
        )


class AttestedStatsResponse(CamelModel):
    user: str
    xp: int
    level: int
    run_count: int
    achievement_count: int
    total_distance_meters: int
    longest_streak_days: int
    last_updated: int


class OnchainSyncResponse(CamelModel):
    stats: AttestedStatsResponse
    nonce: int
    deadline: int
    signature: str

    @classmethod
    def from_sync(cls, sync: OnchainSync) -> OnchainSyncResponse:
        return cls.model_validate(sync.to_dict())


class SubmitRunResponse(CamelModel):
    run_id: int
    status: str
    reason_code: str | None = None
    onchain_sync: OnchainSyncResponse | None = None

    @classmethod
    def from_result(cls, result: SubmissionResult) -> SubmitRunResponse:
        return cls(
            run_id=result.run_id,
            status=result.status,
            reason_code=result.reason_code,
            onchain_sync=OnchainSyncResponse.from_sync(result.onchain_sync) if result.onchain_sync else None,
        )


class StatusHistoryEntry(CamelModel):
    status: str
    reason_code: str | None = None
    created_at: datetime


class RunDetailResponse(CamelModel):
    run_id: int
    wallet_address: str
    status: str
    reason_code: str | None = None
    distance_meters: float
    duration_seconds: float
    avg_pace_seconds: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    device_hash: str | None = None
    validator_version: str | None = None
    submitted_at: datetime
    validated_at: datetime | None = None
    verified_at: datetime | None = None
    rejected_at: datetime | None = None
    history: list[StatusHistoryEntry]


def run_detail(run: Run, wallet_address: str, history: list[RunStatusHistory]) -> RunDetailResponse:
    return RunDetailResponse(
        run_id=run.id,
        wallet_address=wallet_address,
        status=run.status,
        reason_code=run.reason_code,
        distance_meters=run.distance_meters,
        duration_seconds=run.duration_seconds,
        avg_pace_seconds=run.avg_pace_seconds,
        start_time=run.start_time,
        end_time=run.end_time,
        device_hash=run.device_hash,
        validator_version=run.validator_version,
        submitted_at=run.submitted_at,
        validated_at=run.validated_at,
        verified_at=run.verified_at,
        rejected_at=run.rejected_at,
        history=[
            StatusHistoryEntry(status=h.status, reason_code=h.reason_code, created_at=h.created_at)
            for h in history
        ],
    )
