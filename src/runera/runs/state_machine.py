"""Run status state machine with an append-only audit trail.

State progression: SUBMITTED -> VALIDATING -> VERIFIED | REJECTED
Transitions are validated: no skipping, repeating or reversing a state.
Every status a run enters (including the initial SUBMITTED) gets exactly one
run_status_history row, written in the same flush as the run update.

The machine never commits: the caller owns the transaction so that the
transitions and any progression side effects land together or not at all.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runera.db.models import Run, RunStatusHistory, User
from runera.errors import InvalidTransitionError
from runera.runs.validator import REJECTED, VERIFIED, RunMeasurements, Verdict, compute_pace

logger = structlog.get_logger()

SUBMITTED = "SUBMITTED"
VALIDATING = "VALIDATING"

VALID_TRANSITIONS: dict[str, list[str]] = {
    SUBMITTED: [VALIDATING],
    VALIDATING: [VERIFIED, REJECTED],
    VERIFIED: [],
    REJECTED: [],
}

TERMINAL_STATES = frozenset({VERIFIED, REJECTED})


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a state transition. Raises InvalidTransitionError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise InvalidTransitionError(
            f"Invalid transition: {current_status} -> {target_status}. "
            f"Valid transitions: {valid}",
            details={"from": current_status, "to": target_status},
        )


class RunStateMachine:
    """Drives one run through its statuses inside the caller's session."""

    def __init__(self, db: AsyncSession, validator_version: str) -> None:
        self.db = db
        self.validator_version = validator_version

    async def create(self, user: User, measurements: RunMeasurements, now: datetime | None = None) -> Run:
        """Persist a new run in SUBMITTED with its first audit row.

        Resubmitting the same activity always creates a new run record.
        """
        now = now or datetime.now(timezone.utc)
        pace = compute_pace(measurements.distance_meters, measurements.duration_seconds)
        run = Run(
            user_id=user.id,
            status=SUBMITTED,
            distance_meters=measurements.distance_meters,
            duration_seconds=measurements.duration_seconds,
            start_time=measurements.start_time,
            end_time=measurements.end_time,
            device_hash=measurements.device_hash or None,
            avg_pace_seconds=round(pace) if pace is not None else None,
            submitted_at=now,
        )
        self.db.add(run)
        await self.db.flush()
        self.db.add(RunStatusHistory(run_id=run.id, status=SUBMITTED, created_at=now))
        await self.db.flush()
        return run

    async def transition(
        self,
        run: Run,
        target_status: str,
        reason_code: str | None = None,
        now: datetime | None = None,
    ) -> Run:
        """Move ``run`` to ``target_status`` and append the audit row."""
        validate_transition(run.status, target_status)
        now = now or datetime.now(timezone.utc)
        previous = run.status

        self.db.add(RunStatusHistory(
            run_id=run.id,
            status=target_status,
            reason_code=reason_code if target_status == REJECTED else None,
            created_at=now,
        ))

        run.status = target_status
        if target_status in TERMINAL_STATES:
            run.validated_at = now
            run.validator_version = self.validator_version
        if target_status == VERIFIED:
            run.verified_at = now
            run.reason_code = None
        elif target_status == REJECTED:
            run.rejected_at = now
            run.reason_code = reason_code

        await self.db.flush()
        logger.info(
            "run_transition",
            run_id=run.id,
            from_status=previous,
            to_status=target_status,
            reason_code=run.reason_code,
        )
        return run

    async def settle(self, run: Run, verdict: Verdict, now: datetime | None = None) -> Run:
        """SUBMITTED -> VALIDATING -> verdict status, in that order."""
        await self.transition(run, VALIDATING, now=now)
        return await self.transition(run, verdict.status, verdict.reason_code, now=now)


async def get_history(db: AsyncSession, run_id: int) -> list[RunStatusHistory]:
    """Audit rows of a run in the order they were written."""
    result = await db.execute(
        select(RunStatusHistory)
        .where(RunStatusHistory.run_id == run_id)
        .order_by(RunStatusHistory.id.asc())
    )
    return list(result.scalars().all())
