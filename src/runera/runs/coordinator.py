"""Run submission pipeline.

Per submission:
  1. rule validation (pure, before any I/O)
  2. one transaction, under the wallet's sequencer lock:
     user upsert (row locked) -> run SUBMITTED -> VALIDATING -> verdict
     -> on VERIFIED: progression, event progress, attestation sequence advance
  3. commit, then hand the signed payload (if any) back to the caller

Any failure inside step 2 rolls the whole unit back: a run is never left
VERIFIED without its progression, and a sequence value is never consumed
without the progression it attests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from runera.chain.attestation import AttestationService, OnchainSync
from runera.chain.reader import NonceReader, Web3NonceReader
from runera.chain.reconciler import NonceReconciler
from runera.chain.signer import AttestationSigner
from runera.config import Settings, get_settings
from runera.events.service import record_verified_run
from runera.progression.service import Progression, apply_verified_run
from runera.runs.sequencer import UserSequencer
from runera.runs.state_machine import RunStateMachine
from runera.runs.validator import RunMeasurements, Verdict, validate_run
from runera.users.service import get_or_create_user

logger = structlog.get_logger()


@dataclass(frozen=True)
class RunSubmission:
    wallet_address: str
    distance_meters: float
    duration_seconds: float
    start_time: datetime | None
    end_time: datetime | None
    device_hash: str | None

    def measurements(self) -> RunMeasurements:
        return RunMeasurements(
            distance_meters=self.distance_meters,
            duration_seconds=self.duration_seconds,
            start_time=self.start_time,
            end_time=self.end_time,
            device_hash=self.device_hash,
        )


@dataclass(frozen=True)
class SubmissionResult:
    run_id: int
    status: str
    reason_code: str | None
    progression: Progression | None = None
    onchain_sync: OnchainSync | None = None


class RunSubmissionCoordinator:
    def __init__(
        self,
        attestation: AttestationService,
        sequencer: UserSequencer | None = None,
        *,
        xp_reward: int = 100,
        min_pace_seconds_per_km: float = 180,
        validator_version: str = "1.0.0",
    ) -> None:
        self.attestation = attestation
        self.sequencer = sequencer or UserSequencer()
        self.xp_reward = xp_reward
        self.min_pace_seconds_per_km = min_pace_seconds_per_km
        self.validator_version = validator_version

    @classmethod
    def from_settings(cls, settings: Settings, reader: NonceReader | None = None) -> RunSubmissionCoordinator:
        if reader is None and settings.chain_rpc_url and settings.profile_nft_address:
            reader = Web3NonceReader(settings.chain_rpc_url, settings.profile_nft_address)
        attestation = AttestationService(
            AttestationSigner.from_settings(settings),
            NonceReconciler(reader, settings.chain_read_timeout_seconds),
            settings.attestation_validity_seconds,
        )
        return cls(
            attestation,
            xp_reward=settings.run_xp_reward,
            min_pace_seconds_per_km=settings.min_pace_seconds_per_km,
            validator_version=settings.validator_version,
        )

    async def submit(
        self,
        db: AsyncSession,
        submission: RunSubmission,
        now: datetime | None = None,
    ) -> SubmissionResult:
        """Validate, persist and (when verified) apply one run submission."""
        now = now or datetime.now(timezone.utc)
        wallet_address = submission.wallet_address.lower()
        verdict = validate_run(submission.measurements(), self.min_pace_seconds_per_km)

        async with self.sequencer.hold(wallet_address):
            try:
                result = await self._process(db, wallet_address, submission, verdict, now)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "run_submitted",
            run_id=result.run_id,
            wallet_address=wallet_address,
            status=result.status,
            reason_code=result.reason_code,
            attested=result.onchain_sync is not None,
        )
        return result

    async def _process(
        self,
        db: AsyncSession,
        wallet_address: str,
        submission: RunSubmission,
        verdict: Verdict,
        now: datetime,
    ) -> SubmissionResult:
        user, _ = await get_or_create_user(db, wallet_address, for_update=True)

        machine = RunStateMachine(db, self.validator_version)
        run = await machine.create(user, submission.measurements(), now)
        user.run_count = (user.run_count or 0) + 1
        await machine.settle(run, verdict, now)

        if not verdict.verified:
            return SubmissionResult(run_id=run.id, status=run.status, reason_code=run.reason_code)

        progression = await apply_verified_run(db, user, run, self.xp_reward)
        await record_verified_run(db, user, run, now)
        onchain_sync = await self.attestation.issue(db, user, now)

        return SubmissionResult(
            run_id=run.id,
            status=run.status,
            reason_code=None,
            progression=progression,
            onchain_sync=onchain_sync,
        )


@lru_cache
def get_coordinator() -> RunSubmissionCoordinator:
    """Process-wide coordinator (FastAPI dependency); one sequencer per process."""
    return RunSubmissionCoordinator.from_settings(get_settings())
