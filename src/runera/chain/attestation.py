"""Signed on-chain profile sync for a user's current progression.

Attestation is an optional side channel: when signing is not configured, the
sequence cannot be reconciled safely, or signing fails, ``issue`` returns None
and the run verification it accompanies is unaffected. The next verified run
retries with the then-current sequence.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from runera.chain.reconciler import NonceReconciler
from runera.chain.signer import AttestationSigner, StatsUpdate
from runera.db.models import User
from runera.events.service import count_completed

logger = structlog.get_logger()

ATTESTATION_VALIDITY_SECONDS = 600


@dataclass(frozen=True)
class OnchainSync:
    stats: StatsUpdate
    nonce: int
    deadline: int
    signature: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": {
                "user": self.stats.user,
                "xp": self.stats.xp,
                "level": self.stats.level,
                "runCount": self.stats.run_count,
                "achievementCount": self.stats.achievement_count,
                "totalDistanceMeters": self.stats.total_distance_meters,
                "longestStreakDays": self.stats.longest_streak_days,
                "lastUpdated": self.stats.last_updated,
            },
            "nonce": self.nonce,
            "deadline": self.deadline,
            "signature": self.signature,
        }


class AttestationService:
    def __init__(
        self,
        signer: AttestationSigner | None,
        reconciler: NonceReconciler,
        validity_seconds: int = ATTESTATION_VALIDITY_SECONDS,
    ) -> None:
        self.signer = signer
        self.reconciler = reconciler
        self.validity_seconds = validity_seconds

    @property
    def enabled(self) -> bool:
        return self.signer is not None

    async def issue(self, db: AsyncSession, user: User, now: datetime | None = None) -> OnchainSync | None:
        """Reconcile, sign and advance the user's attestation sequence.

        Must run inside the transaction that persists the progression it
        attests: the sequence advance is only durable if that commit is.
        """
        if self.signer is None:
            logger.debug("attestation_skipped", user_id=user.id, reason="not_configured")
            return None

        now = now or datetime.now(timezone.utc)
        local = user.attestation_sequence or 0
        reconciled = await self.reconciler.reconcile(user.wallet_address, local)

        # Chain is behind: earlier sequence values were signed but never consumed.
        # Re-signing one is only safe once the previous signature has expired.
        if reconciled.rewinds and user.last_attestation_deadline and user.last_attestation_deadline > now:
            logger.warning(
                "attestation_skipped",
                user_id=user.id,
                reason="previous_attestation_live",
                local=local,
                onchain=reconciled.onchain,
                live_until=user.last_attestation_deadline.isoformat(),
            )
            return None

        now_ts = int(now.timestamp())
        deadline = now_ts + self.validity_seconds
        stats = StatsUpdate(
            user=user.wallet_address,
            xp=user.exp,
            level=user.level,
            run_count=user.verified_run_count,
            achievement_count=await count_completed(db, user.id),
            total_distance_meters=round(user.total_distance_meters),
            longest_streak_days=user.longest_streak_days,
            last_updated=now_ts,
        )

        overflow = stats.out_of_range(reconciled.value, deadline)
        if overflow:
            logger.error("attestation_skipped", user_id=user.id, reason="stats_out_of_range", fields=overflow)
            return None

        try:
            signature = await self.signer.sign(stats, reconciled.value, deadline)
        except Exception:
            logger.warning("attestation_sign_failed", user_id=user.id, exc_info=True)
            return None

        user.attestation_sequence = reconciled.value + 1
        user.last_attestation_deadline = datetime.fromtimestamp(deadline, tz=timezone.utc)
        user.last_sync_at = now
        await db.flush()

        logger.info(
            "attestation_issued",
            user_id=user.id,
            nonce=reconciled.value,
            nonce_source=reconciled.source,
            deadline=deadline,
        )
        return OnchainSync(stats=stats, nonce=reconciled.value, deadline=deadline, signature=signature)
