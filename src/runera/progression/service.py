"""Progression updates for verified runs and event rewards.

The calculation itself is pure (``calculate_progression``); the async helpers
apply it to a ``User`` row inside the caller's transaction and record an
``xp_ledger`` entry whose idempotency key makes each grant happen at most once.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runera.db.models import Run, User, XPLedger
from runera.progression.levels import compute_level, compute_tier
from runera.progression.streak import longest_streak_days
from runera.runs.validator import VERIFIED

logger = structlog.get_logger()


@dataclass(frozen=True)
class Progression:
    exp: int = 0
    level: int = 1
    tier: int = 1
    verified_run_count: int = 0
    total_distance_meters: float = 0.0
    longest_streak_days: int = 0


def progression_of(user: User) -> Progression:
    """Snapshot the progression columns of a user row."""
    return Progression(
        exp=user.exp or 0,
        level=user.level or 1,
        tier=user.tier or 1,
        verified_run_count=user.verified_run_count or 0,
        total_distance_meters=user.total_distance_meters or 0.0,
        longest_streak_days=user.longest_streak_days or 0,
    )


def with_experience(current: Progression, exp: int) -> Progression:
    """Replace experience and re-derive level and tier."""
    level = compute_level(exp)
    return replace(current, exp=exp, level=level, tier=compute_tier(level))


def calculate_progression(
    current: Progression,
    run_distance_meters: float,
    verified_end_times: Iterable[datetime],
    xp_reward: int,
) -> Progression:
    """Progression after one more verified run.

    ``verified_end_times`` is the end time of every verified run of the user,
    including the one being applied. Same inputs always give the same output.
    """
    updated = with_experience(current, current.exp + xp_reward)
    return replace(
        updated,
        verified_run_count=current.verified_run_count + 1,
        total_distance_meters=current.total_distance_meters + run_distance_meters,
        longest_streak_days=longest_streak_days(verified_end_times),
    )


def _assign(user: User, progression: Progression) -> None:
    user.exp = progression.exp
    user.level = progression.level
    user.tier = progression.tier
    user.verified_run_count = progression.verified_run_count
    user.total_distance_meters = progression.total_distance_meters
    user.longest_streak_days = progression.longest_streak_days


async def _ledger_has(db: AsyncSession, idempotency_key: str) -> bool:
    existing = await db.execute(select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key))
    return existing.scalar_one_or_none() is not None


async def verified_end_times(db: AsyncSession, user_id: int) -> list[datetime]:
    """End times of every VERIFIED run of a user."""
    result = await db.execute(
        select(Run.end_time).where(
            Run.user_id == user_id,
            Run.status == VERIFIED,
            Run.end_time.is_not(None),
        )
    )
    return list(result.scalars())


async def apply_verified_run(
    db: AsyncSession,
    user: User,
    run: Run,
    xp_reward: int,
) -> Progression | None:
    """Apply a verified run to the user's progression.

    Returns the new progression, or None if this run was already applied.
    """
    if run.status != VERIFIED:
        msg = f"Run {run.id} is {run.status}, only VERIFIED runs earn progression"
        raise ValueError(msg)

    idempotency_key = f"run:{run.id}"
    if await _ledger_has(db, idempotency_key):
        logger.info("progression_already_applied", run_id=run.id, user_id=user.id)
        return None

    end_times = await verified_end_times(db, user.id)
    if run.end_time is not None:
        end_times.append(run.end_time)

    old = progression_of(user)
    new = calculate_progression(old, run.distance_meters, end_times, xp_reward)
    _assign(user, new)

    db.add(XPLedger(
        user_id=user.id,
        amount=xp_reward,
        source="run",
        source_id=str(run.id),
        idempotency_key=idempotency_key,
        created_at=datetime.now(timezone.utc),
    ))
    await db.flush()

    logger.info(
        "progression_applied",
        user_id=user.id,
        run_id=run.id,
        exp=new.exp,
        level=new.level,
        tier=new.tier,
        longest_streak_days=new.longest_streak_days,
        level_up=new.level > old.level,
    )
    return new


async def grant_bonus_xp(
    db: AsyncSession,
    user: User,
    amount: int,
    source: str,
    source_id: str,
    idempotency_key: str,
) -> bool:
    """Grant non-run XP (e.g. an event reward). Returns False if already granted."""
    if await _ledger_has(db, idempotency_key):
        return False

    _assign(user, with_experience(progression_of(user), (user.exp or 0) + amount))
    db.add(XPLedger(
        user_id=user.id,
        amount=amount,
        source=source,
        source_id=source_id,
        idempotency_key=idempotency_key,
        created_at=datetime.now(timezone.utc),
    ))
    await db.flush()
    return True
