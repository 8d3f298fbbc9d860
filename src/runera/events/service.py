"""Event joining, participation progress and completion.

None of these helpers commit; callers own the transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from runera.db.models import Event, EventParticipation, Run, User
from runera.errors import NotEligibleError, NotFoundError, ParticipationCompletedError
from runera.events.eligibility import (
    COMPLETED,
    IN_PROGRESS,
    JOINED,
    Eligibility,
    evaluate_eligibility,
    is_event_open,
    validate_participation_transition,
)
from runera.progression.service import grant_bonus_xp
from runera.runs.validator import VERIFIED

logger = structlog.get_logger()


async def get_event(db: AsyncSession, event_id: str) -> Event:
    """Fetch an event by its 0x-prefixed 32-byte identifier."""
    result = await db.execute(select(Event).where(Event.event_id == event_id.lower()))
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError(f"Event {event_id} not found")
    return event


async def list_events(db: AsyncSession, active_only: bool = False) -> list[Event]:
    stmt = select(Event).order_by(Event.start_time.asc())
    if active_only:
        stmt = stmt.where(Event.active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_participation(db: AsyncSession, user_id: int, event: Event) -> EventParticipation | None:
    result = await db.execute(
        select(EventParticipation).where(
            EventParticipation.user_id == user_id,
            EventParticipation.event_id == event.id,
        )
    )
    return result.scalar_one_or_none()


def check_eligibility(event: Event, user: User, now: datetime | None = None) -> Eligibility:
    return evaluate_eligibility(event, user.tier, user.total_distance_meters, now)


async def join_event(
    db: AsyncSession,
    user: User,
    event_id: str,
    now: datetime | None = None,
) -> tuple[EventParticipation, bool]:
    """Join an event.

    Returns (participation, created). Rejoining a participation that is not
    completed returns it unchanged.

    Raises:
        NotFoundError: unknown event.
        ParticipationCompletedError: the user already completed this event.
        NotEligibleError: event closed, tier or distance below the minimum.
    """
    now = now or datetime.now(timezone.utc)
    event = await get_event(db, event_id)

    existing = await get_participation(db, user.id, event)
    if existing is not None:
        if existing.status == COMPLETED:
            raise ParticipationCompletedError(f"Event {event.event_id} already completed")
        return existing, False

    eligibility = check_eligibility(event, user, now)
    if not eligibility.eligible:
        raise NotEligibleError(
            "User is not eligible for this event",
            details={"reasons": eligibility.reasons},
        )

    participation = EventParticipation(
        user_id=user.id,
        event_id=event.id,
        status=JOINED,
        joined_at=now,
        updated_at=now,
    )
    # UNIQUE(user_id, event_id) rejects a concurrent duplicate join at flush
    db.add(participation)
    await db.flush()

    logger.info("event_joined", user_id=user.id, event_id=event.event_id)
    return participation, True


async def complete_participation(
    db: AsyncSession,
    user: User,
    participation: EventParticipation,
    run: Run,
    now: datetime | None = None,
) -> None:
    """Mark a participation COMPLETED by ``run`` and grant the event reward."""
    now = now or datetime.now(timezone.utc)
    validate_participation_transition(participation.status, COMPLETED)
    event = participation.event

    participation.status = COMPLETED
    participation.completed_run_id = run.id
    participation.completed_at = now
    participation.updated_at = now

    if event.exp_reward > 0:
        await grant_bonus_xp(
            db,
            user,
            event.exp_reward,
            "event",
            event.event_id,
            f"event:{event.event_id}:{user.id}",
        )
    await db.flush()
    logger.info(
        "event_completed",
        user_id=user.id,
        event_id=event.event_id,
        run_id=run.id,
        exp_reward=event.exp_reward,
    )


async def record_verified_run(
    db: AsyncSession,
    user: User,
    run: Run,
    now: datetime | None = None,
) -> list[EventParticipation]:
    """Advance the user's open participations with a freshly verified run.

    A run ending inside an open event's window completes the participation when
    it covers the target distance, otherwise marks it IN_PROGRESS. Returns the
    participations that changed.
    """
    if run.status != VERIFIED or run.end_time is None:
        return []
    now = now or datetime.now(timezone.utc)

    result = await db.execute(
        select(EventParticipation).where(
            EventParticipation.user_id == user.id,
            EventParticipation.status.in_([JOINED, IN_PROGRESS]),
        )
    )
    changed: list[EventParticipation] = []
    for participation in result.scalars().all():
        event = participation.event
        if not is_event_open(event, run.end_time):
            continue
        if run.distance_meters >= event.target_distance_meters:
            await complete_participation(db, user, participation, run, now)
            changed.append(participation)
        elif participation.status == JOINED:
            validate_participation_transition(JOINED, IN_PROGRESS)
            participation.status = IN_PROGRESS
            participation.updated_at = now
            changed.append(participation)

    await db.flush()
    return changed


async def count_completed(db: AsyncSession, user_id: int) -> int:
    """Number of completed event participations (the on-chain achievement count)."""
    result = await db.execute(
        select(func.count(EventParticipation.id)).where(
            EventParticipation.user_id == user_id,
            EventParticipation.status == COMPLETED,
        )
    )
    return int(result.scalar_one())
