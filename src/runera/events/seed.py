"""Upsert one event from RUNERA_EVENT_* environment variables.

Usage:
    RUNERA_EVENT_ID=0x<64 hex> python -m runera.events.seed
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from runera.auth.address_validation import normalize_event_id
from runera.config import get_settings
from runera.database import close_db, get_session_factory, init_db
from runera.db.models import Event
from runera.middleware.logging import setup_logging

logger = structlog.get_logger()


class EventSeed(BaseSettings):
    """Event definition read from the environment."""

    model_config = SettingsConfigDict(env_prefix="RUNERA_EVENT_", env_file=".env", extra="ignore")

    id: str
    name: str = "RUNERA Genesis 10K"
    min_tier: int = 1
    min_total_distance_meters: float = 20000
    target_distance_meters: float = 10000
    exp_reward: int = 500
    start_time: datetime = datetime(2025, 1, 15, tzinfo=timezone.utc)
    end_time: datetime = datetime(2025, 1, 30, 23, 59, 59, tzinfo=timezone.utc)
    active: bool = True

    @field_validator("id")
    @classmethod
    def check_id(cls, v: str) -> str:
        return normalize_event_id(v)


async def seed_event(db: AsyncSession, seed: EventSeed) -> Event:
    """Create or update the event keyed by ``seed.id``. Commits."""
    fields = {
        "name": seed.name,
        "min_tier": seed.min_tier,
        "min_total_distance_meters": seed.min_total_distance_meters,
        "target_distance_meters": seed.target_distance_meters,
        "exp_reward": seed.exp_reward,
        "start_time": seed.start_time,
        "end_time": seed.end_time,
        "active": seed.active,
    }
    result = await db.execute(select(Event).where(Event.event_id == seed.id))
    event = result.scalar_one_or_none()
    if event is None:
        event = Event(event_id=seed.id, created_at=datetime.now(timezone.utc), **fields)
        db.add(event)
    else:
        for key, value in fields.items():
            setattr(event, key, value)
    await db.commit()
    logger.info("event_seeded", event_id=seed.id, name=seed.name)
    return event


async def _main() -> None:
    settings = get_settings()
    setup_logging(settings)
    seed = EventSeed()  # type: ignore[call-arg]
    await init_db(settings.database_url)
    try:
        async with get_session_factory()() as db:
            await seed_event(db, seed)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(_main())
