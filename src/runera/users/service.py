"""User lookups and wallet-keyed upserts."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from runera.db.models import Run, User

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_address(db: AsyncSession, wallet_address: str, *, for_update: bool = False) -> User | None:
    """Fetch a user by lowercase wallet address.

    With ``for_update`` the row is locked for the rest of the transaction and
    any copy already in the session is refreshed from the database.
    """
    stmt = select(User).where(User.wallet_address == wallet_address.lower())
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def _insert_user(db: AsyncSession, wallet_address: str):
    """INSERT ... ON CONFLICT (wallet_address) DO NOTHING for the bound dialect."""
    insert = sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert
    return (
        insert(User)
        .values(wallet_address=wallet_address, created_at=datetime.now(timezone.utc))
        .on_conflict_do_nothing(index_elements=["wallet_address"])
        .returning(User.id)
    )


async def get_or_create_user(
    db: AsyncSession,
    wallet_address: str,
    *,
    for_update: bool = False,
) -> tuple[User, bool]:
    """
    Get existing user or create a new one on first authentication or run submission.

    The insert tolerates a row committed by another worker between the lookup
    and the insert; the row is then re-read (and locked with ``for_update``).

    Returns:
        Tuple of (user, created) where created is True if a new user was made.
    """
    wallet_address = wallet_address.lower()
    user = await get_user_by_address(db, wallet_address, for_update=for_update)
    if user is not None:
        return user, False

    result = await db.execute(_insert_user(db, wallet_address))
    created = result.scalar_one_or_none() is not None
    user = await get_user_by_address(db, wallet_address, for_update=for_update)
    if user is None:
        raise RuntimeError(f"user row for {wallet_address} missing after upsert")
    if created:
        logger.info("user_created", user_id=user.id, wallet_address=wallet_address)
    return user, created


async def list_runs(db: AsyncSession, user_id: int, limit: int = 20, offset: int = 0) -> list[Run]:
    """A user's runs, newest first."""
    result = await db.execute(
        select(Run)
        .where(Run.user_id == user_id)
        .order_by(Run.submitted_at.desc(), Run.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
