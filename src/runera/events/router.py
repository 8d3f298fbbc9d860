"""Event listing, eligibility and joining."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from runera.auth.address_validation import normalize_event_id
from runera.auth.dependencies import get_current_user
from runera.database import get_session
from runera.db.models import User
from runera.errors import BadRequestError
from runera.events.eligibility import is_event_open
from runera.events.schemas import (
    EligibilityResponse,
    EventListResponse,
    EventResponse,
    ParticipationResponse,
    event_response,
    participation_response,
)
from runera.events.service import check_eligibility, get_event, join_event, list_events

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


def _event_id(raw: str) -> str:
    try:
        return normalize_event_id(raw)
    except ValueError as e:
        raise BadRequestError(str(e)) from e


@router.get("", response_model=EventListResponse)
async def get_events(
    active_only: bool = Query(False, alias="activeOnly"),
    db: AsyncSession = Depends(get_session),
) -> EventListResponse:
    events = await list_events(db, active_only=active_only)
    return EventListResponse(events=[event_response(e, is_event_open(e)) for e in events])


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_detail(
    event_id: str,
    db: AsyncSession = Depends(get_session),
) -> EventResponse:
    event = await get_event(db, _event_id(event_id))
    return event_response(event, is_event_open(event))


@router.get("/{event_id}/eligibility", response_model=EligibilityResponse)
async def get_eligibility(
    event_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> EligibilityResponse:
    """Whether the authenticated user may join the event right now, and why not."""
    event = await get_event(db, _event_id(event_id))
    eligibility = check_eligibility(event, user)
    return EligibilityResponse(event_id=event.event_id, eligible=eligibility.eligible, reasons=eligibility.reasons)


@router.post("/{event_id}/join", response_model=ParticipationResponse)
async def join(
    event_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ParticipationResponse:
    """Join an event. Idempotent while the participation is not completed."""
    event = await get_event(db, _event_id(event_id))
    participation, created = await join_event(db, user, event.event_id)
    await db.commit()
    return participation_response(event, participation, created)
