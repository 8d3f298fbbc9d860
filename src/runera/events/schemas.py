"""Response schemas for events and participation."""

from __future__ import annotations

from datetime import datetime

from runera.db.models import Event, EventParticipation
from runera.schemas import CamelModel


class EventResponse(CamelModel):
    event_id: str
    name: str
    min_tier: int
    min_total_distance_meters: float
    target_distance_meters: float
    exp_reward: int
    start_time: datetime
    end_time: datetime
    active: bool
    is_open: bool


class EventListResponse(CamelModel):
    events: list[EventResponse]


class EligibilityResponse(CamelModel):
    event_id: str
    eligible: bool
    reasons: list[str]


class ParticipationResponse(CamelModel):
    event_id: str
    status: str
    joined_at: datetime
    completed_run_id: int | None = None
    completed_at: datetime | None = None
    created: bool = False


def event_response(event: Event, is_open: bool) -> EventResponse:
    return EventResponse(
        event_id=event.event_id,
        name=event.name,
        min_tier=event.min_tier,
        min_total_distance_meters=event.min_total_distance_meters,
        target_distance_meters=event.target_distance_meters,
        exp_reward=event.exp_reward,
        start_time=event.start_time,
        end_time=event.end_time,
        active=event.active,
        is_open=is_open,
    )


def participation_response(event: Event, participation: EventParticipation, created: bool) -> ParticipationResponse:
    return ParticipationResponse(
        event_id=event.event_id,
        status=participation.status,
        joined_at=participation.joined_at,
        completed_run_id=participation.completed_run_id,
        completed_at=participation.completed_at,
        created=created,
    )
