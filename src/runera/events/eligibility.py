"""Event eligibility and participation state machine.

An event is open while active and ``start_time <= now <= end_time``. A user is
eligible when the event is open AND tier >= min_tier AND total distance >=
min_total_distance_meters.

Participation progression: JOINED -> IN_PROGRESS -> COMPLETED (JOINED may
complete directly). COMPLETED is terminal; a completed participation never
reopens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from runera.errors import InvalidTransitionError

JOINED = "JOINED"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"

VALID_TRANSITIONS: dict[str, list[str]] = {
    JOINED: [IN_PROGRESS, COMPLETED],
    IN_PROGRESS: [COMPLETED],
    COMPLETED: [],
}

ERR_EVENT_CLOSED = "ERR_EVENT_CLOSED"
ERR_TIER_TOO_LOW = "ERR_TIER_TOO_LOW"
ERR_DISTANCE_TOO_LOW = "ERR_DISTANCE_TOO_LOW"


class EventWindow(Protocol):
    active: bool
    start_time: datetime
    end_time: datetime
    min_tier: int
    min_total_distance_meters: float


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reasons: list[str] = field(default_factory=list)


def validate_participation_transition(current_status: str, target_status: str) -> None:
    """Validate a participation status change. Raises InvalidTransitionError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise InvalidTransitionError(
            f"Invalid participation transition: {current_status} -> {target_status}. "
            f"Valid transitions: {valid}",
            details={"from": current_status, "to": target_status},
        )


def is_event_open(event: EventWindow, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return bool(event.active) and event.start_time <= now <= event.end_time


def evaluate_eligibility(
    event: EventWindow,
    tier: int,
    total_distance_meters: float,
    now: datetime | None = None,
) -> Eligibility:
    """Check every requirement and report all that fail."""
    reasons: list[str] = []
    if not is_event_open(event, now):
        reasons.append(ERR_EVENT_CLOSED)
    if tier < event.min_tier:
        reasons.append(ERR_TIER_TOO_LOW)
    if total_distance_meters < event.min_total_distance_meters:
        reasons.append(ERR_DISTANCE_TOO_LOW)
    return Eligibility(eligible=not reasons, reasons=reasons)
