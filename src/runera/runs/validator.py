"""Rule-based anti-cheat validation for submitted runs.

Rules are evaluated in a fixed priority order and the first failing rule
decides the reason code. Clients rely on that ordering, so it must not change:

  1. device attestation present      -> ERR_NO_DEVICE_ATTESTATION
  2. valid timestamps, end > start   -> ERR_TIMESTAMP_INVALID
  3. distance > 0                    -> ERR_DISTANCE_SHORT
  4. duration > 0                    -> ERR_DURATION_SHORT
  5. pace >= minimum pace floor      -> ERR_PACE_IMPOSSIBLE
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

VERIFIED = "VERIFIED"
REJECTED = "REJECTED"

ERR_NO_DEVICE_ATTESTATION = "ERR_NO_DEVICE_ATTESTATION"
ERR_TIMESTAMP_INVALID = "ERR_TIMESTAMP_INVALID"
ERR_DISTANCE_SHORT = "ERR_DISTANCE_SHORT"
ERR_DURATION_SHORT = "ERR_DURATION_SHORT"
ERR_PACE_IMPOSSIBLE = "ERR_PACE_IMPOSSIBLE"

MIN_PACE_SECONDS_PER_KM = 180  # 3:00 min/km


@dataclass(frozen=True)
class RunMeasurements:
    distance_meters: float
    duration_seconds: float
    start_time: datetime | None
    end_time: datetime | None
    device_hash: str | None


@dataclass(frozen=True)
class Verdict:
    status: str
    reason_code: str | None = None

    @property
    def verified(self) -> bool:
        return self.status == VERIFIED


def compute_pace(distance_meters: float, duration_seconds: float) -> float | None:
    """Seconds per kilometre, or None when distance is not positive."""
    if distance_meters <= 0:
        return None
    return duration_seconds / (distance_meters / 1000)


def validate_run(
    run: RunMeasurements,
    min_pace_seconds_per_km: float = MIN_PACE_SECONDS_PER_KM,
) -> Verdict:
    """Return the verdict for one run. Pure: no I/O, no side effects."""
    if not run.device_hash:
        return Verdict(REJECTED, ERR_NO_DEVICE_ATTESTATION)

    if run.start_time is None or run.end_time is None or run.end_time <= run.start_time:
        return Verdict(REJECTED, ERR_TIMESTAMP_INVALID)

    if run.distance_meters <= 0:
        return Verdict(REJECTED, ERR_DISTANCE_SHORT)

    if run.duration_seconds <= 0:
        return Verdict(REJECTED, ERR_DURATION_SHORT)

    pace = compute_pace(run.distance_meters, run.duration_seconds)
    if pace is not None and pace < min_pace_seconds_per_km:
        return Verdict(REJECTED, ERR_PACE_IMPOSSIBLE)

    return Verdict(VERIFIED)
