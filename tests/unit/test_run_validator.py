"""Run rule validation: priority order and boundaries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from runera.runs.validator import (
    ERR_DISTANCE_SHORT,
    ERR_DURATION_SHORT,
    ERR_NO_DEVICE_ATTESTATION,
    ERR_PACE_IMPOSSIBLE,
    ERR_TIMESTAMP_INVALID,
    REJECTED,
    VERIFIED,
    RunMeasurements,
    compute_pace,
    validate_run,
)

START = datetime(2025, 1, 20, 6, 0, tzinfo=timezone.utc)


def _run(
    distance: float = 10000,
    duration: float = 3000,
    start: datetime | None = START,
    end: datetime | None = START + timedelta(seconds=3000),
    device_hash: str | None = "device-abc",
) -> RunMeasurements:
    return RunMeasurements(
        distance_meters=distance,
        duration_seconds=duration,
        start_time=start,
        end_time=end,
        device_hash=device_hash,
    )


class TestVerdicts:
    def test_plausible_run_verified(self):
        verdict = validate_run(_run(distance=10000, duration=3000))
        assert verdict.status == VERIFIED
        assert verdict.reason_code is None
        assert verdict.verified

    def test_pace_too_fast_rejected(self):
        """10 km in 25 minutes is 150 s/km, under the 180 s/km floor."""
        verdict = validate_run(_run(distance=10000, duration=1500))
        assert verdict.status == REJECTED
        assert verdict.reason_code == ERR_PACE_IMPOSSIBLE
        assert not verdict.verified

    def test_pace_at_floor_verified(self):
        assert validate_run(_run(distance=1000, duration=180)).verified

    def test_missing_device_hash(self):
        assert validate_run(_run(device_hash=None)).reason_code == ERR_NO_DEVICE_ATTESTATION
        assert validate_run(_run(device_hash="")).reason_code == ERR_NO_DEVICE_ATTESTATION

    def test_end_before_start(self):
        verdict = validate_run(_run(end=START - timedelta(minutes=1)))
        assert verdict.reason_code == ERR_TIMESTAMP_INVALID

    def test_end_equal_start(self):
        assert validate_run(_run(end=START)).reason_code == ERR_TIMESTAMP_INVALID

    def test_missing_timestamps(self):
        assert validate_run(_run(start=None)).reason_code == ERR_TIMESTAMP_INVALID
        assert validate_run(_run(end=None)).reason_code == ERR_TIMESTAMP_INVALID

    @pytest.mark.parametrize("distance", [0, -5])
    def test_non_positive_distance(self, distance):
        assert validate_run(_run(distance=distance)).reason_code == ERR_DISTANCE_SHORT

    @pytest.mark.parametrize("duration", [0, -1])
    def test_non_positive_duration(self, duration):
        assert validate_run(_run(duration=duration)).reason_code == ERR_DURATION_SHORT

    def test_custom_pace_floor(self):
        assert validate_run(_run(distance=10000, duration=3000), min_pace_seconds_per_km=360).reason_code == (
            ERR_PACE_IMPOSSIBLE
        )


class TestRulePriority:
    """The first failing rule in fixed order decides the reason code."""

    def test_device_checked_before_timestamps(self):
        verdict = validate_run(_run(device_hash=None, end=START, distance=0, duration=0))
        assert verdict.reason_code == ERR_NO_DEVICE_ATTESTATION

    def test_timestamps_checked_before_distance(self):
        verdict = validate_run(_run(end=START, distance=0, duration=0))
        assert verdict.reason_code == ERR_TIMESTAMP_INVALID

    def test_distance_checked_before_duration(self):
        assert validate_run(_run(distance=0, duration=0)).reason_code == ERR_DISTANCE_SHORT

    def test_duration_checked_before_pace(self):
        assert validate_run(_run(distance=10000, duration=0)).reason_code == ERR_DURATION_SHORT


class TestComputePace:
    def test_seconds_per_km(self):
        assert compute_pace(10000, 3000) == 300

    def test_zero_distance_has_no_pace(self):
        assert compute_pace(0, 3000) is None
