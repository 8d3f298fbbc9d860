"""Level and tier computation.

These values MUST match the profile NFT's tier artwork:
  level = floor(xp / 100) + 1
  tier 5 at level >= 9, 4 at >= 7, 3 at >= 5, 2 at >= 3, else 1
"""

from __future__ import annotations

XP_PER_LEVEL = 100

# (minimum level, tier), highest first
TIER_THRESHOLDS: list[tuple[int, int]] = [
    (9, 5),
    (7, 4),
    (5, 3),
    (3, 2),
]


def compute_level(exp: int) -> int:
    """Level from total experience. 0-99 XP is level 1."""
    if exp < 0:
        msg = f"Experience cannot be negative: {exp}"
        raise ValueError(msg)
    return exp // XP_PER_LEVEL + 1


def compute_tier(level: int) -> int:
    """Tier step function of level."""
    for min_level, tier in TIER_THRESHOLDS:
        if level >= min_level:
            return tier
    return 1
