"""
Scoring configuration — one table of weights, one threshold function.

Base 100. Penalties subtract, bonuses add. Conditions are presence-based
except complex intersections, which trigger above a count.

Categories (inclusive upper bounds):
    score <= 30          → Risky
    30 < score <= 70     → Moderate
    score > 70           → Safe
"""

from dataclasses import dataclass

from saferoute.schemas import SafetyCategory

BASE_SCORE: int = 100
MIN_SCORE: int = 0
MAX_SCORE: int = 100


@dataclass(frozen=True)
class PenaltyTable:
    """Points per triggered condition. All values are magnitudes."""
    night_travel: int = 10
    isolated_segment: int = 12
    high_speed_segment: int = 6
    complex_intersections: int = 5
    crime_mention: int = 12
    lighting_issue: int = 6
    women_safety_concern: int = 10
    police_advisory: int = 12

    # bonuses
    urban_night_offset: int = 6
    urban_calibration: int = 10

    # trigger conditions
    complex_intersection_min_count: int = 3      # strictly more than this
    urban_composition_share: float = 0.6         # strictly more than this
    urban_calibration_below: int = 65            # applies while score < this


@dataclass(frozen=True)
class CategoryThresholds:
    risky_max: int = 30
    moderate_max: int = 70

    def __post_init__(self) -> None:
        if not (MIN_SCORE <= self.risky_max < self.moderate_max < MAX_SCORE):
            raise ValueError(
                f"Thresholds must satisfy {MIN_SCORE} <= risky_max < moderate_max < {MAX_SCORE}"
            )


DEFAULT_PENALTIES = PenaltyTable()
DEFAULT_THRESHOLDS = CategoryThresholds()

_CATEGORY_RANK: dict[SafetyCategory, int] = {
    SafetyCategory.RISKY: 0,
    SafetyCategory.MODERATE: 1,
    SafetyCategory.SAFE: 2,
}


def clamp_score(raw: float) -> int:
    """Round to nearest integer and clamp to [0, 100]."""
    return max(MIN_SCORE, min(MAX_SCORE, round(raw)))


def categorize(score: float, thresholds: CategoryThresholds = DEFAULT_THRESHOLDS) -> SafetyCategory:
    """Monotonic mapping from score to category."""
    if score <= thresholds.risky_max:
        return SafetyCategory.RISKY
    if score <= thresholds.moderate_max:
        return SafetyCategory.MODERATE
    return SafetyCategory.SAFE


def category_rank(category: SafetyCategory) -> int:
    """0 = most risky. Higher is safer."""
    return _CATEGORY_RANK[category]
