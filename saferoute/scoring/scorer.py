"""
Safety Scorer — stage 3 of the pipeline.

Pure function of (travel time, segments, structural signals, intelligence
flags). No I/O, no hidden state: identical inputs give an identical score,
category and reason list. Only metadata.scored_at depends on the clock,
and it can be injected.

Evaluation order (reasons follow it):
1. night travel (+ urban-density offset at night)
2. isolated segment, high-speed segment, complex intersections
3. crime, lighting, women safety, police advisory
4. urban composition calibration
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog

from saferoute.errors import RouteValidationError
from saferoute.schemas import (
    IntelligenceFlags,
    RiskSignal,
    ScoreAdjustment,
    ScoringMetadata,
    ScoringResult,
    Segment,
    SegmentType,
    SignalType,
    TravelTime,
)
from saferoute.scoring.weights import (
    BASE_SCORE,
    DEFAULT_PENALTIES,
    DEFAULT_THRESHOLDS,
    CategoryThresholds,
    PenaltyTable,
    categorize,
    clamp_score,
)

logger = structlog.get_logger(__name__)

_URBAN_TYPES = (SegmentType.RESIDENTIAL, SegmentType.MAIN_ROAD)


class SafetyScorer:
    """Weighted rule-based route scoring."""

    def __init__(
        self,
        penalties: PenaltyTable = DEFAULT_PENALTIES,
        thresholds: CategoryThresholds = DEFAULT_THRESHOLDS,
    ):
        self.penalties = penalties
        self.thresholds = thresholds

    def score(
        self,
        route_id: str,
        travel_time: TravelTime,
        segments: Sequence[Segment],
        signals: Sequence[RiskSignal],
        flags: IntelligenceFlags,
        scored_at: Optional[datetime] = None,
    ) -> ScoringResult:
        if not segments:
            raise RouteValidationError(
                f"Route {route_id} cannot be scored without segments",
                details={"route_id": route_id},
            )

        p = self.penalties
        adjustments: list[ScoreAdjustment] = []
        running = BASE_SCORE

        def apply(cause: str, points: int, text: str) -> None:
            nonlocal running
            running += points
            adjustments.append(ScoreAdjustment(
                cause=cause,
                points=points,
                reason=f"{text} ({points:+d})",
            ))

        signal_types = [s.signal_type for s in signals]

        # 1. Time of travel
        if travel_time == TravelTime.NIGHT:
            apply("night_travel", -p.night_travel, "Night travel increases safety risk")
            if SignalType.URBAN_DENSE_AREA in signal_types:
                apply(
                    "urban_night_offset", p.urban_night_offset,
                    "Dense urban activity reduces night-time risk",
                )

        # 2. Structural signals
        if SignalType.ISOLATED_SEGMENT in signal_types:
            apply("isolated_segment", -p.isolated_segment, "Isolated road segments detected")

        if SignalType.HIGH_SPEED_AREA in signal_types:
            apply("high_speed_segment", -p.high_speed_segment, "High-speed road segments present")

        complex_count = signal_types.count(SignalType.COMPLEX_INTERSECTION)
        if complex_count > p.complex_intersection_min_count:
            apply(
                "complex_intersections", -p.complex_intersections,
                f"Multiple complex intersections on route ({complex_count} detected)",
            )

        # 3. Intelligence flags
        if flags.crime_mention:
            apply("crime_mention", -p.crime_mention, "Crime-related safety concerns reported")
        if flags.lighting_issue:
            apply("lighting_issue", -p.lighting_issue, "Poor lighting conditions reported")
        if flags.women_safety_concern:
            apply("women_safety_concern", -p.women_safety_concern, "Women safety concerns identified")
        if flags.police_advisory:
            apply("police_advisory", -p.police_advisory, "Active police advisory in the area")

        # 4. Urban composition calibration
        urban_share = sum(1 for s in segments if s.segment_type in _URBAN_TYPES) / len(segments)
        if urban_share > p.urban_composition_share and running < p.urban_calibration_below:
            apply(
                "urban_calibration", p.urban_calibration,
                "Urban route with regular activity along most segments",
            )

        safety_score = clamp_score(running)
        category = categorize(safety_score, self.thresholds)

        result = ScoringResult(
            route_id=route_id,
            safety_score=safety_score,
            category=category,
            reasons=tuple(a.reason for a in adjustments),
            metadata=ScoringMetadata(
                scored_at=scored_at or datetime.now(timezone.utc),
                raw_score=running,
                total_penalty=-sum(a.points for a in adjustments if a.points < 0),
                total_bonus=sum(a.points for a in adjustments if a.points > 0),
                breakdown=tuple(adjustments),
            ),
        )

        logger.info(
            "route_scored",
            route_id=route_id,
            safety_score=safety_score,
            category=category.value,
            adjustments=len(adjustments),
        )
        return result
