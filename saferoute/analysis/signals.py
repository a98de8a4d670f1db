"""
Structural Signal Extractor.

Signals are observations derived purely from route geometry and metadata.
They carry no score; the scorer decides what they cost.

Route-level:
- night_travel     (travel time is night)
- long_duration    (duration > 1 hour)
- urban_dense_area (no highway, majority of segments complex)

Segment-level:
- isolated_segment     (long + straight + highway)
- high_speed_area      (high-speed tag)
- complex_intersection (complex-routing tag)
"""

import structlog

from saferoute.schemas import (
    RiskSignal,
    Route,
    Segment,
    SegmentTag,
    SegmentType,
    Severity,
    SignalType,
    TravelTime,
)

logger = structlog.get_logger(__name__)

LONG_DURATION_S: float = 3600.0
URBAN_DENSE_MAJORITY: float = 0.5


def _route_level_signals(segments: list[Segment], route: Route) -> list[RiskSignal]:
    signals: list[RiskSignal] = []
    all_ids = tuple(s.id for s in segments)

    if route.travel_time == TravelTime.NIGHT:
        signals.append(RiskSignal(
            signal_type=SignalType.NIGHT_TRAVEL,
            severity=Severity.MEDIUM,
            description="Route will be traveled during nighttime hours",
            affected_segments=all_ids,
            metadata={"travel_time": route.travel_time.value},
        ))

    if route.duration_s > LONG_DURATION_S:
        signals.append(RiskSignal(
            signal_type=SignalType.LONG_DURATION,
            severity=Severity.LOW,
            description="Extended travel duration may require additional planning",
            affected_segments=all_ids,
            metadata={"duration_minutes": round(route.duration_s / 60)},
        ))

    return signals


def _urban_dense_signal(segments: list[Segment]) -> list[RiskSignal]:
    if any(s.segment_type == SegmentType.HIGHWAY for s in segments):
        return []

    # no highway present, so every segment is non-highway
    complex_ids = tuple(s.id for s in segments if s.has_tag(SegmentTag.COMPLEX_ROUTING))
    if not segments or len(complex_ids) / len(segments) <= URBAN_DENSE_MAJORITY:
        return []

    return [RiskSignal(
        signal_type=SignalType.URBAN_DENSE_AREA,
        severity=Severity.LOW,
        description="Dense urban routing with frequent turns and no highway stretches",
        affected_segments=complex_ids,
        metadata={
            "complex_segments": len(complex_ids),
            "segment_count": len(segments),
        },
    )]


def extract_signals(segments: list[Segment], route: Route) -> list[RiskSignal]:
    """Derive structural risk signals for one route, in a stable order."""
    signals = _route_level_signals(segments, route)

    for seg in segments:
        if (
            seg.has_tag(SegmentTag.LONG)
            and seg.has_tag(SegmentTag.STRAIGHT_PATH)
            and seg.segment_type == SegmentType.HIGHWAY
        ):
            signals.append(RiskSignal(
                signal_type=SignalType.ISOLATED_SEGMENT,
                severity=Severity.MEDIUM,
                description="Long isolated highway segment detected",
                affected_segments=(seg.id,),
                metadata={"distance_m": seg.distance_m, "segment_type": seg.segment_type.value},
            ))

    for seg in segments:
        if seg.has_tag(SegmentTag.HIGH_SPEED):
            signals.append(RiskSignal(
                signal_type=SignalType.HIGH_SPEED_AREA,
                severity=Severity.LOW,
                description="High-speed road segment",
                affected_segments=(seg.id,),
                metadata={"speed_kmh": seg.speed_kmh, "segment_type": seg.segment_type.value},
            ))

    for seg in segments:
        if seg.has_tag(SegmentTag.COMPLEX_ROUTING):
            signals.append(RiskSignal(
                signal_type=SignalType.COMPLEX_INTERSECTION,
                severity=Severity.LOW,
                description="Complex routing with multiple turns",
                affected_segments=(seg.id,),
                metadata={"distance_m": seg.distance_m, "point_count": seg.point_count},
            ))

    signals.extend(_urban_dense_signal(segments))
    return signals
