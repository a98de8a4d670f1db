"""
Route Segmenter — splits a decoded polyline into ~500 m segments.

Segment count derives from the route's total distance, not point density:
    count  = max(ceil(total_distance / 500), 1)
    stride = max(floor(n_points / count), 2)

Each segment spans point i → min(i + stride, n - 1), so consecutive segments
share their boundary point and together cover the whole point sequence.

Type and tags are speed/density heuristics, not map data.
"""

import math
from dataclasses import dataclass

import structlog

from saferoute.analysis.geo import haversine_m, speed_kmh
from saferoute.analysis.polyline import LatLng
from saferoute.schemas import Coordinate, Segment, SegmentTag, SegmentType

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SegmentationRules:
    """Thresholds used to size, classify and tag segments."""
    target_length_m: float = 500.0
    min_points_per_segment: int = 2
    highway_speed_kmh: float = 70.0
    main_road_speed_kmh: float = 40.0
    long_segment_m: float = 1000.0
    high_speed_kmh: float = 70.0
    complex_points_per_100m: float = 5.0
    straight_max_points: int = 5
    straight_min_length_m: float = 300.0


DEFAULT_RULES = SegmentationRules()


def classify_segment(speed: float, rules: SegmentationRules = DEFAULT_RULES) -> SegmentType:
    if speed > rules.highway_speed_kmh:
        return SegmentType.HIGHWAY
    if speed > rules.main_road_speed_kmh:
        return SegmentType.MAIN_ROAD
    if speed > 0:
        return SegmentType.RESIDENTIAL
    return SegmentType.UNKNOWN


def segment_tags(
    point_count: int,
    distance_m: float,
    speed: float,
    rules: SegmentationRules = DEFAULT_RULES,
) -> tuple[SegmentTag, ...]:
    """Characteristic tags for one segment, in a fixed order."""
    tags: list[SegmentTag] = []

    if distance_m > rules.long_segment_m:
        tags.append(SegmentTag.LONG)

    if speed > rules.high_speed_kmh:
        tags.append(SegmentTag.HIGH_SPEED)

    # points per 100 m; a zero-length span has no meaningful density
    density = point_count / (distance_m / 100.0) if distance_m > 0 else 0.0
    if density > rules.complex_points_per_100m:
        tags.append(SegmentTag.COMPLEX_ROUTING)

    if point_count < rules.straight_max_points and distance_m > rules.straight_min_length_m:
        tags.append(SegmentTag.STRAIGHT_PATH)

    return tuple(tags)


def segment_route(
    points: list[LatLng],
    total_distance_m: float,
    total_duration_s: float,
    rules: SegmentationRules = DEFAULT_RULES,
) -> list[Segment]:
    """
    Split decoded points into ordered segments.

    Returns an empty list when fewer than two points are available.
    """
    n = len(points)
    if n < 2:
        return []

    count = max(math.ceil(total_distance_m / rules.target_length_m), 1)
    stride = max(n // count, rules.min_points_per_segment)

    segments: list[Segment] = []
    for start_idx in range(0, n - 1, stride):
        end_idx = min(start_idx + stride, n - 1)
        start = points[start_idx]
        end = points[end_idx]

        distance = haversine_m(start, end)
        duration = (distance / total_distance_m) * total_duration_s if total_distance_m > 0 else 0.0
        speed = speed_kmh(distance, duration)
        point_count = end_idx - start_idx + 1

        segments.append(Segment(
            id=f"seg_{len(segments) + 1}",
            start=Coordinate(lat=start[0], lng=start[1]),
            end=Coordinate(lat=end[0], lng=end[1]),
            start_index=start_idx,
            end_index=end_idx,
            point_count=point_count,
            distance_m=round(distance, 2),
            duration_s=round(duration, 2),
            speed_kmh=round(speed, 2),
            segment_type=classify_segment(speed, rules),
            tags=segment_tags(point_count, distance, speed, rules),
        ))

    logger.debug(
        "route_segmented",
        points=n,
        target_segments=count,
        stride=stride,
        segments=len(segments),
    )
    return segments
