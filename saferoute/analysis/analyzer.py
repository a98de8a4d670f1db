"""
Route Analyzer — stage 1 of the pipeline.

decode polyline → segment → extract structural signals

Pure transform, no external calls. A corrupt polyline is decoded
best-effort; a route that yields no segment at all is rejected.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from saferoute.analysis.polyline import decode_polyline_partial
from saferoute.analysis.segmenter import DEFAULT_RULES, SegmentationRules, segment_route
from saferoute.analysis.signals import extract_signals
from saferoute.errors import RouteValidationError
from saferoute.schemas import Route, RouteAnalysis

logger = structlog.get_logger(__name__)


class RouteAnalyzer:
    """Structural decomposition of a single route."""

    def __init__(self, rules: SegmentationRules = DEFAULT_RULES):
        self.rules = rules

    def analyze(self, route: Route, now: Optional[datetime] = None) -> RouteAnalysis:
        route_id = route.resolved_id
        points, decode_error = decode_polyline_partial(route.polyline)

        if decode_error is not None:
            logger.warning(
                "polyline_decode_partial",
                route_id=route_id,
                position=decode_error.position,
                decoded_points=len(points),
            )

        segments = segment_route(points, route.distance_m, route.duration_s, self.rules)
        if not segments:
            raise RouteValidationError(
                f"Route {route_id} has no usable segments",
                details={"route_id": route_id, "decoded_points": len(points)},
                cause=decode_error,
            )

        signals = extract_signals(segments, route)

        analysis = RouteAnalysis(
            route_id=route_id,
            segments=tuple(segments),
            signals=tuple(signals),
            total_distance_m=route.distance_m,
            total_duration_s=route.duration_s,
            segment_count=len(segments),
            point_count=len(points),
            travel_time=route.travel_time,
            city=route.city,
            decode_complete=decode_error is None,
            analyzed_at=now or datetime.now(timezone.utc),
        )

        logger.info(
            "route_analyzed",
            route_id=route_id,
            points=len(points),
            segments=len(segments),
            signals=len(signals),
            decode_complete=analysis.decode_complete,
        )
        return analysis
