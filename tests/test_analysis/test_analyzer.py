"""
Route Analyzer Tests.
"""

from datetime import datetime, timezone

import pytest

from saferoute.analysis.analyzer import RouteAnalyzer
from saferoute.errors import RouteValidationError
from saferoute.schemas import SignalType, TravelTime


class TestRouteAnalyzer:
    def setup_method(self):
        self.analyzer = RouteAnalyzer()

    def test_analysis_shape(self, make_route):
        route = make_route(n_points=20, distance_m=2500, duration_s=300)
        analysis = self.analyzer.analyze(route)
        assert analysis.route_id == route.resolved_id
        assert analysis.segment_count == len(analysis.segments) == 5
        assert analysis.point_count == 20
        assert analysis.decode_complete
        assert analysis.city == "Mumbai"

    def test_injected_clock(self, make_route):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert self.analyzer.analyze(make_route(), now=now).analyzed_at == now

    def test_night_route_carries_night_signal(self, make_route):
        analysis = self.analyzer.analyze(make_route(travel_time=TravelTime.NIGHT))
        assert analysis.has_signal(SignalType.NIGHT_TRAVEL)

    def test_deterministic(self, make_route):
        route = make_route(travel_time=TravelTime.NIGHT, duration_s=4000)
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert self.analyzer.analyze(route, now=now) == self.analyzer.analyze(route, now=now)

    def test_empty_polyline_rejected(self, make_route):
        with pytest.raises(RouteValidationError):
            self.analyzer.analyze(make_route(polyline=""))

    def test_single_point_rejected(self, make_route):
        with pytest.raises(RouteValidationError) as exc_info:
            self.analyzer.analyze(make_route(polyline="_p~iF~ps|U"))
        assert exc_info.value.details["decoded_points"] == 1

    def test_truncated_polyline_analyzed_best_effort(self, make_route):
        route = make_route(polyline="_p~iF~ps|U_ulLnnqC_mqNvxq`", distance_m=500)
        analysis = self.analyzer.analyze(route)
        assert not analysis.decode_complete
        assert analysis.point_count == 2
        assert analysis.segment_count == 1


class TestRouteIdentity:
    def test_explicit_id_wins(self, make_route):
        assert make_route(route_id="r-42").resolved_id == "r-42"

    def test_derived_id_is_stable(self, make_route):
        assert make_route().resolved_id == make_route().resolved_id
        assert make_route().resolved_id.startswith("route_")

    def test_index_distinguishes_routes(self, make_route):
        assert make_route(index=0).resolved_id != make_route(index=1).resolved_id
