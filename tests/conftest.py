"""
Test fixtures for SafeRoute tests.

Provides:
- Route / Segment / RiskSignal factories
- Intelligence service payloads and httpx.MockTransport builders
- PipelineConfig with a fake credential
"""

import json
from typing import Any, Callable

import httpx
import pytest

from saferoute.analysis.polyline import encode_polyline
from saferoute.config import PipelineConfig
from saferoute.schemas import (
    Coordinate,
    RiskSignal,
    Route,
    Segment,
    SegmentTag,
    SegmentType,
    Severity,
    SignalType,
    TravelTime,
)

TEST_ENDPOINT = "https://intelligence.test/v1/messages"


def straight_line(n_points: int, start=(19.0760, 72.8777), step_deg: float = 0.001) -> list[tuple[float, float]]:
    """n points heading north-east in equal steps (~140 m per step at 0.001°)."""
    return [
        (round(start[0] + i * step_deg, 5), round(start[1] + i * step_deg, 5))
        for i in range(n_points)
    ]


@pytest.fixture
def make_route() -> Callable[..., Route]:
    def _make(
        n_points: int = 20,
        distance_m: float = 2500.0,
        duration_s: float = 300.0,
        travel_time: TravelTime = TravelTime.DAY,
        city: str = "Mumbai",
        index: int | None = None,
        route_id: str | None = None,
        polyline: str | None = None,
        step_deg: float = 0.001,
    ) -> Route:
        points = straight_line(n_points, step_deg=step_deg)
        return Route(
            origin=Coordinate(lat=points[0][0], lng=points[0][1]),
            destination=Coordinate(lat=points[-1][0], lng=points[-1][1]),
            polyline=polyline if polyline is not None else encode_polyline(points),
            distance_m=distance_m,
            duration_s=duration_s,
            travel_time=travel_time,
            city=city,
            index=index,
            route_id=route_id,
        )
    return _make


@pytest.fixture
def make_segment() -> Callable[..., Segment]:
    counter = {"n": 0}

    def _make(
        segment_type: SegmentType = SegmentType.RESIDENTIAL,
        tags: tuple[SegmentTag, ...] = (),
        distance_m: float = 500.0,
        duration_s: float = 60.0,
        seg_id: str | None = None,
    ) -> Segment:
        counter["n"] += 1
        n = counter["n"]
        return Segment(
            id=seg_id or f"seg_{n}",
            start=Coordinate(lat=19.0, lng=72.0),
            end=Coordinate(lat=19.004, lng=72.0),
            start_index=(n - 1) * 2,
            end_index=n * 2,
            point_count=3,
            distance_m=distance_m,
            duration_s=duration_s,
            speed_kmh=distance_m / duration_s * 3.6 if duration_s else 0.0,
            segment_type=segment_type,
            tags=tags,
        )
    return _make


@pytest.fixture
def make_signal() -> Callable[..., RiskSignal]:
    def _make(
        signal_type: SignalType,
        severity: Severity = Severity.LOW,
        affected: tuple[str, ...] = ("seg_1",),
    ) -> RiskSignal:
        return RiskSignal(
            signal_type=signal_type,
            severity=severity,
            description=f"test {signal_type.value}",
            affected_segments=affected,
        )
    return _make


# ── Intelligence service doubles ──────────────────────────────────────


def intelligence_payload(factors: list[dict[str, Any]] | None = None, **overrides) -> dict[str, Any]:
    payload = {
        "routeSummary": "Busy arterial roads with mixed commercial activity.",
        "identifiedRiskFactors": factors if factors is not None else [],
        "overallContext": "moderate",
        "sourcesUsed": ["municipal reports", "news"],
    }
    payload.update(overrides)
    return payload


def messages_envelope(text: str) -> dict[str, Any]:
    return {
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": 420, "output_tokens": 180},
    }


@pytest.fixture
def service_transport() -> Callable[..., httpx.MockTransport]:
    """Build a MockTransport returning the given completion text."""
    def _make(text: str, status_code: int = 200, calls: list | None = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if calls is not None:
                calls.append(request)
            if status_code != 200:
                return httpx.Response(status_code, json={"error": {"message": "upstream failure"}})
            return httpx.Response(200, json=messages_envelope(text))
        return httpx.MockTransport(handler)
    return _make


@pytest.fixture
def factors_transport(service_transport) -> Callable[..., httpx.MockTransport]:
    def _make(factors: list[dict[str, Any]], calls: list | None = None) -> httpx.MockTransport:
        return service_transport(json.dumps(intelligence_payload(factors)), calls=calls)
    return _make


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        service_endpoint=TEST_ENDPOINT,
        credential="test-key",
        request_timeout_ms=500,
        fallback_enabled=True,
        max_concurrent_requests=2,
    )
