"""
Intelligence Enricher Tests.

Covers:
- factor → flag mapping
- deterministic fallback content
- every recoverable failure path falls back
- fallback disabled re-raises
"""

import asyncio
import json

import httpx
import pytest

from saferoute.errors import (
    MalformedResponseError,
    NetworkFailureError,
    RouteValidationError,
    ServiceError,
)
from saferoute.intelligence.client import IntelligenceClient
from saferoute.intelligence.enricher import (
    FALLBACK_HIGHWAY,
    FALLBACK_NIGHT,
    FALLBACK_UNAVAILABLE,
    MAX_EXPLANATIONS,
    IntelligenceEnricher,
    fallback_report,
    flags_from_factors,
)
from saferoute.schemas import (
    CrimeFactor,
    EnvironmentFactor,
    InfrastructureFactor,
    IntelligenceFlags,
    IntelligenceSource,
    SegmentType,
    SignalType,
    SocialFactor,
    TrafficFactor,
    TravelTime,
)


_FACTOR_TYPES = {
    CrimeFactor: "crime",
    InfrastructureFactor: "infrastructure",
    TrafficFactor: "traffic",
    EnvironmentFactor: "environment",
    SocialFactor: "social",
}


def _factor(cls, description: str, source: str = "news"):
    return cls(
        type=_FACTOR_TYPES[cls],
        description=description,
        confidence="medium",
        sourceCategory=source,
    )


class TestFlagsFromFactors:
    def test_no_factors(self):
        assert flags_from_factors([]) == IntelligenceFlags()

    def test_crime_factor(self):
        flags = flags_from_factors([_factor(CrimeFactor, "Thefts reported near market")])
        assert flags.crime_mention
        assert not flags.lighting_issue

    @pytest.mark.parametrize("description,expected", [
        ("Several street lights are broken", True),
        ("Unlit stretch under the bridge", True),
        ("Dark underpass near the station", True),
        ("Potholes on the service road", False),
    ])
    def test_infrastructure_lighting_keywords(self, description, expected):
        flags = flags_from_factors([_factor(InfrastructureFactor, description)])
        assert flags.lighting_issue is expected

    def test_lighting_keywords_only_count_for_infrastructure(self):
        flags = flags_from_factors([_factor(EnvironmentFactor, "Dark, isolated stretch")])
        assert not flags.lighting_issue

    def test_social_factor_sets_women_safety(self):
        flags = flags_from_factors([_factor(SocialFactor, "Crowded late-night gatherings")])
        assert flags.women_safety_concern

    def test_women_keyword_on_any_factor(self):
        flags = flags_from_factors([_factor(TrafficFactor, "Harassment reported at bus stops")])
        assert flags.women_safety_concern

    def test_government_source_sets_police_advisory(self):
        flags = flags_from_factors([_factor(TrafficFactor, "Lane closures", source="government")])
        assert flags.police_advisory

    def test_advisory_keyword_sets_police_advisory(self):
        flags = flags_from_factors([_factor(EnvironmentFactor, "Police advisory for flooding")])
        assert flags.police_advisory

    def test_traffic_alone_sets_nothing(self):
        assert flags_from_factors([_factor(TrafficFactor, "Heavy congestion")]) == IntelligenceFlags()


class TestFallbackReport:
    def test_day_residential(self, make_segment):
        report = fallback_report([make_segment()], [])
        assert report.source == IntelligenceSource.FALLBACK
        assert report.flags == IntelligenceFlags()
        assert report.explanation == (FALLBACK_UNAVAILABLE,)

    def test_night_with_highway(self, make_segment, make_signal):
        segments = [make_segment(segment_type=SegmentType.HIGHWAY)]
        signals = [make_signal(SignalType.NIGHT_TRAVEL)]
        report = fallback_report(segments, signals)
        assert report.flags == IntelligenceFlags(lighting_issue=True)
        assert report.explanation == (FALLBACK_UNAVAILABLE, FALLBACK_NIGHT, FALLBACK_HIGHWAY)

    def test_never_asserts_unsourced_concerns(self, make_segment, make_signal):
        report = fallback_report(
            [make_segment(segment_type=SegmentType.HIGHWAY)],
            [make_signal(SignalType.NIGHT_TRAVEL), make_signal(SignalType.ISOLATED_SEGMENT)],
        )
        assert not report.flags.crime_mention
        assert not report.flags.women_safety_concern
        assert not report.flags.police_advisory


class TestIntelligenceEnricher:
    def _enricher(self, config, transport, timeout_s=1.0, fallback_enabled=True):
        client = IntelligenceClient(config, transport=transport)
        return IntelligenceEnricher(client, timeout_s=timeout_s, fallback_enabled=fallback_enabled)

    @pytest.mark.asyncio
    async def test_service_report(self, pipeline_config, factors_transport, make_segment):
        transport = factors_transport([
            {"type": "crime", "description": "Snatching incidents", "confidence": "high",
             "sourceCategory": "news"},
            {"type": "infrastructure", "description": "Broken street lamps", "confidence": "medium",
             "sourceCategory": "municipal"},
        ])
        enricher = self._enricher(pipeline_config, transport)

        report = await enricher.enrich("Mumbai", TravelTime.NIGHT, [make_segment()], [])

        assert report.source == IntelligenceSource.SERVICE
        assert report.flags.crime_mention
        assert report.flags.lighting_issue
        assert report.explanation == ("Snatching incidents", "Broken street lamps")

    @pytest.mark.asyncio
    async def test_explanations_capped(self, pipeline_config, factors_transport, make_segment):
        factors = [
            {"type": "traffic", "description": f"Observation {i}", "confidence": "low",
             "sourceCategory": "news"}
            for i in range(10)
        ]
        enricher = self._enricher(pipeline_config, factors_transport(factors))
        report = await enricher.enrich("Pune", TravelTime.DAY, [make_segment()], [])
        assert len(report.explanation) == MAX_EXPLANATIONS

    @pytest.mark.asyncio
    async def test_prompt_carries_route_context(self, pipeline_config, factors_transport, make_segment):
        calls: list[httpx.Request] = []
        enricher = self._enricher(pipeline_config, factors_transport([], calls=calls))
        await enricher.enrich("Bengaluru", TravelTime.NIGHT, [make_segment()], [])
        prompt = json.loads(calls[0].content)["messages"][0]["content"]
        assert "City: Bengaluru" in prompt
        assert "Travel Time: night" in prompt
        assert "Detected Signals: None detected" in prompt

    @pytest.mark.asyncio
    async def test_server_error_falls_back(self, pipeline_config, service_transport, make_segment):
        enricher = self._enricher(pipeline_config, service_transport("", status_code=500))
        report = await enricher.enrich("Mumbai", TravelTime.DAY, [make_segment()], [])
        assert report.source == IntelligenceSource.FALLBACK
        assert report.explanation[0] == FALLBACK_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_garbage_falls_back(self, pipeline_config, service_transport, make_segment):
        enricher = self._enricher(pipeline_config, service_transport("not json at all"))
        report = await enricher.enrich("Mumbai", TravelTime.DAY, [make_segment()], [])
        assert report.source == IntelligenceSource.FALLBACK

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, pipeline_config, make_segment):
        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        enricher = self._enricher(
            pipeline_config, httpx.MockTransport(slow_handler), timeout_s=0.05,
        )
        report = await enricher.enrich("Mumbai", TravelTime.DAY, [make_segment()], [])
        assert report.source == IntelligenceSource.FALLBACK

    @pytest.mark.asyncio
    async def test_fallback_disabled_reraises_service_error(
        self, pipeline_config, service_transport, make_segment,
    ):
        enricher = self._enricher(
            pipeline_config, service_transport("", status_code=502), fallback_enabled=False,
        )
        with pytest.raises(ServiceError):
            await enricher.enrich("Mumbai", TravelTime.DAY, [make_segment()], [])

    @pytest.mark.asyncio
    async def test_fallback_disabled_reraises_malformed(
        self, pipeline_config, service_transport, make_segment,
    ):
        enricher = self._enricher(
            pipeline_config, service_transport('{"routeSummary": "x"}'), fallback_enabled=False,
        )
        with pytest.raises(MalformedResponseError):
            await enricher.enrich("Mumbai", TravelTime.DAY, [make_segment()], [])

    @pytest.mark.asyncio
    async def test_fallback_disabled_timeout_is_network_failure(self, pipeline_config, make_segment):
        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        enricher = self._enricher(
            pipeline_config, httpx.MockTransport(slow_handler),
            timeout_s=0.05, fallback_enabled=False,
        )
        with pytest.raises(NetworkFailureError):
            await enricher.enrich("Mumbai", TravelTime.DAY, [make_segment()], [])

    @pytest.mark.asyncio
    async def test_empty_segments_rejected(self, pipeline_config, factors_transport):
        enricher = self._enricher(pipeline_config, factors_transport([]))
        with pytest.raises(RouteValidationError):
            await enricher.enrich("Mumbai", TravelTime.DAY, [], [])

    @pytest.mark.asyncio
    async def test_blank_city_rejected(self, pipeline_config, factors_transport, make_segment):
        enricher = self._enricher(pipeline_config, factors_transport([]))
        with pytest.raises(RouteValidationError):
            await enricher.enrich("  ", TravelTime.DAY, [make_segment()], [])
