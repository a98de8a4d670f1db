"""
Intelligence Enricher — stage 2 of the pipeline.

Queries the text-generation service for public-safety context and flattens
the answer into four boolean flags plus short explanation strings.

The flattening is deliberately coarse: confidence and source nuance are
discarded before scoring so the scorer sees a small, auditable input.

When the call fails (timeout, transport, non-2xx, malformed body) the
enricher returns a deterministic fallback built only from what is already
known locally. The fallback never asserts crime, women-safety or police
advisory concerns it cannot source.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog

from saferoute.errors import IntelligenceError, NetworkFailureError, RouteValidationError
from saferoute.intelligence.client import IntelligenceClient
from saferoute.intelligence.parser import parse_intelligence_response
from saferoute.intelligence.prompt import SYSTEM_PROMPT, build_prompt
from saferoute.schemas import (
    CrimeFactor,
    EnvironmentFactor,
    InfrastructureFactor,
    IntelligenceFlags,
    IntelligenceReport,
    IntelligenceResponse,
    IntelligenceSource,
    RiskFactor,
    RiskSignal,
    Segment,
    SegmentType,
    SignalType,
    SocialFactor,
    SourceCategory,
    TrafficFactor,
    TravelTime,
)

logger = structlog.get_logger(__name__)

MAX_EXPLANATIONS: int = 6

LIGHTING_KEYWORDS = re.compile(r"light|lamp|unlit|dark", re.IGNORECASE)
WOMEN_SAFETY_KEYWORDS = re.compile(r"women|woman|female|harass", re.IGNORECASE)
ADVISORY_KEYWORDS = re.compile(r"police|advisory", re.IGNORECASE)

FALLBACK_UNAVAILABLE = (
    "Unable to fetch real-time safety intelligence. "
    "Route analysis based on structural data only."
)
FALLBACK_NIGHT = "Night travel may reduce visibility and increase isolation on some segments."
FALLBACK_HIGHWAY = "Route includes highway segments with higher speed exposure."


def flags_from_factors(factors: Sequence[RiskFactor]) -> IntelligenceFlags:
    """Map validated risk factors onto the four intelligence flags."""
    crime = lighting = women = police = False

    for factor in factors:
        match factor:
            case CrimeFactor():
                crime = True
            case InfrastructureFactor():
                if LIGHTING_KEYWORDS.search(factor.description):
                    lighting = True
            case SocialFactor():
                women = True
            case TrafficFactor() | EnvironmentFactor():
                pass

        if WOMEN_SAFETY_KEYWORDS.search(factor.description):
            women = True
        if (
            factor.source_category == SourceCategory.GOVERNMENT
            or ADVISORY_KEYWORDS.search(factor.description)
        ):
            police = True

    return IntelligenceFlags(
        crime_mention=crime,
        lighting_issue=lighting,
        women_safety_concern=women,
        police_advisory=police,
    )


def report_from_response(
    response: IntelligenceResponse,
    now: Optional[datetime] = None,
) -> IntelligenceReport:
    factors = response.identified_risk_factors
    return IntelligenceReport(
        flags=flags_from_factors(factors),
        explanation=tuple(f.description for f in factors[:MAX_EXPLANATIONS]),
        source=IntelligenceSource.SERVICE,
        overall_context=response.overall_context,
        generated_at=now or datetime.now(timezone.utc),
    )


def fallback_report(
    segments: Sequence[Segment],
    signals: Sequence[RiskSignal],
    now: Optional[datetime] = None,
) -> IntelligenceReport:
    """Conservative intelligence derived only from local structural data."""
    has_night = any(s.signal_type == SignalType.NIGHT_TRAVEL for s in signals)
    has_highway = any(s.segment_type == SegmentType.HIGHWAY for s in segments)

    explanation = [FALLBACK_UNAVAILABLE]
    if has_night:
        explanation.append(FALLBACK_NIGHT)
    if has_highway:
        explanation.append(FALLBACK_HIGHWAY)

    return IntelligenceReport(
        flags=IntelligenceFlags(lighting_issue=has_night),
        explanation=tuple(explanation[:MAX_EXPLANATIONS]),
        source=IntelligenceSource.FALLBACK,
        generated_at=now or datetime.now(timezone.utc),
    )


class IntelligenceEnricher:
    """
    Enrich one route's structural analysis with public-safety context.

    Not cached: advisories change, so every analysis issues a fresh call.
    """

    def __init__(
        self,
        client: IntelligenceClient,
        timeout_s: float,
        fallback_enabled: bool = True,
    ):
        self.client = client
        self.timeout_s = timeout_s
        self.fallback_enabled = fallback_enabled

    @staticmethod
    def validate_input(
        city: str,
        travel_time: TravelTime,
        segments: Sequence[Segment],
    ) -> None:
        if not city or not city.strip():
            raise RouteValidationError("Invalid input: city is required")
        if travel_time not in (TravelTime.DAY, TravelTime.NIGHT):
            raise RouteValidationError('Invalid input: travel_time must be "day" or "night"')
        if not segments:
            raise RouteValidationError("Invalid input: segments must be non-empty")

    async def enrich(
        self,
        city: str,
        travel_time: TravelTime,
        segments: Sequence[Segment],
        signals: Sequence[RiskSignal],
        route_id: str = "",
    ) -> IntelligenceReport:
        """
        Query the service and flatten the answer.

        Raises RouteValidationError for bad input. Service failures are
        recovered via the fallback unless fallback is disabled.
        """
        self.validate_input(city, travel_time, segments)
        prompt = build_prompt(city, travel_time, segments, signals)

        try:
            async with asyncio.timeout(self.timeout_s):
                text = await self.client.generate(SYSTEM_PROMPT, prompt)
            response = parse_intelligence_response(text)
        except TimeoutError as exc:
            error: IntelligenceError = NetworkFailureError(
                f"Intelligence call exceeded {self.timeout_s:.1f}s", cause=exc,
            )
        except IntelligenceError as exc:
            error = exc
        else:
            report = report_from_response(response)
            logger.info(
                "intelligence_enriched",
                route_id=route_id,
                factors=len(response.identified_risk_factors),
                overall_context=response.overall_context.value,
                flags=report.flags.model_dump(),
            )
            return report

        if not self.fallback_enabled:
            raise error

        logger.warning(
            "intelligence_fallback_used",
            route_id=route_id,
            error_code=error.error_code.value,
            error=error.message,
        )
        return fallback_report(segments, signals)
