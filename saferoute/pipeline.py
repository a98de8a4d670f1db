"""
Route Pipeline — orchestrates the four stages.

Per route (strictly sequential, each stage needs the previous output):
    RouteAnalyzer → IntelligenceEnricher → SafetyScorer

Per batch:
    all per-route chains concurrently (intelligence calls bounded by a
    semaphore) → join → RouteComparator

Cancelling analyze_batch, or one chain failing, cancels every in-flight
intelligence call and produces no decision. Per-route chains share no mutable state.
"""

import asyncio
import contextlib
from typing import AsyncIterator, Optional, Sequence

import httpx
import structlog

from saferoute.analysis.analyzer import RouteAnalyzer
from saferoute.config import PipelineConfig
from saferoute.decisions.comparator import RouteComparator
from saferoute.errors import NoRoutesProvidedError, RouteValidationError
from saferoute.intelligence.client import IntelligenceClient
from saferoute.intelligence.enricher import IntelligenceEnricher
from saferoute.schemas import (
    AssessmentStatus,
    BatchAnalysis,
    Route,
    RouteAssessment,
)
from saferoute.scoring.scorer import SafetyScorer

logger = structlog.get_logger(__name__)

UNASSESSABLE_MESSAGE = "Unable to assess this route"


class RoutePipeline:
    """
    Entry point for route safety analysis.

    Construction fails with MissingCredentialsError when the config has no
    credential for the intelligence service.
    """

    def __init__(
        self,
        config: PipelineConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        analyzer: Optional[RouteAnalyzer] = None,
        scorer: Optional[SafetyScorer] = None,
        comparator: Optional[RouteComparator] = None,
    ):
        self.config = config
        self.analyzer = analyzer or RouteAnalyzer()
        self.enricher = IntelligenceEnricher(
            client=IntelligenceClient(config, transport=transport),
            timeout_s=config.request_timeout_s,
            fallback_enabled=config.fallback_enabled,
        )
        self.scorer = scorer or SafetyScorer()
        self.comparator = comparator or RouteComparator()

    async def analyze_route(
        self,
        route: Route,
        limiter: Optional[asyncio.Semaphore] = None,
    ) -> RouteAssessment:
        """Run analyze → enrich → score for one route."""
        route = route.at_position(0)
        analysis = self.analyzer.analyze(route)

        async with _acquire(limiter):
            intelligence = await self.enricher.enrich(
                city=route.city,
                travel_time=route.travel_time,
                segments=analysis.segments,
                signals=analysis.signals,
                route_id=analysis.route_id,
            )

        scoring = self.scorer.score(
            route_id=analysis.route_id,
            travel_time=route.travel_time,
            segments=analysis.segments,
            signals=analysis.signals,
            flags=intelligence.flags,
        )

        return RouteAssessment(
            route_id=analysis.route_id,
            original_index=route.index,
            status=AssessmentStatus.SCORED,
            distance_m=route.distance_m,
            duration_s=route.duration_s,
            scoring=scoring,
            intelligence_source=intelligence.source,
        )

    async def _assess_or_mark(self, route: Route, limiter: asyncio.Semaphore) -> RouteAssessment:
        try:
            return await self.analyze_route(route, limiter)
        except RouteValidationError as exc:
            logger.warning(
                "route_unassessable",
                route_id=route.resolved_id,
                index=route.index,
                error_code=exc.error_code.value,
                error=exc.message,
            )
            return RouteAssessment(
                route_id=route.resolved_id,
                original_index=route.index,
                status=AssessmentStatus.UNASSESSABLE,
                distance_m=route.distance_m,
                duration_s=route.duration_s,
                error=UNASSESSABLE_MESSAGE,
            )

    async def analyze_batch(self, routes: Sequence[Route]) -> BatchAnalysis:
        """
        Score every candidate concurrently, then pick one.

        A route failing validation is reported as unassessable while the
        rest are still scored. The decision is None only when no route at
        all could be scored.

        Routes without an ``index`` take their position in ``routes``. If
        one chain raises (intelligence failure with fallback disabled) the
        other chains are cancelled before the error propagates.
        """
        if not routes:
            raise NoRoutesProvidedError()

        limiter = asyncio.Semaphore(self.config.max_concurrent_requests)
        tasks = [
            asyncio.create_task(self._assess_or_mark(route.at_position(position), limiter))
            for position, route in enumerate(routes)
        ]
        try:
            assessments = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        scored = [a.to_scored_route() for a in assessments if a.status == AssessmentStatus.SCORED]
        decision = self.comparator.decide(scored) if scored else None

        logger.info(
            "batch_analyzed",
            routes=len(routes),
            scored=len(scored),
            selected_route_id=decision.selected_route_id if decision else None,
        )
        return BatchAnalysis(assessments=tuple(assessments), decision=decision)


@contextlib.asynccontextmanager
async def _acquire(limiter: Optional[asyncio.Semaphore]) -> AsyncIterator[None]:
    if limiter is None:
        yield
        return
    async with limiter:
        yield
