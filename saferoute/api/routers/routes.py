"""
Route Safety API Endpoints.

POST /api/v1/routes/analyze   — full pipeline over a batch of candidate routes
POST /api/v1/routes/score     — scoring stage only
POST /api/v1/routes/decide    — decision stage only over already-scored routes

The /api/v1 prefix is Settings.api_prefix, applied in create_app.
"""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ValidationError

from saferoute.api.deps import get_comparator, get_pipeline, get_scorer
from saferoute.decisions.comparator import RouteComparator
from saferoute.errors import NoRoutesProvidedError
from saferoute.pipeline import UNASSESSABLE_MESSAGE, RoutePipeline
from saferoute.schemas import (
    AssessmentStatus,
    DecisionResult,
    IntelligenceFlags,
    RiskSignal,
    Route,
    RouteAssessment,
    ScoredRoute,
    ScoringResult,
    Segment,
    TravelTime,
)
from saferoute.scoring.scorer import SafetyScorer

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


class AnalyzeRoutesRequest(BaseModel):
    # Validated one by one so a malformed route does not sink the batch.
    routes: list[dict[str, Any]]


class AnalyzeRoutesResponse(BaseModel):
    assessments: list[RouteAssessment]
    decision: Optional[DecisionResult] = None
    safest_route_index: Optional[int] = None


class ScoreRouteRequest(BaseModel):
    route_id: str
    travel_time: TravelTime
    segments: list[Segment]
    signals: list[RiskSignal] = Field(default_factory=list)
    flags: IntelligenceFlags = Field(default_factory=IntelligenceFlags)


class DecideRequest(BaseModel):
    routes: list[ScoredRoute]


def _invalid_assessment(position: int, raw: dict[str, Any]) -> RouteAssessment:
    def _number(key: str) -> float:
        value = raw.get(key)
        return float(value) if isinstance(value, (int, float)) and value >= 0 else 0.0

    index = raw.get("index")
    return RouteAssessment(
        route_id=str(raw.get("route_id") or f"route_invalid_{position}"),
        original_index=index if isinstance(index, int) and index >= 0 else position,
        status=AssessmentStatus.UNASSESSABLE,
        distance_m=_number("distance_m"),
        duration_s=_number("duration_s"),
        error=UNASSESSABLE_MESSAGE,
    )


@router.post("/analyze", response_model=AnalyzeRoutesResponse)
async def analyze_routes(
    body: AnalyzeRoutesRequest,
    pipeline: RoutePipeline = Depends(get_pipeline),
):
    """Score every candidate and recommend one. Invalid routes come back unassessable."""
    if not body.routes:
        raise NoRoutesProvidedError()

    slots: list[Optional[RouteAssessment]] = [None] * len(body.routes)
    valid: list[tuple[int, Route]] = []
    for position, raw in enumerate(body.routes):
        try:
            valid.append((position, Route.model_validate(raw).at_position(position)))
        except ValidationError as exc:
            logger.warning("route_rejected", position=position, errors=exc.error_count())
            slots[position] = _invalid_assessment(position, raw)

    decision = None
    if valid:
        batch = await pipeline.analyze_batch([route for _, route in valid])
        for (position, _), assessment in zip(valid, batch.assessments):
            slots[position] = assessment
        decision = batch.decision

    return AnalyzeRoutesResponse(
        assessments=[a for a in slots if a is not None],
        decision=decision,
        safest_route_index=decision.selected_route_index if decision else None,
    )


@router.post("/score", response_model=ScoringResult)
async def score_route(
    body: ScoreRouteRequest,
    scorer: SafetyScorer = Depends(get_scorer),
):
    """Deterministic scoring of one route's signals and flags."""
    return scorer.score(
        route_id=body.route_id,
        travel_time=body.travel_time,
        segments=body.segments,
        signals=body.signals,
        flags=body.flags,
    )


@router.post("/decide", response_model=DecisionResult)
async def decide_route(
    body: DecideRequest,
    comparator: RouteComparator = Depends(get_comparator),
):
    """Pick a recommended route from already-scored candidates."""
    return comparator.decide(body.routes)
