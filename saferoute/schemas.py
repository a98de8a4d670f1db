"""
Shared schemas for every pipeline stage.

One definition per record. Stages that need a narrower view take a
projection of these models rather than redefining them.

Flow:
    Route → RouteAnalysis (Segment, RiskSignal)
          → IntelligenceReport (IntelligenceFlags)
          → ScoringResult
          → DecisionResult (RouteComparison per candidate)
"""

import hashlib
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Enums ──────────────────────────────────────────────────────────────


class TravelTime(StrEnum):
    DAY = "day"
    NIGHT = "night"


class SegmentType(StrEnum):
    HIGHWAY = "highway"
    MAIN_ROAD = "main_road"
    RESIDENTIAL = "residential"
    UNKNOWN = "unknown"


class SegmentTag(StrEnum):
    LONG = "long"
    HIGH_SPEED = "high_speed"
    COMPLEX_ROUTING = "complex_routing"
    STRAIGHT_PATH = "straight_path"


class SignalType(StrEnum):
    ISOLATED_SEGMENT = "isolated_segment"
    HIGH_SPEED_AREA = "high_speed_area"
    COMPLEX_INTERSECTION = "complex_intersection"
    LOW_VISIBILITY_ZONE = "low_visibility_zone"
    NIGHT_TRAVEL = "night_travel"
    LONG_DURATION = "long_duration"
    URBAN_DENSE_AREA = "urban_dense_area"
    UNFAMILIAR_AREA = "unfamiliar_area"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SafetyCategory(StrEnum):
    SAFE = "Safe"
    MODERATE = "Moderate"
    RISKY = "Risky"


class IntelligenceSource(StrEnum):
    SERVICE = "service"
    FALLBACK = "fallback"


class FactorConfidence(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SourceCategory(StrEnum):
    GOVERNMENT = "government"
    NEWS = "news"
    MUNICIPAL = "municipal"
    CROWDSOURCED = "crowdsourced"


class OverallContext(StrEnum):
    SAFE = "safe"
    MODERATE = "moderate"
    CAUTION = "caution"


# ── Route input ────────────────────────────────────────────────────────


class Coordinate(_Frozen):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class Route(_Frozen):
    """A candidate route as resolved by the directions provider."""

    origin: Coordinate
    destination: Coordinate
    polyline: str
    distance_m: float = Field(ge=0)
    duration_s: float = Field(ge=0)
    travel_time: TravelTime
    city: str
    index: Optional[int] = Field(default=None, ge=0)
    route_id: Optional[str] = None

    @field_validator("city")
    @classmethod
    def _city_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("city is required")
        return value.strip()

    @property
    def resolved_id(self) -> str:
        """Explicit id, or a stable one derived from the route geometry."""
        if self.route_id:
            return self.route_id
        key = (
            f"{self.origin.lat:.5f},{self.origin.lng:.5f}|"
            f"{self.destination.lat:.5f},{self.destination.lng:.5f}|"
            f"{self.index if self.index is not None else 0}|{self.polyline}"
        )
        return f"route_{hashlib.sha1(key.encode()).hexdigest()[:12]}"

    def at_position(self, position: int) -> "Route":
        """This route with ``index`` filled from its place in the batch, if unset."""
        if self.index is not None:
            return self
        return self.model_copy(update={"index": position})


# ── Structural analysis ────────────────────────────────────────────────


class Segment(_Frozen):
    """A bounded sub-span of the decoded polyline."""

    id: str
    start: Coordinate
    end: Coordinate
    start_index: int
    end_index: int
    point_count: int
    distance_m: float
    duration_s: float
    speed_kmh: float
    segment_type: SegmentType
    tags: tuple[SegmentTag, ...] = ()

    def has_tag(self, tag: SegmentTag) -> bool:
        return tag in self.tags


class RiskSignal(_Frozen):
    signal_type: SignalType
    severity: Severity
    description: str
    affected_segments: tuple[str, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)


class RouteAnalysis(_Frozen):
    """Output of the segmenter and signal extractor for one route."""

    route_id: str
    segments: tuple[Segment, ...]
    signals: tuple[RiskSignal, ...]
    total_distance_m: float
    total_duration_s: float
    segment_count: int
    point_count: int
    travel_time: TravelTime
    city: str
    decode_complete: bool = True
    analyzed_at: datetime

    def has_signal(self, signal_type: SignalType) -> bool:
        return any(s.signal_type == signal_type for s in self.signals)


# ── Intelligence ───────────────────────────────────────────────────────


class IntelligenceFlags(_Frozen):
    crime_mention: bool = False
    lighting_issue: bool = False
    women_safety_concern: bool = False
    police_advisory: bool = False


class IntelligenceReport(_Frozen):
    flags: IntelligenceFlags
    explanation: tuple[str, ...] = ()
    source: IntelligenceSource
    overall_context: Optional[OverallContext] = None
    generated_at: datetime


class _RiskFactorBase(_Frozen):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str = Field(min_length=1)
    confidence: FactorConfidence
    source_category: SourceCategory = Field(alias="sourceCategory")


class CrimeFactor(_RiskFactorBase):
    type: Literal["crime"]


class InfrastructureFactor(_RiskFactorBase):
    type: Literal["infrastructure"]


class TrafficFactor(_RiskFactorBase):
    type: Literal["traffic"]


class EnvironmentFactor(_RiskFactorBase):
    type: Literal["environment"]


class SocialFactor(_RiskFactorBase):
    type: Literal["social"]


RiskFactor = Annotated[
    Union[CrimeFactor, InfrastructureFactor, TrafficFactor, EnvironmentFactor, SocialFactor],
    Field(discriminator="type"),
]


class IntelligenceResponse(_Frozen):
    """The JSON object the text-generation service must return."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    route_summary: str = Field(alias="routeSummary", min_length=1)
    identified_risk_factors: tuple[RiskFactor, ...] = Field(alias="identifiedRiskFactors")
    overall_context: OverallContext = Field(alias="overallContext")
    sources_used: tuple[str, ...] = Field(alias="sourcesUsed")


# ── Scoring ────────────────────────────────────────────────────────────


class ScoreAdjustment(_Frozen):
    """One triggered penalty or bonus, in evaluation order."""

    cause: str
    points: int
    reason: str


class ScoringMetadata(_Frozen):
    scored_at: datetime
    raw_score: int
    total_penalty: int
    total_bonus: int
    breakdown: tuple[ScoreAdjustment, ...] = ()


class ScoringResult(_Frozen):
    route_id: str
    safety_score: int = Field(ge=0, le=100)
    category: SafetyCategory
    reasons: tuple[str, ...] = ()
    metadata: ScoringMetadata


# ── Decision ───────────────────────────────────────────────────────────


class ScoredRoute(_Frozen):
    """Projection of a scored route used by the comparator."""

    route_id: str
    distance_m: float = Field(ge=0)
    duration_s: float = Field(ge=0)
    safety_score: int = Field(ge=0, le=100)
    category: SafetyCategory
    reasons: tuple[str, ...] = ()
    original_index: int = Field(ge=0)


class RouteComparison(_Frozen):
    route_id: str
    distance_m: float
    duration_s: float
    safety_score: int
    category: SafetyCategory


class DecisionResult(_Frozen):
    selected_route_index: int
    selected_route_id: str
    decision_reason: str
    comparison: tuple[RouteComparison, ...]
    decided_at: datetime


# ── Batch envelope ─────────────────────────────────────────────────────


class AssessmentStatus(StrEnum):
    SCORED = "scored"
    UNASSESSABLE = "unassessable"


class RouteAssessment(_Frozen):
    """Per-route pipeline outcome. Exactly one of scoring/error is set."""

    route_id: str
    original_index: int
    status: AssessmentStatus
    distance_m: float
    duration_s: float
    scoring: Optional[ScoringResult] = None
    intelligence_source: Optional[IntelligenceSource] = None
    error: Optional[str] = None

    def to_scored_route(self) -> ScoredRoute:
        if self.scoring is None:
            raise ValueError(f"Route {self.route_id} has no scoring result")
        return ScoredRoute(
            route_id=self.route_id,
            distance_m=self.distance_m,
            duration_s=self.duration_s,
            safety_score=self.scoring.safety_score,
            category=self.scoring.category,
            reasons=self.scoring.reasons,
            original_index=self.original_index,
        )


class BatchAnalysis(_Frozen):
    assessments: tuple[RouteAssessment, ...]
    decision: Optional[DecisionResult] = None
