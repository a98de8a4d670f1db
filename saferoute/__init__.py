"""
SafeRoute — route safety scoring for ride-safety navigation.

Architecture:
    saferoute/
    ├── schemas.py       # Shared pydantic records for every stage
    ├── errors.py        # Error taxonomy with error codes
    ├── config.py        # Settings (env) and explicit PipelineConfig
    ├── analysis/        # Polyline codec, segmentation, structural signals
    ├── intelligence/    # Text-generation query, parsing, flags, fallback
    ├── scoring/         # Penalty table, thresholds, SafetyScorer
    ├── decisions/       # RouteComparator (recommendation + comparison)
    ├── pipeline.py      # Per-route chain + concurrent batch + decision
    ├── api/             # FastAPI routers (HTTP layer)
    └── middleware/      # Error handling, request context

Data Flow:
    Route → RouteAnalyzer → IntelligenceEnricher → SafetyScorer
          → (join over batch) → RouteComparator → DecisionResult

Module Boundaries:
    - Routes arrive pre-computed from a directions provider
    - The intelligence service supplies context, never scores
    - Scoring and decisions are pure and deterministic
"""

__version__ = "1.0.0"
