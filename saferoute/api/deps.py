"""
FastAPI dependencies for the SafeRoute API.

The pipeline is built once at startup (see saferoute.main) and stored on
app.state; tests override get_pipeline with one backed by a mock transport.
"""

from fastapi import Request

from saferoute.decisions.comparator import RouteComparator
from saferoute.pipeline import RoutePipeline
from saferoute.scoring.scorer import SafetyScorer

_scorer = SafetyScorer()
_comparator = RouteComparator()


def get_pipeline(request: Request) -> RoutePipeline:
    return request.app.state.pipeline


def get_scorer() -> SafetyScorer:
    return _scorer


def get_comparator() -> RouteComparator:
    return _comparator


__all__ = ["get_pipeline", "get_scorer", "get_comparator"]
