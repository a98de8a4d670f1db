"""
Route Comparator — stage 4 of the pipeline.

Selects one recommended route from a scored batch:
1. Any Safe route      → highest-scoring Safe route
2. Else any Moderate   → highest-scoring Moderate route
3. Else (Risky only)   → least risky route, with an explicit warning

Ties resolve by a stable sort on score (descending): the candidate that
came first in the input wins, so repeated calls always agree.

The comparison table always lists every candidate in input order.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog

from saferoute.errors import NoRoutesProvidedError
from saferoute.schemas import DecisionResult, RouteComparison, SafetyCategory, ScoredRoute

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

SAFE_DETOUR_NOTE_THRESHOLD: float = 0.30
MODERATE_PASSED_OVER_THRESHOLD: float = 0.10
MAX_KEY_CONCERNS: int = 2
WARNING_PREFIX = "WARNING:"


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{round(meters)} m"


def format_duration(seconds: float) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def slower_by(duration_s: float, reference_s: float) -> float:
    """Fraction by which duration_s exceeds reference_s (0 if not slower)."""
    if duration_s <= reference_s:
        return 0.0
    if reference_s <= 0:
        return float("inf")
    return (duration_s - reference_s) / reference_s


class RouteComparator:
    """Compare scored routes and recommend one."""

    def __init__(
        self,
        safe_detour_threshold: float = SAFE_DETOUR_NOTE_THRESHOLD,
        moderate_passed_over_threshold: float = MODERATE_PASSED_OVER_THRESHOLD,
    ):
        self.safe_detour_threshold = safe_detour_threshold
        self.moderate_passed_over_threshold = moderate_passed_over_threshold

    def decide(
        self,
        routes: Sequence[ScoredRoute],
        decided_at: Optional[datetime] = None,
    ) -> DecisionResult:
        if not routes:
            raise NoRoutesProvidedError()

        ranked = sorted(routes, key=lambda r: r.safety_score, reverse=True)
        safe = [r for r in ranked if r.category == SafetyCategory.SAFE]
        moderate = [r for r in ranked if r.category == SafetyCategory.MODERATE]

        if safe:
            selected = safe[0]
            reason = self._safe_reason(selected, routes)
        elif moderate:
            selected = moderate[0]
            reason = self._moderate_reason(selected, moderate)
        else:
            selected = ranked[0]
            reason = self._risky_reason(selected)

        comparison = tuple(
            RouteComparison(
                route_id=r.route_id,
                distance_m=r.distance_m,
                duration_s=r.duration_s,
                safety_score=r.safety_score,
                category=r.category,
            )
            for r in routes
        )

        logger.info(
            "route_decision_made",
            selected_route_id=selected.route_id,
            selected_index=selected.original_index,
            safety_score=selected.safety_score,
            category=selected.category.value,
            candidates=len(routes),
        )

        return DecisionResult(
            selected_route_index=selected.original_index,
            selected_route_id=selected.route_id,
            decision_reason=reason,
            comparison=comparison,
            decided_at=decided_at or datetime.now(timezone.utc),
        )

    # ── Justifications ──────────────────────────────────────────────

    def _safe_reason(self, selected: ScoredRoute, routes: Sequence[ScoredRoute]) -> str:
        reason = (
            f"Recommended the safest route with a safety score of {selected.safety_score}/100. "
            f'This route is categorized as "Safe" and provides the best security for your journey.'
        )
        alternatives = [r for r in routes if r is not selected]
        if alternatives:
            fastest = min(alternatives, key=lambda r: r.duration_s)
            if slower_by(selected.duration_s, fastest.duration_s) > self.safe_detour_threshold:
                reason += (
                    f" Note: this route takes {format_duration(selected.duration_s)} "
                    f"({format_distance(selected.distance_m)}), noticeably longer than the fastest "
                    f"alternative ({format_duration(fastest.duration_s)}), but prioritizes your safety."
                )
        return reason

    def _moderate_reason(self, selected: ScoredRoute, moderate: Sequence[ScoredRoute]) -> str:
        reason = (
            f"Selected the best available route with a safety score of {selected.safety_score}/100. "
            f'No route is firmly safe; this one is categorized as "Moderate" and offers the best '
            f"balance between safety and travel time."
        )
        fastest = min(moderate, key=lambda r: r.duration_s)
        if (
            fastest is not selected
            and slower_by(selected.duration_s, fastest.duration_s) > self.moderate_passed_over_threshold
        ):
            reason += (
                f" A faster route exists ({format_duration(fastest.duration_s)}), but the "
                f"recommended route ({format_duration(selected.duration_s)}) provides better safety."
            )
        return reason

    def _risky_reason(self, selected: ScoredRoute) -> str:
        reason = (
            f"{WARNING_PREFIX} All available routes have elevated safety concerns. "
            f"Selected the least risky option with a safety score of {selected.safety_score}/100. "
            f"Consider a different travel time, route or mode of transport, and exercise extra "
            f"caution if you proceed."
        )
        concerns = list(selected.reasons[:MAX_KEY_CONCERNS])
        if concerns:
            reason += f" Key concerns: {'; '.join(concerns)}."
        return reason
