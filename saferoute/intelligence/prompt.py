"""Prompt construction for the safety-intelligence query."""

from collections import Counter
from typing import Sequence

from saferoute.schemas import RiskSignal, Segment, TravelTime

SYSTEM_PROMPT = """You are a public-safety intelligence analyst for a ride-safety navigation app.
You provide factual, aggregated safety context for a driving route. You never score routes and never suggest alternatives."""

INTELLIGENCE_PROMPT_TEMPLATE = """Provide factual, aggregated safety intelligence for a route based on its structural analysis.

CRITICAL RULES:
1. Use ONLY publicly available, aggregated sources:
   - city and national crime-trend dashboards
   - police public advisories
   - municipal infrastructure reports (street lighting, road conditions)
   - traffic-accident statistics from transport authorities
   - recent news reports on public safety
2. NEVER fabricate specific incident counts or statistics.
3. NEVER reference individual case records or personal data.
4. If uncertain, set "confidence" to "low".
5. Describe CONTEXT, not scores.

INPUT DATA:
City: {city}
Travel Time: {travel_time}
Route Segments: {segment_count} segments
Segment Types: {segment_types}
Detected Signals: {signals}

TASK:
Describe for {city} during {travel_time} hours:
- general safety context
- known infrastructure problems (lighting, road quality)
- traffic patterns and accident-prone characteristics
- environmental factors (isolated areas, visibility)
- recent public safety advisories

OUTPUT FORMAT (STRICT JSON ONLY):
{{
  "routeSummary": "2-3 sentence overview of the route's safety context",
  "identifiedRiskFactors": [
    {{
      "type": "crime|infrastructure|traffic|environment|social",
      "description": "Specific factual observation with context",
      "confidence": "low|medium|high",
      "sourceCategory": "government|news|municipal|crowdsourced"
    }}
  ],
  "overallContext": "safe|moderate|caution",
  "sourcesUsed": ["general source types referenced"]
}}

RESPOND WITH ONLY THE JSON OBJECT. NO MARKDOWN. NO EXPLANATIONS."""


def summarize_segment_types(segments: Sequence[Segment]) -> str:
    counts = Counter(s.segment_type.value for s in segments)
    return ", ".join(f"{count} {seg_type}" for seg_type, count in counts.items())


def summarize_signals(signals: Sequence[RiskSignal]) -> str:
    if not signals:
        return "None detected"
    return ", ".join(f"{s.signal_type.value} ({s.severity.value})" for s in signals)


def build_prompt(
    city: str,
    travel_time: TravelTime,
    segments: Sequence[Segment],
    signals: Sequence[RiskSignal],
) -> str:
    """Fill the intelligence template with the route's structural summary."""
    return INTELLIGENCE_PROMPT_TEMPLATE.format(
        city=city,
        travel_time=travel_time.value,
        segment_count=len(segments),
        segment_types=summarize_segment_types(segments),
        signals=summarize_signals(signals),
    )
