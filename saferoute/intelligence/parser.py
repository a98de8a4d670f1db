"""
Defensive parsing of the intelligence completion.

The service may return clean JSON, JSON wrapped in a markdown code fence,
or something else entirely. Anything that does not validate against
IntelligenceResponse is rejected as MalformedResponseError.
"""

import json
import re

import structlog
from pydantic import ValidationError

from saferoute.errors import MalformedResponseError
from saferoute.schemas import IntelligenceResponse

logger = structlog.get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", cleaned, count=1), count=1)
    return cleaned.strip()


def parse_intelligence_response(text: str) -> IntelligenceResponse:
    """Parse and validate the completion text."""
    cleaned = strip_code_fence(text)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("intelligence_json_parse_failed", response_preview=text[:200])
        raise MalformedResponseError(f"Response is not valid JSON: {exc.msg}", cause=exc) from exc

    if not isinstance(parsed, dict):
        raise MalformedResponseError("Response JSON is not an object")

    try:
        return IntelligenceResponse.model_validate(parsed)
    except ValidationError as exc:
        logger.warning(
            "intelligence_schema_invalid",
            errors=exc.error_count(),
            response_preview=text[:200],
        )
        raise MalformedResponseError(
            "Response does not match the intelligence schema",
            details={"errors": [e["msg"] for e in exc.errors()][:5]},
            cause=exc,
        ) from exc
