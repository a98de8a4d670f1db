"""
Intelligence Client — HTTP gateway to the text-generation service.

One non-streaming POST per call, bearer-authenticated, bounded by the
configured timeout. Failures are raised as typed IntelligenceError
subclasses; deciding what to do about them is the enricher's job.

Completion text is extracted from the common response envelopes:
- messages API:          {"content": [{"type": "text", "text": ...}]}
- chat completions API:  {"choices": [{"message": {"content": ...}}]}
- generateContent API:   {"candidates": [{"content": {"parts": [{"text": ...}]}}]}
"""

from typing import Any, Optional

import httpx
import structlog

from saferoute.config import PipelineConfig
from saferoute.errors import MissingCredentialsError, NetworkFailureError, ServiceError

logger = structlog.get_logger(__name__)

# Required by the messages API at this host only
ANTHROPIC_HOST = "api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"


def extract_completion_text(data: Any) -> str:
    """Pull the completion text out of a service response body."""
    if not isinstance(data, dict):
        raise ServiceError("Response body is not a JSON object")

    content = data.get("content")
    if isinstance(content, list):
        text_parts = [
            block.get("text", "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if text_parts:
            return "".join(text_parts)

    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]

    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates:
        try:
            return candidates[0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            pass

    raise ServiceError("Response body has no completion text")


class IntelligenceClient:
    """Gateway for the text-generation service — non-streaming only."""

    def __init__(
        self,
        config: PipelineConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not config.credential:
            raise MissingCredentialsError(
                "No credential configured for the intelligence service",
                details={"service_endpoint": config.service_endpoint},
            )
        self.config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {
            "authorization": f"Bearer {self.config.credential}",
            "content-type": "application/json",
        }
        if httpx.URL(self.config.service_endpoint).host == ANTHROPIC_HOST:
            headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

    def _payload(self, system: str, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "max_tokens": self.config.max_output_tokens,
            "temperature": 0.3,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def generate(self, system: str, prompt: str) -> str:
        """
        Send one prompt and return the completion text.

        Raises:
            NetworkFailureError: timeout or transport failure
            ServiceError: non-2xx status or unusable response envelope
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.config.service_endpoint,
                    json=self._payload(system, prompt),
                    headers=self._headers(),
                )
        except httpx.TimeoutException as exc:
            logger.error("intelligence_timeout", model=self.config.model)
            raise NetworkFailureError("Intelligence service timed out", cause=exc) from exc
        except httpx.HTTPError as exc:
            logger.error("intelligence_transport_error", model=self.config.model, error=str(exc))
            raise NetworkFailureError(f"Intelligence service unreachable: {exc}", cause=exc) from exc

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(
                "intelligence_api_error",
                status=response.status_code,
                body=response.text[:500],
            )
            raise ServiceError(
                f"Intelligence service returned HTTP {response.status_code}",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError("Response body is not valid JSON", status=response.status_code) from exc

        text = extract_completion_text(data)
        usage = data.get("usage", {}) if isinstance(data.get("usage"), dict) else {}
        logger.info(
            "intelligence_call_completed",
            model=self.config.model,
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )
        return text
