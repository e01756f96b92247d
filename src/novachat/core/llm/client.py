"""GeminiClient -- one ``generateContent`` call per chat request.

The client owns a pooled ``httpx.AsyncClient``.  It never retries: a
failed call surfaces as ``UpstreamError`` and the caller decides what
to do.
"""

import logging
import time
from typing import Any

import httpx

from novachat.configs.system import LLMConfig
from novachat.core.budget.models import PromptEnvelope
from novachat.core.errors import UpstreamError
from novachat.core.service.metrics import (
    MODEL_CALL_SECONDS,
    MODEL_EMPTY_REPLIES_TOTAL,
    MODEL_ERRORS_TOTAL,
)
from novachat.infra.telemetry import (
    ATTR_MODEL_NAME,
    ATTR_MODEL_STATUS_CODE,
    SPAN_MODEL_GENERATE,
    tracer,
)

logger = logging.getLogger(__name__)

GENERATE_PATH = "/models/{model}:generateContent"
API_KEY_PARAM = "key"


def extract_reply_text(payload: dict[str, Any]) -> str | None:
    """Return the first candidate's first text part, if any."""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) and text else None


class GeminiClient:
    """Gemini REST client for the ``generateContent`` endpoint."""

    def __init__(
        self,
        config: LLMConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._http = http_client or httpx.AsyncClient(
            timeout=config.timeout.total_seconds()
        )

    @property
    def model_name(self) -> str:
        return self._config.model_name

    def build_request(self, envelope: PromptEnvelope, output_limit: int) -> dict:
        """Return the JSON body for *envelope*."""
        return {
            "contents": envelope.to_contents(),
            "generationConfig": {
                "maxOutputTokens": output_limit,
                "temperature": self._config.temperature,
                "topP": self._config.top_p,
                "topK": self._config.top_k,
            },
        }

    async def generate(
        self,
        envelope: PromptEnvelope,
        output_limit: int,
        fallback_reply: str = "",
    ) -> str:
        """Send *envelope* and return the reply text.

        Args:
            envelope: Prompt segments in submission order.
            output_limit: ``maxOutputTokens`` for the reply.
            fallback_reply: Returned when the response is well-formed but
                carries no candidate text (e.g. blocked by safety filters).

        Raises:
            UpstreamError: on transport failure, timeout, non-2xx status
                or a body that is not a JSON object.
        """
        url = self._config.endpoint.rstrip("/") + GENERATE_PATH.format(
            model=self._config.model_name
        )
        body = self.build_request(envelope, output_limit)
        model = self._config.model_name

        with tracer.start_as_current_span(SPAN_MODEL_GENERATE) as span:
            span.set_attribute(ATTR_MODEL_NAME, model)
            start = time.monotonic()
            try:
                response = await self._http.post(
                    url,
                    params={API_KEY_PARAM: self._config.api_key.get_secret_value()},
                    json=body,
                )
            except httpx.TimeoutException as exc:
                MODEL_ERRORS_TOTAL.labels(model_name=model, reason="timeout").inc()
                raise UpstreamError(f"Model call timed out: {exc}") from exc
            except httpx.HTTPError as exc:
                MODEL_ERRORS_TOTAL.labels(model_name=model, reason="transport").inc()
                raise UpstreamError(f"Model call failed: {exc}") from exc
            finally:
                MODEL_CALL_SECONDS.labels(model_name=model).observe(
                    time.monotonic() - start
                )

            span.set_attribute(ATTR_MODEL_STATUS_CODE, response.status_code)
            if not response.is_success:
                MODEL_ERRORS_TOTAL.labels(model_name=model, reason="status").inc()
                logger.warning(
                    "Model returned HTTP %d: %s",
                    response.status_code,
                    response.text[:500],
                )
                raise UpstreamError(
                    f"Model returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            try:
                payload = response.json()
            except ValueError as exc:
                MODEL_ERRORS_TOTAL.labels(model_name=model, reason="payload").inc()
                raise UpstreamError("Model response is not JSON") from exc
            if not isinstance(payload, dict):
                MODEL_ERRORS_TOTAL.labels(model_name=model, reason="payload").inc()
                raise UpstreamError("Model response is not a JSON object")

        text = extract_reply_text(payload)
        if text is None:
            MODEL_EMPTY_REPLIES_TOTAL.labels(model_name=model).inc()
            logger.warning("Model response carried no text; using fallback reply")
            return fallback_reply
        return text

    async def aclose(self) -> None:
        await self._http.aclose()
