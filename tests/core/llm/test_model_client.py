"""Tests for GeminiClient using httpx.MockTransport."""

import json

import httpx
import pytest
from pydantic import SecretStr

from novachat.configs.system import LLMConfig
from novachat.core.budget import build_envelope
from novachat.core.errors import UpstreamError
from novachat.core.llm import GeminiClient, extract_reply_text

FALLBACK = "I'm sorry, I couldn't generate a response."


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _make_client(handler) -> GeminiClient:
    config = LLMConfig(api_key=SecretStr("test-key"), model_name="gemini-test")
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiClient(config, http_client=http)


def _envelope():
    return build_envelope("Be nice.", [], "hello")


# =========================================================================
# extract_reply_text
# =========================================================================


class TestExtractReplyText:
    def test_first_candidate_first_part(self):
        payload = _reply("hi")
        payload["candidates"].append(_reply("second")["candidates"][0])
        assert extract_reply_text(payload) == "hi"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"candidates": []},
            {"candidates": [{}]},
            {"candidates": [{"content": {"parts": []}}]},
            {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
            {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
            {"candidates": "nope"},
            {"promptFeedback": {"blockReason": "SAFETY"}},
        ],
    )
    def test_missing_text(self, payload):
        assert extract_reply_text(payload) is None


# =========================================================================
# generate
# =========================================================================


class TestGenerate:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_reply("Hello!"))

        client = _make_client(handler)
        reply = await client.generate(_envelope(), 3500, fallback_reply=FALLBACK)

        assert reply == "Hello!"
        assert seen["url"].path.endswith("/models/gemini-test:generateContent")
        assert seen["url"].params["key"] == "test-key"
        body = seen["body"]
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["contents"][-1]["parts"] == [{"text": "hello"}]
        assert body["generationConfig"] == {
            "maxOutputTokens": 3500,
            "temperature": 0.7,
            "topP": 0.95,
            "topK": 40,
        }
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fallback_when_no_text(self):
        client = _make_client(lambda r: httpx.Response(200, json={"candidates": []}))
        assert await client.generate(_envelope(), 100, fallback_reply=FALLBACK) == FALLBACK

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self):
        client = _make_client(lambda r: httpx.Response(429, json={"error": "quota"}))
        with pytest.raises(UpstreamError) as exc_info:
            await client.generate(_envelope(), 100)
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_non_json_raises(self):
        client = _make_client(lambda r: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(UpstreamError, match="not JSON"):
            await client.generate(_envelope(), 100)

    @pytest.mark.asyncio
    async def test_json_array_raises(self):
        client = _make_client(lambda r: httpx.Response(200, json=[1, 2]))
        with pytest.raises(UpstreamError, match="not a JSON object"):
            await client.generate(_envelope(), 100)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _make_client(handler)
        with pytest.raises(UpstreamError, match="failed"):
            await client.generate(_envelope(), 100)

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = _make_client(handler)
        with pytest.raises(UpstreamError, match="timed out"):
            await client.generate(_envelope(), 100)
