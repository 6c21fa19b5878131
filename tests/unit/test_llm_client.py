"""Unit tests for the model provider HTTP client"""

import json
import httpx
import pytest
from finhealth_gateway.domain.exceptions import (
    ContentBlocked,
    HttpError,
    MalformedResponse,
    ModelTimeout,
    NetworkError,
)
from finhealth_gateway.infrastructure.clients.llm import (
    GEMINI,
    OLLAMA,
    BlockedEnvelope,
    MalformedEnvelope,
    ModelInvoker,
    ProviderConfig,
    TextEnvelope,
    build_request,
    decode_gemini_envelope,
    decode_ollama_envelope,
)


@pytest.fixture
def gemini() -> ProviderConfig:
    return ProviderConfig(
        name="gemini-primary",
        kind=GEMINI,
        base_url="https://llm.test/v1beta/",
        model="gemini-1.5-flash",
        timeout_seconds=5,
        api_key="secret",
        requires_api_key=True,
    )


@pytest.fixture
def ollama() -> ProviderConfig:
    return ProviderConfig(
        name="ollama-local",
        kind=OLLAMA,
        base_url="http://ollama.test",
        model="llama3:latest",
        timeout_seconds=5,
    )


def _gemini_body(text: str, finish_reason: str = "STOP") -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": finish_reason}]}


def _invoker(handler) -> ModelInvoker:
    return ModelInvoker(transport=httpx.MockTransport(handler))


# --- Envelope decoding -------------------------------------------------------


def test_decode_gemini_text():
    assert decode_gemini_envelope(_gemini_body('{"a": 1}')) == TextEnvelope('{"a": 1}')


def test_decode_gemini_joins_parts():
    data = {"candidates": [{"content": {"parts": [{"text": '{"a":'}, {"text": " 1}"}]}}]}
    assert decode_gemini_envelope(data) == TextEnvelope('{"a": 1}')


def test_decode_gemini_prompt_feedback_wins():
    data = {"promptFeedback": {"blockReason": "SAFETY"}, **_gemini_body("ignored")}
    assert decode_gemini_envelope(data) == BlockedEnvelope("SAFETY")


def test_decode_gemini_safety_finish_reason():
    data = {"candidates": [{"finishReason": "SAFETY"}]}
    assert decode_gemini_envelope(data) == BlockedEnvelope("SAFETY")


@pytest.mark.parametrize(
    "data",
    [[], {}, {"candidates": []}, {"candidates": ["x"]}, _gemini_body("   "), _gemini_body("", "MAX_TOKENS")],
)
def test_decode_gemini_malformed(data):
    assert isinstance(decode_gemini_envelope(data), MalformedEnvelope)


def test_decode_ollama():
    assert decode_ollama_envelope({"response": "hello", "done": True}) == TextEnvelope("hello")
    assert decode_ollama_envelope({"error": "model not found"}) == MalformedEnvelope("model not found")
    assert isinstance(decode_ollama_envelope({"response": ""}), MalformedEnvelope)
    assert isinstance(decode_ollama_envelope("text"), MalformedEnvelope)


# --- Request shape -----------------------------------------------------------


def test_build_gemini_request(gemini: ProviderConfig):
    url, headers, body = build_request(gemini, "prompt text")

    assert url == "https://llm.test/v1beta/models/gemini-1.5-flash:generateContent"
    assert headers == {"x-goog-api-key": "secret"}
    assert body["contents"] == [{"parts": [{"text": "prompt text"}]}]
    assert body["generationConfig"]["temperature"] == 0.3
    assert body["generationConfig"]["topK"] == 40
    assert body["generationConfig"]["maxOutputTokens"] == 4096
    assert len(body["safetySettings"]) == 4


def test_build_ollama_request(ollama: ProviderConfig):
    url, headers, body = build_request(ollama, "prompt text")

    assert url == "http://ollama.test/api/generate"
    assert headers == {}
    assert body["model"] == "llama3:latest"
    assert body["stream"] is False
    assert body["options"]["top_p"] == 0.9


def test_build_request_unknown_kind(gemini: ProviderConfig):
    gemini.kind = "openai"
    with pytest.raises(ValueError):
        build_request(gemini, "prompt")


def test_is_configured(gemini: ProviderConfig, ollama: ProviderConfig):
    assert gemini.is_configured
    gemini.api_key = None
    assert not gemini.is_configured
    assert ollama.is_configured
    ollama.enabled = False
    assert not ollama.is_configured


# --- Invocation --------------------------------------------------------------


async def test_invoke_gemini_success(gemini: ProviderConfig):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_gemini_body('{"healthScore": 70}'))

    text = await _invoker(handler).invoke(gemini, "analyze this")

    assert text == '{"healthScore": 70}'
    assert seen["url"].endswith("/models/gemini-1.5-flash:generateContent")
    assert seen["key"] == "secret"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "analyze this"


async def test_invoke_ollama_success(ollama: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"response": "{}", "done": True})

    assert await _invoker(handler).invoke(ollama, "p") == "{}"


@pytest.mark.parametrize("status,retryable", [(503, True), (500, True), (429, True), (400, False), (403, False)])
async def test_invoke_http_error(gemini: ProviderConfig, status, retryable):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="upstream says no")

    with pytest.raises(HttpError) as exc_info:
        await _invoker(handler).invoke(gemini, "p")

    assert exc_info.value.status == status
    assert exc_info.value.body == "upstream says no"
    assert exc_info.value.retryable is retryable


async def test_invoke_timeout(gemini: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ModelTimeout) as exc_info:
        await _invoker(handler).invoke(gemini, "p")
    assert exc_info.value.retryable is True


async def test_invoke_network_error(gemini: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError) as exc_info:
        await _invoker(handler).invoke(gemini, "p")
    assert exc_info.value.retryable is True


async def test_invoke_blocked(gemini: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    with pytest.raises(ContentBlocked) as exc_info:
        await _invoker(handler).invoke(gemini, "p")
    assert exc_info.value.reason == "SAFETY"
    assert exc_info.value.retryable is False


async def test_invoke_non_json_body(gemini: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(MalformedResponse):
        await _invoker(handler).invoke(gemini, "p")


async def test_invoke_unexpected_envelope(ollama: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"done": True})

    with pytest.raises(MalformedResponse):
        await _invoker(handler).invoke(ollama, "p")


async def test_invoke_deeply_nested_body(gemini: ProviderConfig):
    def handler(request: httpx.Request) -> httpx.Response:
        body = '{"candidates":' + "[" * 100_000 + "]" * 100_000 + "}"
        return httpx.Response(200, content=body.encode(), headers={"content-type": "application/json"})

    with pytest.raises(MalformedResponse):
        await _invoker(handler).invoke(gemini, "p")
