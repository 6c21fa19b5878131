"""Model provider HTTP client: one request, typed failures"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Union

import httpx

from finhealth_gateway.domain.exceptions import (
    ContentBlocked,
    HttpError,
    MalformedResponse,
    ModelTimeout,
    NetworkError,
)
from finhealth_gateway.infrastructure.observability.metrics import llm_latency_histogram

GEMINI = "gemini"
OLLAMA = "ollama"

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

BLOCKING_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII", "RECITATION"}


@dataclass
class ProviderConfig:
    """One hosted or local model endpoint"""

    name: str
    kind: str  # "gemini" or "ollama"
    base_url: str
    model: str
    timeout_seconds: float
    api_key: str | None = None
    requires_api_key: bool = False
    enabled: bool = True
    rate_limited: bool = False
    temperature: float = 0.3
    top_p: float = 0.9
    top_k: int = 40
    max_output_tokens: int = 4096

    @property
    def is_configured(self) -> bool:
        return self.enabled and (bool(self.api_key) or not self.requires_api_key)


# --- Response envelopes ------------------------------------------------------


@dataclass
class TextEnvelope:
    text: str


@dataclass
class BlockedEnvelope:
    reason: str


@dataclass
class MalformedEnvelope:
    detail: str


ProviderEnvelope = Union[TextEnvelope, BlockedEnvelope, MalformedEnvelope]


def decode_gemini_envelope(data: Any) -> ProviderEnvelope:
    """Decode a generateContent response; safety feedback is checked first"""
    if not isinstance(data, dict):
        return MalformedEnvelope("response body is not an object")

    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return BlockedEnvelope(str(feedback["blockReason"]))

    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return MalformedEnvelope("no candidates in response")

    candidate = candidates[0]
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    texts = [p["text"] for p in parts or [] if isinstance(p, dict) and isinstance(p.get("text"), str)]
    text = "".join(texts)

    if not text.strip():
        finish_reason = candidate.get("finishReason")
        if finish_reason in BLOCKING_FINISH_REASONS:
            return BlockedEnvelope(str(finish_reason))
        return MalformedEnvelope(f"candidate has no text (finishReason={finish_reason})")
    return TextEnvelope(text)


def decode_ollama_envelope(data: Any) -> ProviderEnvelope:
    """Decode a non-streaming /api/generate response"""
    if not isinstance(data, dict):
        return MalformedEnvelope("response body is not an object")
    text = data.get("response")
    if isinstance(text, str) and text.strip():
        return TextEnvelope(text)
    if data.get("error"):
        return MalformedEnvelope(str(data["error"]))
    return MalformedEnvelope("empty response field")


DECODERS = {
    GEMINI: decode_gemini_envelope,
    OLLAMA: decode_ollama_envelope,
}


def build_request(provider: ProviderConfig, prompt: str) -> tuple[str, Dict[str, str], Dict[str, Any]]:
    """Return (url, headers, json body) for a provider"""
    base = provider.base_url.rstrip("/")
    if provider.kind == GEMINI:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": provider.max_output_tokens,
                "temperature": provider.temperature,
                "topP": provider.top_p,
                "topK": provider.top_k,
                "candidateCount": 1,
            },
            "safetySettings": SAFETY_SETTINGS,
        }
        headers = {"x-goog-api-key": provider.api_key or ""}
        return f"{base}/models/{provider.model}:generateContent", headers, body

    if provider.kind == OLLAMA:
        body = {
            "model": provider.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": provider.temperature,
                "top_p": provider.top_p,
                "top_k": provider.top_k,
                "num_ctx": 4096,
                "num_predict": provider.max_output_tokens,
            },
        }
        return f"{base}/api/generate", {}, body

    raise ValueError(f"Unknown provider kind: {provider.kind}")


class ModelInvoker:
    """Client for model generation endpoints"""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.transport = transport

    async def invoke(self, provider: ProviderConfig, prompt: str) -> str:
        """
        Issue exactly one generation request and return the generated text.

        Raises:
            ModelTimeout: no response within provider.timeout_seconds
            NetworkError: transport-level failure
            HttpError: non-2xx status
            ContentBlocked: provider safety filter triggered
            MalformedResponse: HTTP 200 with an unexpected body
        """
        url, headers, body = build_request(provider, prompt)

        async with httpx.AsyncClient(timeout=provider.timeout_seconds, transport=self.transport) as client:
            started = time.perf_counter()
            try:
                response = await client.post(url, json=body, headers=headers)
            except httpx.TimeoutException as e:
                raise ModelTimeout(f"{provider.name} timed out after {provider.timeout_seconds}s") from e
            except httpx.RequestError as e:
                raise NetworkError(f"{provider.name} request failed: {type(e).__name__}") from e
            finally:
                llm_latency_histogram.labels(provider=provider.name).observe(time.perf_counter() - started)

        if not response.is_success:
            raise HttpError(response.status_code, response.text[:1000])

        try:
            data = response.json()
        except (ValueError, RecursionError) as e:
            raise MalformedResponse(f"{provider.name} returned a non-JSON body") from e

        envelope = DECODERS[provider.kind](data)
        if isinstance(envelope, BlockedEnvelope):
            raise ContentBlocked(envelope.reason)
        if isinstance(envelope, MalformedEnvelope):
            raise MalformedResponse(f"{provider.name}: {envelope.detail}")
        return envelope.text
