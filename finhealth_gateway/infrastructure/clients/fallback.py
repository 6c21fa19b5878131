"""Ordered multi-provider fallback for model calls"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Sequence, Tuple

from finhealth_gateway.config import Settings
from finhealth_gateway.domain.exceptions import AllProvidersExhausted, ModelCallError, RateLimitExceeded
from finhealth_gateway.infrastructure.clients.llm import GEMINI, OLLAMA, ModelInvoker, ProviderConfig
from finhealth_gateway.infrastructure.observability.metrics import (
    rate_limit_rejections_counter,
    record_provider_attempt,
)
from finhealth_gateway.infrastructure.resilience.rate_limiter import RateLimiter
from finhealth_gateway.infrastructure.resilience.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class ModelReply:
    provider: str
    text: str


class ProviderFallbackChain:
    """
    Tries providers strictly in order until one returns text.

    Providers without their required configuration are skipped, not attempted.
    Each provider gets its own retry run and its own rate limiter, so one
    provider's throttling never blocks the next.
    """

    def __init__(
        self,
        providers: Sequence[ProviderConfig],
        invoker: ModelInvoker,
        retry_policy: RetryPolicy,
        rate_limiters: Mapping[str, RateLimiter] | None = None,
    ):
        self.providers = list(providers)
        self.invoker = invoker
        self.retry_policy = retry_policy
        self.rate_limiters = dict(rate_limiters or {})

    async def analyze(self, prompt: str) -> ModelReply:
        """
        Raises:
            AllProvidersExhausted: no configured provider produced text
        """
        failures: List[Tuple[str, ModelCallError]] = []

        for provider in self.providers:
            if not provider.is_configured:
                logger.info(f"Skipping unconfigured provider {provider.name}", extra={"provider": provider.name})
                continue

            limiter = self.rate_limiters.get(provider.name)

            async def attempt(provider: ProviderConfig = provider, limiter: RateLimiter | None = limiter) -> str:
                if limiter is not None:
                    limiter.check_and_record()
                try:
                    text = await self.invoker.invoke(provider, prompt)
                except ModelCallError as e:
                    record_provider_attempt(provider.name, type(e).__name__)
                    raise
                record_provider_attempt(provider.name, "success")
                return text

            try:
                text = await self.retry_policy.run(attempt, label=provider.name)

            except RateLimitExceeded as e:
                rate_limit_rejections_counter.labels(provider=provider.name).inc()
                failures.append((provider.name, e))
                logger.warning(
                    f"Provider {provider.name} rate limited, advancing",
                    extra={"provider": provider.name, "retry_after_ms": e.retry_after_ms},
                )
                continue

            except ModelCallError as e:
                failures.append((provider.name, e))
                logger.warning(
                    f"Provider {provider.name} failed, advancing: {e}",
                    extra={"provider": provider.name, "error_type": type(e).__name__},
                )
                continue

            logger.info(f"Provider {provider.name} answered", extra={"provider": provider.name})
            return ModelReply(provider=provider.name, text=text)

        raise AllProvidersExhausted(failures)


def build_providers(settings: Settings) -> List[ProviderConfig]:
    """Primary hosted model, then local model, then backup hosted model"""
    generation = {
        "temperature": settings.llm_temperature,
        "top_p": settings.llm_top_p,
        "top_k": settings.llm_top_k,
        "max_output_tokens": settings.llm_max_output_tokens,
    }
    return [
        ProviderConfig(
            name="gemini-primary",
            kind=GEMINI,
            base_url=settings.gemini_api_base,
            model=settings.gemini_model,
            api_key=settings.gemini_api_key,
            timeout_seconds=settings.gemini_timeout_seconds,
            requires_api_key=True,
            rate_limited=True,
            **generation,
        ),
        ProviderConfig(
            name="ollama-local",
            kind=OLLAMA,
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            timeout_seconds=settings.ollama_timeout_seconds,
            enabled=settings.ollama_enabled,
            **generation,
        ),
        ProviderConfig(
            name="gemini-backup",
            kind=GEMINI,
            base_url=settings.gemini_api_base,
            model=settings.backup_gemini_model,
            api_key=settings.backup_gemini_api_key or settings.gemini_api_key,
            timeout_seconds=settings.backup_gemini_timeout_seconds,
            requires_api_key=True,
            rate_limited=True,
            **generation,
        ),
    ]


def build_rate_limiters(providers: Sequence[ProviderConfig], settings: Settings) -> dict[str, RateLimiter]:
    return {
        p.name: RateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)
        for p in providers
        if p.rate_limited
    }
