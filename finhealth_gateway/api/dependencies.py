"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from fastapi import Request

from finhealth_gateway.config import settings
from finhealth_gateway.domain.assembler import AnalysisAssembler
from finhealth_gateway.domain.prompts import PromptBuilder
from finhealth_gateway.infrastructure.clients.fallback import (
    ProviderFallbackChain,
    build_providers,
    build_rate_limiters,
)
from finhealth_gateway.infrastructure.clients.llm import ModelInvoker
from finhealth_gateway.infrastructure.resilience.retry import RetryPolicy
from finhealth_gateway.services.health_analysis import FinancialHealthAnalyzer


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache(maxsize=1)
def get_provider_chain() -> ProviderFallbackChain:
    """Process-wide provider chain; its rate limiters must outlive single requests"""
    providers = build_providers(settings)
    return ProviderFallbackChain(
        providers=providers,
        invoker=ModelInvoker(),
        retry_policy=RetryPolicy(settings.llm_max_retries, settings.llm_initial_delay_seconds),
        rate_limiters=build_rate_limiters(providers, settings),
    )


def get_analyzer() -> FinancialHealthAnalyzer:
    """Provide the financial health analyzer"""
    return FinancialHealthAnalyzer(
        chain=get_provider_chain(),
        prompt_builder=PromptBuilder(settings.prompt_max_chars, settings.prompt_max_transactions),
        assembler=AnalysisAssembler(settings.analysis_min_content_items),
        max_response_chars=settings.llm_max_response_chars,
        max_json_depth=settings.llm_max_json_depth,
    )
