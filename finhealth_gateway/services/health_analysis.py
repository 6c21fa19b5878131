"""Financial health analysis entry point: AI first, offline when the AI path fails"""

import logging
from typing import Protocol

from finhealth_gateway.domain.assembler import AnalysisAssembler
from finhealth_gateway.domain.exceptions import (
    AllProvidersExhausted,
    IncompleteAnalysis,
    UnparseableResponse,
)
from finhealth_gateway.domain.models import AnalysisResult, FinancialSnapshot
from finhealth_gateway.domain.prompts import PromptBuilder
from finhealth_gateway.domain.sanitizer import MAX_JSON_DEPTH, MAX_RESPONSE_CHARS, Unparseable, parse_model_json
from finhealth_gateway.domain.scoring import compute_offline_analysis
from finhealth_gateway.infrastructure.clients.fallback import ModelReply
from finhealth_gateway.infrastructure.observability.metrics import analysis_fallback_counter, record_analysis

logger = logging.getLogger(__name__)

RAW_LOG_CHARS = 500


class ModelChain(Protocol):
    async def analyze(self, prompt: str) -> ModelReply: ...


class FinancialHealthAnalyzer:
    """
    Produces an AnalysisResult for every well-typed snapshot.

    Flow:
    1. Build the prompt from the snapshot
    2. Ask the provider chain (primary -> local -> backup)
    3. Extract and repair the JSON object from the reply
    4. Merge narrative with locally computed metrics
    Any AI-path failure yields the offline analysis instead of an error.
    """

    def __init__(
        self,
        chain: ModelChain,
        prompt_builder: PromptBuilder | None = None,
        assembler: AnalysisAssembler | None = None,
        max_response_chars: int = MAX_RESPONSE_CHARS,
        max_json_depth: int = MAX_JSON_DEPTH,
    ):
        self.chain = chain
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.assembler = assembler or AnalysisAssembler()
        self.max_response_chars = max_response_chars
        self.max_json_depth = max_json_depth

    async def analyze(self, snapshot: FinancialSnapshot) -> AnalysisResult:
        if not snapshot.transactions:
            logger.info("No transactions recorded, using offline analysis")
            return self._offline(snapshot, reason="no_transactions")

        try:
            prompt = self.prompt_builder.build(snapshot)
            reply = await self.chain.analyze(prompt)

            parsed = parse_model_json(reply.text, self.max_response_chars, self.max_json_depth)
            if isinstance(parsed, Unparseable):
                logger.warning(
                    f"Unparseable response from {reply.provider}: {parsed.reason}",
                    extra={"provider": reply.provider, "raw_response": parsed.raw[:RAW_LOG_CHARS]},
                )

            result = self.assembler.assemble(parsed, snapshot)
            result.provider = reply.provider

        except AllProvidersExhausted as e:
            logger.error(f"AI analysis unavailable: {e}")
            return self._offline(snapshot, reason="providers_exhausted")

        except UnparseableResponse as e:
            logger.error(f"AI analysis discarded: {e}")
            return self._offline(snapshot, reason="unparseable")

        except IncompleteAnalysis as e:
            logger.warning(f"AI analysis discarded: {e}")
            return self._offline(snapshot, reason="incomplete")

        record_analysis(result.source, result.health_score)
        return result

    def _offline(self, snapshot: FinancialSnapshot, reason: str) -> AnalysisResult:
        analysis_fallback_counter.labels(reason=reason).inc()
        result = compute_offline_analysis(snapshot)
        record_analysis(result.source, result.health_score)
        return result
