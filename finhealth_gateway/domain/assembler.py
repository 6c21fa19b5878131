"""Merge parsed model output with locally computed metrics.

The model supplies narrative (summary, insights, recommendations, risks);
every financial figure is recomputed from the snapshot so a hallucinated
number can never reach the user.
"""

import math
from typing import Any, Dict, List, Optional

from finhealth_gateway.domain.exceptions import IncompleteAnalysis, UnparseableResponse
from finhealth_gateway.domain.financial_metrics import calculate_metrics
from finhealth_gateway.domain.models import AnalysisResult, FinancialSnapshot, Insight, Recommendation, RiskAssessment
from finhealth_gateway.domain.sanitizer import ParseResult, Unparseable
from finhealth_gateway.domain.scoring import calculate_health_score

INSIGHT_TYPES = {"strength", "weakness", "opportunity", "threat", "neutral"}
TRENDS = {"improving", "stable", "declining"}
PRIORITIES = {"high", "medium", "low"}

DEFAULT_SUMMARY = "Your financial analysis is ready."
DEFAULT_INSIGHT_TITLE = "Financial insight"
DEFAULT_INSIGHT_IMPACT = "Impact not assessed for this insight."
DEFAULT_RECOMMENDATION_TITLE = "Recommendation"
DEFAULT_RECOMMENDATION_IMPACT = "Impact not estimated for this recommendation."


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _choice(value: Any, allowed: set, default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _string_list(value: Any) -> List[str]:
    return [item.strip() for item in _as_list(value) if isinstance(item, str) and item.strip()]


def normalize_insight(item: Any) -> Optional[Insight]:
    if isinstance(item, str):
        item = {"description": item}
    if not isinstance(item, dict):
        return None
    title = _text(item.get("title"), "")
    description = _text(item.get("description") or item.get("text"), "")
    if not title and not description:
        return None
    return Insight(
        type=_choice(item.get("type"), INSIGHT_TYPES, "neutral"),
        title=title or DEFAULT_INSIGHT_TITLE,
        description=description,
        impact=_text(item.get("impact"), DEFAULT_INSIGHT_IMPACT),
        trend=_choice(item.get("trend"), TRENDS, "stable"),
    )


def normalize_recommendation(item: Any) -> Optional[Recommendation]:
    if isinstance(item, str):
        item = {"description": item}
    if not isinstance(item, dict):
        return None
    title = _text(item.get("title"), "")
    description = _text(item.get("description"), "")
    if not title and not description:
        return None
    return Recommendation(
        title=title or DEFAULT_RECOMMENDATION_TITLE,
        description=description,
        priority=_choice(item.get("priority"), PRIORITIES, "medium"),
        category=_text(item.get("category"), "general"),
        impact=_text(item.get("impact") or item.get("expectedImpact"), DEFAULT_RECOMMENDATION_IMPACT),
    )


def normalize_risk_assessment(value: Any) -> RiskAssessment:
    if not isinstance(value, dict):
        return RiskAssessment()
    return RiskAssessment(
        short_term=_string_list(value.get("shortTerm")),
        long_term=_string_list(value.get("longTerm")),
        mitigation_strategies=_string_list(value.get("mitigationStrategies")),
    )


def _model_score(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, int):
        return max(0, min(100, value))
    if not math.isfinite(value):
        return None
    return max(0, min(100, round(value)))


class AnalysisAssembler:
    """Builds a complete AnalysisResult from parsed model output"""

    def __init__(self, min_content_items: int = 1):
        self.min_content_items = min_content_items

    def assemble(self, parsed: ParseResult, snapshot: FinancialSnapshot) -> AnalysisResult:
        """
        Raises:
            UnparseableResponse: model text held no usable JSON object
            IncompleteAnalysis: fewer insights + recommendations than the threshold
        """
        if isinstance(parsed, Unparseable):
            raise UnparseableResponse(parsed.reason, parsed.raw)

        data: Dict[str, Any] = parsed
        insights = [i for i in map(normalize_insight, _as_list(data.get("insights"))) if i is not None]
        recommendations = [
            r for r in map(normalize_recommendation, _as_list(data.get("recommendations"))) if r is not None
        ]
        if len(insights) + len(recommendations) < self.min_content_items:
            raise IncompleteAnalysis(
                f"Model returned {len(insights)} insights and {len(recommendations)} recommendations"
            )

        metrics = calculate_metrics(snapshot)
        score = _model_score(data.get("healthScore"))
        if score is None:
            score = calculate_health_score(metrics)

        return AnalysisResult(
            health_score=score,
            summary=_text(data.get("summary"), DEFAULT_SUMMARY),
            metrics=metrics,
            insights=insights,
            recommendations=recommendations,
            risk_assessment=normalize_risk_assessment(data.get("riskAssessment")),
            source="ai",
        )
