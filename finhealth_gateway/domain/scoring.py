"""Health scoring and offline analysis - the network-free fallback"""

import logging

from finhealth_gateway.domain.financial_metrics import calculate_metrics
from finhealth_gateway.domain.models import (
    AnalysisResult,
    FinancialMetrics,
    FinancialSnapshot,
    Insight,
    Recommendation,
    RiskAssessment,
)

logger = logging.getLogger(__name__)

BASE_SCORE = 50
TERM_CAP = 50  # no single factor may move the score past [0, 100] on its own

SAVINGS_RATE_TARGET = 20.0  # percent
SAVINGS_WEIGHT = 15.0
EXPENSE_RATIO_MAX = 80.0  # percent
EXPENSE_WEIGHT = 15.0
EMERGENCY_FUND_TARGET = 6.0  # months
EMERGENCY_WEIGHT = 20.0


def _cap(term: float) -> float:
    return max(-TERM_CAP, min(TERM_CAP, term))


def calculate_health_score(metrics: FinancialMetrics) -> int:
    """
    Score financial health from 0 (critical) to 100 (excellent).

    Starts at 50 and adds three independent terms:
    - Savings rate: +15 at or above 20%, proportional below (negative when overspending)
    - Expense ratio: +15 at or below 80% of income, -15 per 20 points above
    - Emergency fund: +20 at 6+ months of expenses covered, proportional below
    """
    if metrics.savings_rate >= SAVINGS_RATE_TARGET:
        savings_term = SAVINGS_WEIGHT
    else:
        savings_term = metrics.savings_rate / SAVINGS_RATE_TARGET * SAVINGS_WEIGHT

    if metrics.expense_ratio <= EXPENSE_RATIO_MAX:
        expense_term = EXPENSE_WEIGHT
    else:
        expense_term = -((metrics.expense_ratio - EXPENSE_RATIO_MAX) / 20) * EXPENSE_WEIGHT

    if metrics.emergency_fund_months >= EMERGENCY_FUND_TARGET:
        emergency_term = EMERGENCY_WEIGHT
    else:
        emergency_term = metrics.emergency_fund_months / EMERGENCY_FUND_TARGET * EMERGENCY_WEIGHT

    score = BASE_SCORE + _cap(savings_term) + _cap(expense_term) + _cap(emergency_term)
    return max(0, min(100, round(score)))


def _empty_metrics() -> FinancialMetrics:
    return FinancialMetrics(
        analysis_month=None,
        total_balance=0.0,
        monthly_income=0.0,
        monthly_expenses=0.0,
        savings_rate=0.0,
        expense_ratio=0.0,
        emergency_fund_months=0.0,
        debt_to_income=0.0,
        investment_allocation=0.0,
    )


def _error_result(error: Exception) -> AnalysisResult:
    return AnalysisResult(
        health_score=0,
        summary="Financial analysis could not be completed. Please try again later.",
        metrics=_empty_metrics(),
        insights=[
            Insight(
                type="weakness",
                title="Analysis error",
                description=f"An error occurred while analyzing your data: {type(error).__name__}.",
                impact="Your financial health could not be assessed at this time.",
                trend="stable",
            )
        ],
        recommendations=[],
        risk_assessment=RiskAssessment(),
        source="offline",
    )


def compute_offline_analysis(snapshot: FinancialSnapshot) -> AnalysisResult:
    """
    Build a complete analysis without any network call.

    Intentionally minimal: one insight stating that AI analysis is unavailable
    and one recommendation to retry, next to locally computed numbers. Never
    raises; unexpected failures yield an all-zero result describing the error.
    """
    try:
        metrics = calculate_metrics(snapshot)
        score = calculate_health_score(metrics)

        summary = (
            f"AI analysis is currently unavailable. Based on your recorded data, your financial "
            f"health score is {score}/100 with a savings rate of {metrics.savings_rate:.1f}% and "
            f"{metrics.emergency_fund_months:.1f} months of expenses covered by your balances."
        )
        insight = Insight(
            type="weakness",
            title="AI analysis unavailable",
            description=(
                "Detailed AI insights could not be generated, so this result was computed "
                "locally from your balances and this month's income and expenses."
            ),
            impact="Insights are limited to basic metrics until AI analysis is available again.",
            trend="stable",
        )
        recommendation = Recommendation(
            title="Retry AI analysis later",
            description="Refresh your financial health analysis in a few minutes to get detailed AI insights.",
            priority="medium",
            category="system",
            impact="Restores personalized insights and recommendations.",
        )

        return AnalysisResult(
            health_score=score,
            summary=summary,
            metrics=metrics,
            insights=[insight],
            recommendations=[recommendation],
            risk_assessment=RiskAssessment(),
            source="offline",
        )

    except Exception as e:
        logger.exception("Offline analysis failed", extra={"error": str(e)})
        return _error_result(e)
