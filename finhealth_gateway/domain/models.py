"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass
class Account:
    """Bank or e-wallet account owned by a user"""

    account_id: str
    name: str
    provider: str
    account_type: str
    balance: Decimal
    currency: str = "PHP"


@dataclass
class Transaction:
    """Recorded income or expense; amount is a non-negative magnitude"""

    transaction_id: str
    description: str
    amount: Decimal
    type: str  # "income" or "expense"
    category: str
    date: date
    account_id: Optional[str] = None


@dataclass
class FinancialSnapshot:
    """Point-in-time bundle of a user's accounts and transactions"""

    accounts: List[Account] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)


@dataclass
class FinancialMetrics:
    """Numbers computed locally from a snapshot, never taken from a model"""

    analysis_month: Optional[str]  # "YYYY-MM" of the latest transaction
    total_balance: float
    monthly_income: float
    monthly_expenses: float
    savings_rate: float
    expense_ratio: float
    emergency_fund_months: float
    debt_to_income: float
    investment_allocation: float


@dataclass
class Insight:
    type: str  # strength | weakness | opportunity | threat | neutral
    title: str
    description: str
    impact: str
    trend: str = "stable"  # improving | stable | declining


@dataclass
class Recommendation:
    title: str
    description: str
    priority: str = "medium"  # high | medium | low
    category: str = "general"
    impact: str = ""


@dataclass
class RiskAssessment:
    short_term: List[str] = field(default_factory=list)
    long_term: List[str] = field(default_factory=list)
    mitigation_strategies: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Output of a financial health analysis"""

    health_score: int
    summary: str
    metrics: FinancialMetrics
    insights: List[Insight] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    risk_assessment: RiskAssessment = field(default_factory=RiskAssessment)
    source: str = "ai"  # "ai" or "offline"
    provider: Optional[str] = None
