"""Pydantic schemas for API request/response validation"""

import datetime as dt
from dataclasses import asdict
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from finhealth_gateway.domain.models import Account, AnalysisResult, FinancialSnapshot, Transaction
from finhealth_gateway.utils.date_utils import parse_iso_date


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ----------------------------------------------------------------


class AccountCreate(CamelModel):
    """Request body for POST /v1/users/{user_id}/accounts"""

    name: str = Field(..., min_length=1, max_length=200)
    provider: str = Field(..., min_length=1, max_length=200, description="Bank or e-wallet name")
    account_type: str = Field(..., min_length=1, max_length=50, description="savings, checking, e-wallet, investment...")
    balance: Decimal = Field(..., ge=0)
    currency: str = Field("PHP", min_length=3, max_length=3)


class TransactionCreate(CamelModel):
    """Request body for POST /v1/users/{user_id}/transactions"""

    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., ge=0, description="Non-negative magnitude; sign follows type")
    type: Literal["income", "expense"]
    category: str = Field("Other", min_length=1, max_length=100)
    date: dt.date = Field(..., description="ISO-8601 date or datetime")
    account_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        if isinstance(value, str):
            try:
                return parse_iso_date(value)
            except ValueError:
                raise ValueError(f"Invalid ISO-8601 date: {value}")
        return value


class SnapshotAccount(AccountCreate):
    id: Optional[str] = None


class SnapshotTransaction(TransactionCreate):
    id: Optional[str] = None


class SnapshotRequest(CamelModel):
    """Request body for POST /v1/analysis"""

    accounts: List[SnapshotAccount] = Field(default_factory=list)
    transactions: List[SnapshotTransaction] = Field(default_factory=list)

    def to_domain(self) -> FinancialSnapshot:
        return FinancialSnapshot(
            accounts=[
                Account(
                    account_id=a.id or f"account-{i}",
                    name=a.name,
                    provider=a.provider,
                    account_type=a.account_type,
                    balance=a.balance,
                    currency=a.currency,
                )
                for i, a in enumerate(self.accounts, start=1)
            ],
            transactions=[
                Transaction(
                    transaction_id=t.id or f"transaction-{i}",
                    description=t.description,
                    amount=t.amount,
                    type=t.type,
                    category=t.category,
                    date=t.date,
                    account_id=t.account_id,
                )
                for i, t in enumerate(self.transactions, start=1)
            ],
        )


# --- Responses ---------------------------------------------------------------


class AccountResponse(CamelModel):
    id: str
    name: str
    provider: str
    account_type: str
    balance: float
    currency: str


class AccountListResponse(CamelModel):
    """Response for GET /v1/users/{user_id}/accounts"""

    user_id: str
    accounts: List[AccountResponse]


class TransactionResponse(CamelModel):
    id: str
    description: str
    amount: float
    type: str
    category: str
    date: dt.date
    account_id: Optional[str] = None


class TransactionListResponse(CamelModel):
    """Response for GET /v1/users/{user_id}/transactions"""

    user_id: str
    transactions: List[TransactionResponse]


class MetricsSchema(CamelModel):
    analysis_month: Optional[str] = None
    total_balance: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    savings_rate: float = 0.0
    expense_ratio: float = 0.0
    emergency_fund_months: float = 0.0
    debt_to_income: float = 0.0
    investment_allocation: float = 0.0


class InsightSchema(CamelModel):
    type: str
    title: str
    description: str
    impact: str
    trend: str


class RecommendationSchema(CamelModel):
    title: str
    description: str
    priority: str
    category: str
    impact: str


class RiskAssessmentSchema(CamelModel):
    short_term: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list)
    mitigation_strategies: List[str] = Field(default_factory=list)


class AnalysisResponse(CamelModel):
    """Financial health analysis; every list defaults to empty"""

    health_score: int = Field(..., ge=0, le=100)
    summary: str
    metrics: MetricsSchema
    insights: List[InsightSchema] = Field(default_factory=list)
    recommendations: List[RecommendationSchema] = Field(default_factory=list)
    risk_assessment: RiskAssessmentSchema = Field(default_factory=RiskAssessmentSchema)
    source: Literal["ai", "offline"]
    provider: Optional[str] = None

    @classmethod
    def from_domain(cls, result: AnalysisResult) -> "AnalysisResponse":
        return cls.model_validate(asdict(result))
