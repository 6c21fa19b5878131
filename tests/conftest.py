"""Pytest fixtures for testing"""

import json
import pytest
from datetime import date
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finhealth_gateway.api.main import create_app
from finhealth_gateway.api.dependencies import get_analyzer
from finhealth_gateway.infrastructure.database.models import Base
from finhealth_gateway.infrastructure.database.session import get_db
from finhealth_gateway.infrastructure.clients.fallback import ModelReply
from finhealth_gateway.domain.exceptions import AllProvidersExhausted
from finhealth_gateway.domain.models import Account, FinancialSnapshot, Transaction
from finhealth_gateway.services.health_analysis import FinancialHealthAnalyzer


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


AI_ANALYSIS = {
    "healthScore": 81,
    "summary": "Healthy cash flow with a solid buffer.",
    "insights": [
        {
            "type": "strength",
            "title": "Strong savings",
            "description": "You saved 60% of your income.",
            "impact": "Faster progress toward goals",
            "trend": "improving",
        }
    ],
    "recommendations": [
        {
            "title": "Invest surplus",
            "description": "Put part of the surplus into an index fund.",
            "priority": "medium",
            "category": "investment",
            "impact": "Long-term growth",
        }
    ],
    "riskAssessment": {"shortTerm": ["None"], "longTerm": ["Inflation"], "mitigationStrategies": ["Diversify"]},
}


class FakeChain:
    """Provider chain stand-in that replays canned replies or fails"""

    def __init__(self, text: str | None = None, provider: str = "gemini-primary"):
        self.text = text
        self.provider = provider
        self.prompts: List[str] = []

    async def analyze(self, prompt: str) -> ModelReply:
        self.prompts.append(prompt)
        if self.text is None:
            raise AllProvidersExhausted([])
        return ModelReply(provider=self.provider, text=self.text)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ai_reply() -> str:
    """Well-formed model reply text"""
    return json.dumps(AI_ANALYSIS)


@pytest.fixture
def make_chain():
    return FakeChain


@pytest.fixture
def fake_chain(ai_reply: str) -> FakeChain:
    return FakeChain(text=ai_reply)


@pytest.fixture
def client(db: Session, fake_chain: FakeChain) -> TestClient:
    """Create FastAPI test client with test database and a canned model chain"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analyzer] = lambda: FinancialHealthAnalyzer(chain=fake_chain)
    return TestClient(app)


@pytest.fixture
def sample_snapshot() -> FinancialSnapshot:
    """One month of salary and spending plus an older month that must be ignored"""
    return FinancialSnapshot(
        accounts=[
            Account(
                account_id="acc_1",
                name="Payroll",
                provider="BDO",
                account_type="savings",
                balance=Decimal("10000"),
            ),
        ],
        transactions=[
            Transaction(
                transaction_id="t1",
                description="Salary",
                amount=Decimal("5000"),
                type="income",
                category="Salary",
                date=date(2024, 3, 1),
            ),
            Transaction(
                transaction_id="t2",
                description="Groceries",
                amount=Decimal("2000"),
                type="expense",
                category="Food",
                date=date(2024, 3, 15),
            ),
            Transaction(
                transaction_id="t0",
                description="Old rent",
                amount=Decimal("9000"),
                type="expense",
                category="Housing",
                date=date(2024, 2, 10),
            ),
        ],
    )
