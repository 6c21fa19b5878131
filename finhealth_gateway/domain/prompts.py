"""Prompt construction for financial health analysis"""

import json
import logging
import re
from typing import Any, Dict, List

from finhealth_gateway.domain.financial_metrics import calculate_metrics, expense_categories
from finhealth_gateway.domain.models import Account, FinancialSnapshot, Transaction

logger = logging.getLogger(__name__)

MAX_FIELD_CHARS = 120

_NEWLINES_RE = re.compile(r"[\r\n]+")
_SPACES_RE = re.compile(r"\s+")

INSTRUCTIONS = """You are an expert personal finance advisor. Analyze the user's financial data below.
All totals and ratios are already computed; do not recalculate them.
The analysis month is the month of the user's most recent transaction.

Assess:
1. healthScore (0-100): income vs expenses, spending patterns, emergency fund adequacy.
2. insights: 3-5 specific observations that reference actual transactions, categories or amounts.
3. recommendations: 2-3 practical next steps tied to the data.
4. riskAssessment: short-term and long-term risks with mitigation strategies."""

OUTPUT_CONTRACT = """OUTPUT FORMAT (mandatory):
- Respond with exactly one JSON object and nothing else.
- Do not wrap the JSON in markdown code fences.
- Do not include comments.
- Use double quotes for every key and string value.
- Do not use trailing commas.
- Follow this schema exactly:
{"healthScore": 0, "summary": "2-3 sentence overview", "insights": [{"type": "strength|weakness|opportunity|threat", "title": "short title", "description": "specific observation", "impact": "why it matters", "trend": "improving|stable|declining"}], "recommendations": [{"title": "short title", "description": "concrete action", "priority": "high|medium|low", "category": "savings|spending|debt|investment|emergency_fund", "impact": "expected benefit"}], "riskAssessment": {"shortTerm": ["risk"], "longTerm": ["risk"], "mitigationStrategies": ["strategy"]}}"""


def sanitize_text(value: Any) -> str:
    """Make user text safe to embed: no double quotes, no line breaks, bounded length"""
    text = "" if value is None else str(value)
    text = text.replace('"', "'")
    text = _NEWLINES_RE.sub(" ", text)
    text = _SPACES_RE.sub(" ", text).strip()
    return text[:MAX_FIELD_CHARS]


def _account_payload(account: Account) -> Dict[str, Any]:
    return {
        "name": sanitize_text(account.name),
        "provider": sanitize_text(account.provider),
        "type": sanitize_text(account.account_type),
        "balance": round(float(account.balance), 2),
        "currency": sanitize_text(account.currency),
    }


def _transaction_payload(txn: Transaction) -> Dict[str, Any]:
    return {
        "date": txn.date.isoformat(),
        "description": sanitize_text(txn.description),
        "amount": round(abs(float(txn.amount)), 2),
        "type": txn.type,
        "category": sanitize_text(txn.category),
    }


class PromptBuilder:
    """Turns a snapshot into a bounded prompt with an embedded output contract"""

    def __init__(self, max_chars: int = 12_000, max_transactions: int = 50):
        self.max_chars = max_chars
        self.max_transactions = max_transactions

    def build(self, snapshot: FinancialSnapshot) -> str:
        metrics = calculate_metrics(snapshot)
        overview = {
            "analysisMonth": metrics.analysis_month,
            "totalBalance": metrics.total_balance,
            "monthlyIncome": metrics.monthly_income,
            "monthlyExpenses": metrics.monthly_expenses,
            "netCashFlow": round(metrics.monthly_income - metrics.monthly_expenses, 2),
            "savingsRate": metrics.savings_rate,
            "expenseRatio": metrics.expense_ratio,
            "emergencyFundMonths": metrics.emergency_fund_months,
            "expenseCategories": {
                sanitize_text(name): round(total, 2) for name, total in expense_categories(snapshot.transactions).items()
            },
        }

        accounts = [_account_payload(a) for a in snapshot.accounts]
        recent = sorted(snapshot.transactions, key=lambda t: t.date, reverse=True)[: self.max_transactions]
        transactions = [_transaction_payload(t) for t in recent]

        prompt = self._render(overview, accounts, transactions)
        # Oldest transactions go first, then accounts; instructions are never cut
        while len(prompt) > self.max_chars and (transactions or accounts):
            if transactions:
                transactions.pop()
            else:
                accounts.pop()
            prompt = self._render(overview, accounts, transactions)

        if len(prompt) > self.max_chars:
            logger.warning("Prompt exceeds budget after trimming", extra={"prompt_chars": len(prompt)})
        return prompt

    @staticmethod
    def _render(overview: Dict[str, Any], accounts: List[Dict[str, Any]], transactions: List[Dict[str, Any]]) -> str:
        return "\n\n".join(
            [
                INSTRUCTIONS,
                "## Financial overview\n" + json.dumps(overview, ensure_ascii=False),
                "## Accounts\n" + json.dumps(accounts, ensure_ascii=False),
                f"## Recent transactions ({len(transactions)}, newest first)\n"
                + json.dumps(transactions, ensure_ascii=False),
                OUTPUT_CONTRACT,
            ]
        )
