"""Financial metrics computed from a snapshot.

All figures are anchored to the analysis month: the calendar month of the most
recent transaction, not the current date, so imported or stale histories still
yield meaningful monthly numbers.
"""

from collections import defaultdict
from typing import Dict, List

from finhealth_gateway.domain.models import FinancialMetrics, FinancialSnapshot, Transaction
from finhealth_gateway.utils.date_utils import latest_month, month_key

DEBT_CATEGORY_KEYWORDS = ("debt", "loan", "credit card", "mortgage")
INVESTMENT_ACCOUNT_KEYWORD = "invest"


def analysis_period_transactions(transactions: List[Transaction]) -> List[Transaction]:
    """Transactions that fall in the month of the latest transaction"""
    period = latest_month(t.date for t in transactions)
    if period is None:
        return []
    year, month = period
    return [t for t in transactions if t.date.year == year and t.date.month == month]


def expense_categories(transactions: List[Transaction]) -> Dict[str, float]:
    """Analysis-month expense totals per category, largest first"""
    totals: Dict[str, float] = defaultdict(float)
    for txn in analysis_period_transactions(transactions):
        if txn.type == "expense":
            totals[txn.category or "Other"] += abs(float(txn.amount))
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def calculate_metrics(snapshot: FinancialSnapshot) -> FinancialMetrics:
    """
    Compute savings rate, expense ratio and emergency fund coverage.

    Formulas:
    - savings_rate = (income - expenses) / income * 100, 0 without income
    - expense_ratio = expenses / income * 100, 100 without income
    - emergency_fund_months = total balance / expenses, 0 without expenses
    - debt_to_income = debt-category expenses / income * 100
    - investment_allocation = investment account balances / total balance * 100
    """
    period = latest_month(t.date for t in snapshot.transactions)
    current = analysis_period_transactions(snapshot.transactions)

    total_balance = sum(float(a.balance) for a in snapshot.accounts)
    income = sum(abs(float(t.amount)) for t in current if t.type == "income")
    expenses = sum(abs(float(t.amount)) for t in current if t.type == "expense")
    debt_payments = sum(
        abs(float(t.amount))
        for t in current
        if t.type == "expense" and any(k in (t.category or "").lower() for k in DEBT_CATEGORY_KEYWORDS)
    )
    investment_balance = sum(
        float(a.balance) for a in snapshot.accounts if INVESTMENT_ACCOUNT_KEYWORD in (a.account_type or "").lower()
    )

    savings_rate = (income - expenses) / income * 100 if income > 0 else 0.0
    expense_ratio = expenses / income * 100 if income > 0 else 100.0
    emergency_fund_months = total_balance / expenses if expenses > 0 else 0.0
    debt_to_income = debt_payments / income * 100 if income > 0 else 0.0
    investment_allocation = investment_balance / total_balance * 100 if total_balance > 0 else 0.0

    return FinancialMetrics(
        analysis_month=month_key(*period) if period else None,
        total_balance=round(total_balance, 2),
        monthly_income=round(income, 2),
        monthly_expenses=round(expenses, 2),
        savings_rate=round(savings_rate, 2),
        expense_ratio=round(expense_ratio, 2),
        emergency_fund_months=round(emergency_fund_months, 2),
        debt_to_income=round(debt_to_income, 2),
        investment_allocation=round(investment_allocation, 2),
    )
