"""Data access layer for accounts, transactions and financial snapshots"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from finhealth_gateway.infrastructure.database.models import AccountRecord, TransactionRecord
from finhealth_gateway.domain.models import Account, FinancialSnapshot, Transaction
from finhealth_gateway.domain.exceptions import RecordNotFoundError


class AccountRepository:
    """Repository for user accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        user_id: str,
        name: str,
        provider: str,
        account_type: str,
        balance: Decimal,
        currency: str,
    ) -> AccountRecord:
        """Persist a new account"""
        db_account = AccountRecord(
            user_id=user_id,
            name=name,
            provider=provider,
            account_type=account_type,
            balance=balance,
            currency=currency,
        )
        self.db.add(db_account)
        self.db.flush()  # Get ID without committing
        return db_account

    def get_account(self, user_id: str, account_id: str) -> Optional[AccountRecord]:
        return (
            self.db.query(AccountRecord)
            .filter(AccountRecord.user_id == user_id, AccountRecord.id == account_id)
            .first()
        )

    def list_accounts(self, user_id: str) -> List[AccountRecord]:
        return (
            self.db.query(AccountRecord)
            .filter(AccountRecord.user_id == user_id)
            .order_by(AccountRecord.created_at, AccountRecord.name)
            .all()
        )

    def delete_account(self, user_id: str, account_id: str) -> bool:
        """Delete an account; its transactions are kept and unlinked"""
        db_account = self.get_account(user_id, account_id)
        if db_account is None:
            return False
        self.db.query(TransactionRecord).filter(TransactionRecord.account_id == account_id).update(
            {TransactionRecord.account_id: None}
        )
        self.db.delete(db_account)
        return True


class TransactionRepository:
    """Repository for income and expense entries"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(
        self,
        user_id: str,
        description: str,
        amount: Decimal,
        type: str,
        category: str,
        occurred_on: date,
        account_id: Optional[str] = None,
    ) -> TransactionRecord:
        """
        Persist a transaction.

        Raises:
            RecordNotFoundError: account_id is not one of the user's accounts
        """
        if account_id is not None and AccountRepository(self.db).get_account(user_id, account_id) is None:
            raise RecordNotFoundError(f"Account {account_id} not found")

        db_transaction = TransactionRecord(
            user_id=user_id,
            account_id=account_id,
            description=description,
            amount=abs(amount),
            type=type,
            category=category,
            occurred_on=occurred_on,
        )
        self.db.add(db_transaction)
        self.db.flush()
        return db_transaction

    def list_transactions(self, user_id: str, limit: Optional[int] = None) -> List[TransactionRecord]:
        """Fetch transactions, newest first"""
        query = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.user_id == user_id)
            .order_by(TransactionRecord.occurred_on.desc(), TransactionRecord.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def delete_transaction(self, user_id: str, transaction_id: str) -> bool:
        db_transaction = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.user_id == user_id, TransactionRecord.id == transaction_id)
            .first()
        )
        if db_transaction is None:
            return False
        self.db.delete(db_transaction)
        return True


def to_domain_account(record: AccountRecord) -> Account:
    return Account(
        account_id=record.id,
        name=record.name,
        provider=record.provider,
        account_type=record.account_type,
        balance=Decimal(record.balance),
        currency=record.currency,
    )


def to_domain_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        transaction_id=record.id,
        description=record.description,
        amount=Decimal(record.amount),
        type=record.type,
        category=record.category,
        date=record.occurred_on,
        account_id=record.account_id,
    )


class SnapshotRepository:
    """Reads everything the analysis needs for one user"""

    def __init__(self, db: Session):
        self.db = db

    def get_financial_snapshot(self, user_id: str) -> FinancialSnapshot:
        accounts = AccountRepository(self.db).list_accounts(user_id)
        transactions = TransactionRepository(self.db).list_transactions(user_id)
        return FinancialSnapshot(
            accounts=[to_domain_account(a) for a in accounts],
            transactions=[to_domain_transaction(t) for t in transactions],
        )
