"""SQLAlchemy ORM models for user accounts and transactions"""

import uuid
from sqlalchemy import Column, String, Numeric, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class AccountRecord(Base):
    """Bank or e-wallet account registered by a user"""

    __tablename__ = "account"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    provider = Column(Text, nullable=False)
    account_type = Column(Text, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="PHP")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("TransactionRecord", back_populates="account", passive_deletes=True)


class TransactionRecord(Base):
    """Income or expense entry; amount is stored as a non-negative magnitude"""

    __tablename__ = "ledger_transaction"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("account.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    type = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="Other")
    occurred_on = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("AccountRecord", back_populates="transactions")
