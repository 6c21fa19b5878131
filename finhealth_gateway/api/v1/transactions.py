"""Transaction endpoints - record, list and remove income and expenses"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from finhealth_gateway.api.v1.schemas import TransactionCreate, TransactionListResponse, TransactionResponse
from finhealth_gateway.domain.exceptions import RecordNotFoundError
from finhealth_gateway.infrastructure.database.models import TransactionRecord
from finhealth_gateway.infrastructure.database.session import get_db
from finhealth_gateway.infrastructure.database.repositories import TransactionRepository

router = APIRouter()


def _to_response(txn: TransactionRecord) -> TransactionResponse:
    return TransactionResponse(
        id=txn.id,
        description=txn.description,
        amount=float(txn.amount),
        type=txn.type,
        category=txn.category,
        date=txn.occurred_on,
        account_id=txn.account_id,
    )


@router.post("/users/{user_id}/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(user_id: str, request_body: TransactionCreate, db: Session = Depends(get_db)):
    try:
        txn = TransactionRepository(db).create_transaction(
            user_id=user_id,
            description=request_body.description,
            amount=request_body.amount,
            type=request_body.type,
            category=request_body.category,
            occurred_on=request_body.date,
            account_id=request_body.account_id,
        )
    except RecordNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    db.commit()
    return _to_response(txn)


@router.get("/users/{user_id}/transactions", response_model=TransactionListResponse)
def list_transactions(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Most recent N transactions"),
    db: Session = Depends(get_db),
):
    """
    Retrieve a user's transactions, newest first.
    """
    transactions = TransactionRepository(db).list_transactions(user_id, limit=limit)
    return TransactionListResponse(user_id=user_id, transactions=[_to_response(t) for t in transactions])


@router.delete("/users/{user_id}/transactions/{transaction_id}", status_code=204)
def delete_transaction(user_id: str, transaction_id: str, db: Session = Depends(get_db)):
    if not TransactionRepository(db).delete_transaction(user_id, transaction_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    db.commit()
    return Response(status_code=204)
