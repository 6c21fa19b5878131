"""Account endpoints - register, list and remove bank or e-wallet accounts"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from finhealth_gateway.api.v1.schemas import AccountCreate, AccountListResponse, AccountResponse
from finhealth_gateway.infrastructure.database.models import AccountRecord
from finhealth_gateway.infrastructure.database.session import get_db
from finhealth_gateway.infrastructure.database.repositories import AccountRepository

router = APIRouter()


def _to_response(account: AccountRecord) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        name=account.name,
        provider=account.provider,
        account_type=account.account_type,
        balance=float(account.balance),
        currency=account.currency,
    )


@router.post("/users/{user_id}/accounts", response_model=AccountResponse, status_code=201)
def create_account(user_id: str, request_body: AccountCreate, db: Session = Depends(get_db)):
    account = AccountRepository(db).create_account(
        user_id=user_id,
        name=request_body.name,
        provider=request_body.provider,
        account_type=request_body.account_type,
        balance=request_body.balance,
        currency=request_body.currency.upper(),
    )
    db.commit()
    return _to_response(account)


@router.get("/users/{user_id}/accounts", response_model=AccountListResponse)
def list_accounts(user_id: str, db: Session = Depends(get_db)):
    accounts = AccountRepository(db).list_accounts(user_id)
    return AccountListResponse(user_id=user_id, accounts=[_to_response(a) for a in accounts])


@router.delete("/users/{user_id}/accounts/{account_id}", status_code=204)
def delete_account(user_id: str, account_id: str, db: Session = Depends(get_db)):
    if not AccountRepository(db).delete_account(user_id, account_id):
        raise HTTPException(status_code=404, detail="Account not found")
    db.commit()
    return Response(status_code=204)
