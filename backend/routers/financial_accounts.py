from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from crud import financial_accounts as crud
from schemas import financial_account as schemas
from utils.tenancy import get_tenant_db, get_tenant_id

router = APIRouter(
    prefix="/financial-accounts",
    tags=["Financial Accounts"],
)


@router.post("/", response_model=schemas.FinancialAccount, status_code=status.HTTP_201_CREATED)
def create_financial_account(financial_account: schemas.FinancialAccountCreate, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    return crud.create_financial_account(db, financial_account, tenant_id)


@router.get("/", response_model=List[schemas.FinancialAccount])
def read_financial_accounts(db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    return crud.get_financial_accounts(db, tenant_id)


@router.get("/{financial_account_id}", response_model=schemas.FinancialAccount)
def read_financial_account(financial_account_id: int, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    db_account = crud.get_financial_account(db, financial_account_id, tenant_id)
    if db_account is None:
        raise HTTPException(status_code=404, detail="Financial account not found")
    return db_account


@router.patch("/{financial_account_id}", response_model=schemas.FinancialAccount)
def update_financial_account(financial_account_id: int, update: schemas.FinancialAccountUpdate, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    db_account = crud.update_financial_account(db, financial_account_id, update, tenant_id)
    if db_account is None:
        raise HTTPException(status_code=404, detail="Financial account not found")
    return db_account


@router.delete("/{financial_account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_financial_account(financial_account_id: int, db: Session = Depends(get_tenant_db), tenant_id: int = Depends(get_tenant_id)):
    try:
        deleted = crud.delete_financial_account(db, financial_account_id, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Financial account not found")
