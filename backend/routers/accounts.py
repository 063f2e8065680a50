from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from crud import accounts as accounts_crud
from models.account import AccountClass
from schemas.account import Account, AccountCreate, AccountUpdate
from utils.tenancy import get_tenant_db, get_tenant_id

router = APIRouter(
    prefix="/accounts",
    tags=["Chart of Accounts"],
)


@router.post("/", response_model=Account, status_code=status.HTTP_201_CREATED)
def create_account(
    account: AccountCreate,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    try:
        return accounts_crud.create_account(db, account, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[Account])
def get_accounts(
    account_class: Optional[AccountClass] = None,
    active_only: bool = False,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    return accounts_crud.get_accounts(db, tenant_id, account_class=account_class, active_only=active_only)


@router.get("/{account_id}", response_model=Account)
def get_account(
    account_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    account = accounts_crud.get_account(db, account_id, tenant_id)
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return account


@router.patch("/{account_id}", response_model=Account)
def update_account(
    account_id: int,
    account_update: AccountUpdate,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    try:
        account = accounts_crud.update_account(db, account_id, account_update, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    try:
        deleted = accounts_crud.delete_account(db, account_id, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
