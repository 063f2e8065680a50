from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from access_rule import Principal
from crud import transactions as transactions_crud
from crud.audit_log import get_audit_logs
from schemas.audit_log import AuditLog
from schemas.transaction import Transaction, TransactionCreate, TransactionUpdate, TransactionSummary, TransactionFilters
from utils.auth_utils import get_principal
from utils.tenancy import get_tenant_db, get_tenant_id

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
)


@router.post("/", response_model=Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction(
    tx: TransactionCreate,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id),
    principal: Principal = Depends(get_principal)
):
    """
    Create a transaction together with its entry lines.
    An unbalanced line set is rejected when the transaction commits.
    """
    try:
        return transactions_crud.create_transaction(db, tx, tenant_id, principal.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[TransactionSummary])
def get_transactions(
    filters: TransactionFilters = Depends(),
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    return transactions_crud.get_transactions(db, tenant_id, filters)


@router.get("/{transaction_id}", response_model=Transaction)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    db_header = transactions_crud.get_transaction(db, transaction_id, tenant_id)
    if db_header is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return db_header


@router.put("/{transaction_id}", response_model=Transaction)
def update_transaction(
    transaction_id: int,
    tx: TransactionUpdate,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id),
    principal: Principal = Depends(get_principal)
):
    """Replace the header fields and the whole set of entry lines."""
    try:
        db_header = transactions_crud.update_transaction(db, transaction_id, tx, tenant_id, principal.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if db_header is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return db_header


@router.post("/{transaction_id}/duplicate", response_model=Transaction, status_code=status.HTTP_201_CREATED)
def duplicate_transaction(
    transaction_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id),
    principal: Principal = Depends(get_principal)
):
    try:
        db_header = transactions_crud.duplicate_transaction(db, transaction_id, tenant_id, principal.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if db_header is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return db_header


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id),
    principal: Principal = Depends(get_principal)
):
    if not transactions_crud.delete_transaction(db, transaction_id, tenant_id, principal.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")


@router.get("/{transaction_id}/history", response_model=List[AuditLog])
def get_transaction_history(
    transaction_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    return get_audit_logs(db, tenant_id, table_name="transactions", record_id=transaction_id)
