from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from crud import transaction_entries as entries_crud
from crud.transactions import get_transaction
from ledger_validation import check_balance
from schemas.transaction_entry import LedgerEntry, LedgerBalance
from utils.tenancy import get_tenant_db, get_tenant_id

router = APIRouter(
    prefix="/transactions/{transaction_id}/entries",
    tags=["Transaction Entries"],
)


def _get_header_or_404(db: Session, transaction_id: int, tenant_id: int):
    db_header = get_transaction(db, transaction_id, tenant_id)
    if db_header is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return db_header


@router.get("/", response_model=List[LedgerEntry])
def read_entries(
    transaction_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    _get_header_or_404(db, transaction_id, tenant_id)
    return entries_crud.list_entries(db, transaction_id)


@router.get("/balance", response_model=LedgerBalance)
def read_balance(
    transaction_id: int,
    db: Session = Depends(get_tenant_db),
    tenant_id: int = Depends(get_tenant_id)
):
    """Runs the double-entry check on the stored lines without changing anything."""
    _get_header_or_404(db, transaction_id, tenant_id)
    total, count = entries_crud.sum_and_count(db, transaction_id)
    violation = check_balance(db, transaction_id)
    return LedgerBalance(
        transaction_id=transaction_id,
        total=total,
        count=count,
        balanced=violation is None,
        violation=violation.code if violation else None,
        detail=violation.message if violation else None,
    )
