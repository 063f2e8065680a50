from decimal import Decimal
from typing import Iterable, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from access_rule import BYPASS_KEY
from models.transaction import TransactionHeader
from models.transaction_entry import LedgerEntry
from schemas.transaction_entry import LedgerEntryCreate

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalise a driver value (Decimal, int or float) to a 2-place Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT)


def insert_entries(db: Session, header_id: int, tenant_id: int, entries: Iterable[LedgerEntryCreate]) -> List[LedgerEntry]:
    """
    Adds the given lines to a transaction header inside the ambient transaction.

    Nothing is committed here: the lines are validated together with every
    other write of the transaction when it commits.
    """
    header = db.get(TransactionHeader, header_id)
    if header is None or header.company_id != tenant_id:
        raise ValueError(f"Transaction {header_id} not found for this company.")

    created = []
    for entry in entries:
        amount = to_money(entry.amount)
        if amount == 0:
            raise ValueError("Entry amounts must be non-zero.")
        db_entry = LedgerEntry(
            transaction_id=header.id,
            company_id=header.company_id,
            account_id=entry.account_id,
            cost_center_id=entry.cost_center_id,
            amount=amount,
        )
        db.add(db_entry)
        created.append(db_entry)
    db.flush()
    return created


def list_entries(db: Session, header_id: int) -> List[LedgerEntry]:
    return db.query(LedgerEntry).filter(
        LedgerEntry.transaction_id == header_id
    ).order_by(LedgerEntry.id).all()


def delete_entries(db: Session, header_id: int) -> int:
    """
    Removes every line of a header, one row at a time so each removal is seen
    by the per-row hooks. Returns the number of lines removed.
    """
    entries = list_entries(db, header_id)
    for entry in entries:
        db.delete(entry)
    db.flush()
    return len(entries)


def sum_and_count(db: Session, header_id: int, all_tenants: bool = False) -> Tuple[Decimal, int]:
    """
    Sum and number of the header's current lines.

    Pending ORM changes are flushed first so the aggregate reflects every
    write made earlier in the same transaction, committed or not.
    """
    db.flush()
    total, count = db.query(
        func.coalesce(func.sum(LedgerEntry.amount), 0),
        func.count(LedgerEntry.id),
    ).filter(
        LedgerEntry.transaction_id == header_id
    ).execution_options(**{BYPASS_KEY: all_tenants}).one()
    return to_money(total), int(count)
