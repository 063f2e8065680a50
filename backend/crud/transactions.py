from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
from decimal import Decimal
import logging

from crud import transaction_entries as entries_crud
from crud.audit_log import create_audit_log
from models.account import Account
from models.cost_center import CostCenter
from models.financial_account import FinancialAccount
from models.transaction import TransactionHeader, TransactionType, RecurrenceType
from models.transaction_entry import LedgerEntry
from schemas.audit_log import AuditLogCreate
from schemas.transaction import TransactionCreate, TransactionUpdate, TransactionFilters
from schemas.transaction_entry import LedgerEntryCreate
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)

HEADER_FIELDS = (
    'cash_date', 'competence_date', 'status', 'description', 'notes', 'origin',
    'financial_account_id', 'account_id', 'cost_center_id',
)


def get_transaction(db: Session, transaction_id: int, company_id: int) -> Optional[TransactionHeader]:
    return db.query(TransactionHeader).options(selectinload(TransactionHeader.entries)).filter(
        TransactionHeader.id == transaction_id,
        TransactionHeader.company_id == company_id
    ).first()


def get_transactions(db: Session, company_id: int, filters: TransactionFilters) -> List[TransactionHeader]:
    query = db.query(TransactionHeader).filter(TransactionHeader.company_id == company_id)

    if filters.description and filters.description.strip():
        query = query.filter(TransactionHeader.description.ilike(f"%{filters.description.strip()}%"))
    if filters.status:
        query = query.filter(TransactionHeader.status == filters.status)
    if filters.date_from:
        query = query.filter(TransactionHeader.cash_date >= filters.date_from)
    if filters.date_to:
        query = query.filter(TransactionHeader.cash_date <= filters.date_to)
    if filters.recurrence_type:
        query = query.filter(TransactionHeader.recurrence_type == filters.recurrence_type)
    if filters.account_id is not None or filters.cost_center_id is not None:
        lines = db.query(LedgerEntry.transaction_id)
        if filters.account_id is not None:
            lines = lines.filter(LedgerEntry.account_id == filters.account_id)
        if filters.cost_center_id is not None:
            lines = lines.filter(LedgerEntry.cost_center_id == filters.cost_center_id)
        query = query.filter(TransactionHeader.id.in_(lines))

    return query.order_by(
        TransactionHeader.cash_date.desc(), TransactionHeader.id.desc()
    ).limit(filters.limit).all()


def debit_total(lines: List[LedgerEntryCreate]) -> Decimal:
    return sum((line.amount for line in lines if line.amount > 0), Decimal("0.00"))


def _check_references(db: Session, tx, company_id: int):
    """Every account, cost center and financial account used must belong to the company."""
    account_ids = {line.account_id for line in tx.lines}
    if tx.account_id is not None:
        account_ids.add(tx.account_id)
    found = {row.id for row in db.query(Account.id).filter(Account.id.in_(account_ids), Account.company_id == company_id)}
    missing = account_ids - found
    if missing:
        raise ValueError(f"Account(s) {sorted(missing)} not found for this company.")

    cost_center_ids = {line.cost_center_id for line in tx.lines if line.cost_center_id is not None}
    if tx.cost_center_id is not None:
        cost_center_ids.add(tx.cost_center_id)
    if cost_center_ids:
        found = {row.id for row in db.query(CostCenter.id).filter(CostCenter.id.in_(cost_center_ids), CostCenter.company_id == company_id)}
        missing = cost_center_ids - found
        if missing:
            raise ValueError(f"Cost center(s) {sorted(missing)} not found for this company.")

    if tx.financial_account_id is not None:
        exists = db.query(FinancialAccount.id).filter(
            FinancialAccount.id == tx.financial_account_id,
            FinancialAccount.company_id == company_id
        ).first()
        if not exists:
            raise ValueError(f"Financial account {tx.financial_account_id} not found for this company.")


def _audit(db: Session, header: TransactionHeader, action: str, user_id: str, old_values=None):
    details = {"new": _snapshot(header) if action != 'DELETE' else None}
    if old_values is not None:
        details["old"] = old_values
    create_audit_log(db, AuditLogCreate(
        company_id=header.company_id,
        user_id=user_id,
        action=action,
        table_name='transactions',
        record_id=header.id,
        details=details,
    ))


def _snapshot(header: TransactionHeader) -> dict:
    data = sqlalchemy_to_dict(header)
    data['entries'] = [sqlalchemy_to_dict(entry) for entry in header.entries]
    return data


def create_transaction(db: Session, tx: TransactionCreate, company_id: int, user_id: str) -> TransactionHeader:
    """
    Saves a header and its full line set in one database transaction.

    The commit runs the double-entry check; a violation propagates to the
    caller after everything written here has been rolled back.
    """
    try:
        _check_references(db, tx, company_id)
        if tx.recurrence_parent_id is not None and not get_transaction(db, tx.recurrence_parent_id, company_id):
            raise ValueError(f"Recurrence parent {tx.recurrence_parent_id} not found for this company.")

        db_header = TransactionHeader(
            company_id=company_id,
            user_id=user_id,
            type=tx.type or TransactionType.INCOME,
            amount=debit_total(tx.lines),
            recurrence_type=tx.recurrence_type,
            recurrence_total=tx.recurrence_total,
            recurrence_index=tx.recurrence_index,
            recurrence_parent_id=tx.recurrence_parent_id,
            **{field: getattr(tx, field) for field in HEADER_FIELDS},
        )
        db.add(db_header)
        db.flush()  # Flush to get the ID for the header before creating its lines

        entries_crud.insert_entries(db, db_header.id, company_id, tx.lines)
        db.expire(db_header, ['entries'])
        _audit(db, db_header, 'INSERT', user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_header)
    logger.info(f"Transaction {db_header.id} created by user {user_id} for company {company_id}")
    return db_header


def update_transaction(db: Session, transaction_id: int, tx: TransactionUpdate, company_id: int, user_id: str) -> Optional[TransactionHeader]:
    """
    Updates the header and replaces its whole line set.

    The old lines are deleted and the new ones inserted inside the same
    database transaction; only the final set is validated at commit.
    """
    db_header = get_transaction(db, transaction_id, company_id)
    if not db_header:
        return None

    try:
        _check_references(db, tx, company_id)
        old_values = _snapshot(db_header)

        for field in HEADER_FIELDS:
            setattr(db_header, field, getattr(tx, field))
        if tx.type is not None:
            db_header.type = tx.type
        db_header.amount = debit_total(tx.lines)

        entries_crud.delete_entries(db, transaction_id)
        entries_crud.insert_entries(db, transaction_id, company_id, tx.lines)
        db.expire(db_header, ['entries'])
        _audit(db, db_header, 'UPDATE', user_id, old_values=old_values)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_header)
    logger.info(f"Transaction {transaction_id} updated by user {user_id} for company {company_id}")
    return db_header


def duplicate_transaction(db: Session, transaction_id: int, company_id: int, user_id: str) -> Optional[TransactionHeader]:
    """Copies a transaction and its lines into a new, non-recurring transaction."""
    source = get_transaction(db, transaction_id, company_id)
    if not source:
        return None

    lines = [
        LedgerEntryCreate(account_id=entry.account_id, cost_center_id=entry.cost_center_id, amount=entry.amount)
        for entry in source.entries
    ]
    if not lines:
        raise ValueError(f"Transaction {transaction_id} has no entry lines to duplicate.")

    copy = TransactionCreate(
        type=source.type,
        recurrence_type=RecurrenceType.NONE,
        lines=lines,
        **{field: getattr(source, field) for field in HEADER_FIELDS},
    )
    return create_transaction(db, copy, company_id, user_id)


def delete_transaction(db: Session, transaction_id: int, company_id: int, user_id: str) -> bool:
    db_header = get_transaction(db, transaction_id, company_id)
    if not db_header:
        return False

    try:
        old_values = _snapshot(db_header)
        _audit(db, db_header, 'DELETE', user_id, old_values=old_values)
        db.delete(db_header)  # lines are removed with it
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Transaction {transaction_id} deleted by user {user_id} for company {company_id}")
    return True
