from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from models.account import Account, AccountClass
from models.transaction import TransactionHeader
from models.transaction_entry import LedgerEntry
from schemas.account import AccountCreate, AccountUpdate

logger = logging.getLogger(__name__)


def get_account(db: Session, account_id: int, company_id: int) -> Optional[Account]:
    return db.query(Account).filter(
        Account.id == account_id,
        Account.company_id == company_id
    ).first()


def get_account_by_code(db: Session, code: str, company_id: int) -> Optional[Account]:
    return db.query(Account).filter(
        Account.code == code,
        Account.company_id == company_id
    ).first()


def get_accounts(db: Session, company_id: int, account_class: AccountClass = None, active_only: bool = False) -> List[Account]:
    query = db.query(Account).filter(Account.company_id == company_id)
    if account_class:
        query = query.filter(Account.account_class == account_class)
    if active_only:
        query = query.filter(Account.is_active == True)
    return query.order_by(Account.code).all()


def _check_parent(db: Session, parent_id: Optional[int], company_id: int, account_id: int = None):
    if parent_id is None:
        return
    if parent_id == account_id:
        raise ValueError("An account cannot be its own parent.")
    if not get_account(db, parent_id, company_id):
        raise ValueError(f"Parent account {parent_id} not found for this company.")


def create_account(db: Session, account: AccountCreate, company_id: int) -> Account:
    if get_account_by_code(db, account.code, company_id):
        raise ValueError(f"Account with code {account.code} already exists")
    _check_parent(db, account.parent_id, company_id)

    db_account = Account(**account.model_dump(), company_id=company_id)
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    logger.info(f"Account {db_account.code} created for company {company_id}")
    return db_account


def update_account(db: Session, account_id: int, account_update: AccountUpdate, company_id: int) -> Optional[Account]:
    db_account = get_account(db, account_id, company_id)
    if not db_account:
        return None

    update_data = account_update.model_dump(exclude_unset=True)
    if 'code' in update_data and update_data['code'] != db_account.code:
        if get_account_by_code(db, update_data['code'], company_id):
            raise ValueError(f"Account with code {update_data['code']} already exists")
    if 'parent_id' in update_data:
        _check_parent(db, update_data['parent_id'], company_id, account_id)

    for key, value in update_data.items():
        setattr(db_account, key, value)

    db.commit()
    db.refresh(db_account)
    return db_account


def delete_account(db: Session, account_id: int, company_id: int) -> bool:
    db_account = get_account(db, account_id, company_id)
    if not db_account:
        return False

    in_use = db.query(LedgerEntry.id).filter(LedgerEntry.account_id == account_id).first() or \
        db.query(TransactionHeader.id).filter(TransactionHeader.account_id == account_id).first()
    if in_use:
        raise ValueError("Cannot delete account because it is referenced by transactions. Deactivate it instead.")

    # Child accounts keep existing with their parent reference cleared
    db.delete(db_account)
    db.commit()
    return True
