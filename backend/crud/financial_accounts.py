from sqlalchemy.orm import Session
from typing import List, Optional

from models.financial_account import FinancialAccount
from models.transaction import TransactionHeader
from schemas.financial_account import FinancialAccountCreate, FinancialAccountUpdate


def get_financial_account(db: Session, financial_account_id: int, company_id: int) -> Optional[FinancialAccount]:
    return db.query(FinancialAccount).filter(
        FinancialAccount.id == financial_account_id,
        FinancialAccount.company_id == company_id
    ).first()


def get_financial_accounts(db: Session, company_id: int) -> List[FinancialAccount]:
    return db.query(FinancialAccount).filter(
        FinancialAccount.company_id == company_id
    ).order_by(FinancialAccount.name).all()


def create_financial_account(db: Session, financial_account: FinancialAccountCreate, company_id: int) -> FinancialAccount:
    db_financial_account = FinancialAccount(**financial_account.model_dump(), company_id=company_id)
    db.add(db_financial_account)
    db.commit()
    db.refresh(db_financial_account)
    return db_financial_account


def update_financial_account(db: Session, financial_account_id: int, update: FinancialAccountUpdate, company_id: int) -> Optional[FinancialAccount]:
    db_financial_account = get_financial_account(db, financial_account_id, company_id)
    if not db_financial_account:
        return None
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(db_financial_account, key, value)
    db.commit()
    db.refresh(db_financial_account)
    return db_financial_account


def delete_financial_account(db: Session, financial_account_id: int, company_id: int) -> bool:
    db_financial_account = get_financial_account(db, financial_account_id, company_id)
    if not db_financial_account:
        return False
    in_use = db.query(TransactionHeader.id).filter(
        TransactionHeader.financial_account_id == financial_account_id
    ).first()
    if in_use:
        raise ValueError("Cannot delete financial account because it is referenced by transactions.")
    db.delete(db_financial_account)
    db.commit()
    return True
