from sqlalchemy.orm import Session
from typing import List, Optional

from models.cost_center import CostCenter
from models.transaction import TransactionHeader
from models.transaction_entry import LedgerEntry
from schemas.cost_center import CostCenterCreate, CostCenterUpdate


def get_cost_center(db: Session, cost_center_id: int, company_id: int) -> Optional[CostCenter]:
    return db.query(CostCenter).filter(
        CostCenter.id == cost_center_id,
        CostCenter.company_id == company_id
    ).first()


def get_cost_centers(db: Session, company_id: int) -> List[CostCenter]:
    return db.query(CostCenter).filter(CostCenter.company_id == company_id).order_by(CostCenter.code).all()


def _code_taken(db: Session, code: str, company_id: int) -> bool:
    return db.query(CostCenter.id).filter(
        CostCenter.code == code,
        CostCenter.company_id == company_id
    ).first() is not None


def create_cost_center(db: Session, cost_center: CostCenterCreate, company_id: int) -> CostCenter:
    if _code_taken(db, cost_center.code, company_id):
        raise ValueError(f"Cost center with code {cost_center.code} already exists")
    if cost_center.parent_id is not None and not get_cost_center(db, cost_center.parent_id, company_id):
        raise ValueError(f"Parent cost center {cost_center.parent_id} not found for this company.")

    db_cost_center = CostCenter(**cost_center.model_dump(), company_id=company_id)
    db.add(db_cost_center)
    db.commit()
    db.refresh(db_cost_center)
    return db_cost_center


def update_cost_center(db: Session, cost_center_id: int, cost_center_update: CostCenterUpdate, company_id: int) -> Optional[CostCenter]:
    db_cost_center = get_cost_center(db, cost_center_id, company_id)
    if not db_cost_center:
        return None

    update_data = cost_center_update.model_dump(exclude_unset=True)
    if 'code' in update_data and update_data['code'] != db_cost_center.code and _code_taken(db, update_data['code'], company_id):
        raise ValueError(f"Cost center with code {update_data['code']} already exists")
    parent_id = update_data.get('parent_id')
    if parent_id is not None:
        if parent_id == cost_center_id:
            raise ValueError("A cost center cannot be its own parent.")
        if not get_cost_center(db, parent_id, company_id):
            raise ValueError(f"Parent cost center {parent_id} not found for this company.")

    for key, value in update_data.items():
        setattr(db_cost_center, key, value)
    db.commit()
    db.refresh(db_cost_center)
    return db_cost_center


def delete_cost_center(db: Session, cost_center_id: int, company_id: int) -> bool:
    db_cost_center = get_cost_center(db, cost_center_id, company_id)
    if not db_cost_center:
        return False
    in_use = db.query(LedgerEntry.id).filter(LedgerEntry.cost_center_id == cost_center_id).first() or \
        db.query(TransactionHeader.id).filter(TransactionHeader.cost_center_id == cost_center_id).first()
    if in_use:
        raise ValueError("Cannot delete cost center because it is referenced by transactions.")
    db.delete(db_cost_center)
    db.commit()
    return True
