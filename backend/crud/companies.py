from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from access_rule import Principal
from models.company import Company, TenantMembership, MembershipRole, AccountingRegime
from schemas.company import CompanyCreate, CompanyUpdate, MembershipCreate, MembershipUpdate

logger = logging.getLogger(__name__)

DEFAULT_COMPANY_NAME = "Empresa Principal"


def get_company(db: Session, company_id: int) -> Optional[Company]:
    return db.query(Company).filter(Company.id == company_id).first()


def get_companies(db: Session) -> List[Company]:
    """Companies visible to the session's principal."""
    return db.query(Company).order_by(Company.name).all()


def create_company(db: Session, company: CompanyCreate, principal: Principal) -> Company:
    """Creates a company and links its creator as an admin member."""
    db_company = Company(**company.model_dump())
    db.add(db_company)
    db.add(TenantMembership(company=db_company, user_id=principal.user_id, role=MembershipRole.ADMIN))
    db.commit()
    db.refresh(db_company)
    logger.info(f"Company '{db_company.name}' (ID: {db_company.id}) created by user {principal.user_id}")
    return db_company


def ensure_default_company(db: Session, principal: Principal) -> List[Company]:
    """
    Returns the principal's companies, opening a default one on first use.
    """
    companies = db.query(Company).join(TenantMembership).filter(
        TenantMembership.user_id == principal.user_id
    ).order_by(Company.name).all()
    if companies:
        return companies
    logger.info(f"No company linked to user {principal.user_id}. Creating the default company.")
    return [create_company(db, CompanyCreate(name=DEFAULT_COMPANY_NAME, default_regime=AccountingRegime.CASH), principal)]


def update_company(db: Session, company_id: int, company_update: CompanyUpdate) -> Optional[Company]:
    db_company = get_company(db, company_id)
    if not db_company:
        return None
    for key, value in company_update.model_dump(exclude_unset=True).items():
        setattr(db_company, key, value)
    db.commit()
    db.refresh(db_company)
    return db_company


def delete_company(db: Session, company_id: int) -> bool:
    db_company = get_company(db, company_id)
    if not db_company:
        return False
    db.delete(db_company)
    db.commit()
    logger.info(f"Company {company_id} deleted")
    return True


def get_memberships(db: Session, company_id: int) -> List[TenantMembership]:
    return db.query(TenantMembership).filter(
        TenantMembership.company_id == company_id
    ).order_by(TenantMembership.id).all()


def get_membership(db: Session, company_id: int, membership_id: int) -> Optional[TenantMembership]:
    return db.query(TenantMembership).filter(
        TenantMembership.id == membership_id,
        TenantMembership.company_id == company_id,
    ).first()


def add_membership(db: Session, company_id: int, membership: MembershipCreate) -> TenantMembership:
    db_membership = TenantMembership(company_id=company_id, **membership.model_dump())
    db.add(db_membership)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"User {membership.user_id} is already linked to this company.")
    db.refresh(db_membership)
    return db_membership


def update_membership(db: Session, company_id: int, membership_id: int, membership_update: MembershipUpdate) -> Optional[TenantMembership]:
    db_membership = get_membership(db, company_id, membership_id)
    if not db_membership:
        return None
    db_membership.role = membership_update.role
    db.commit()
    db.refresh(db_membership)
    return db_membership


def remove_membership(db: Session, company_id: int, membership_id: int) -> bool:
    db_membership = get_membership(db, company_id, membership_id)
    if not db_membership:
        return False
    db.delete(db_membership)
    db.commit()
    return True
