from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from access_rule import Principal, can_manage_members
from crud import companies as companies_crud
from schemas.company import Company, CompanyCreate, CompanyUpdate, Membership, MembershipCreate, MembershipUpdate
from utils.auth_utils import get_principal
from utils.tenancy import get_tenant_db

router = APIRouter(
    prefix="/companies",
    tags=["Companies"],
)


def _require_manager(db: Session, principal: Principal, company_id: int):
    if not companies_crud.get_company(db, company_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    if not can_manage_members(db, principal, company_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")


@router.get("/", response_model=List[Company])
def read_companies(db: Session = Depends(get_tenant_db)):
    return companies_crud.get_companies(db)


@router.get("/mine", response_model=List[Company])
def read_my_companies(
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_principal),
):
    """
    Companies the caller is a member of.
    A caller with no company yet gets a default one, with themselves as admin.
    """
    return companies_crud.ensure_default_company(db, principal)


@router.post("/", response_model=Company, status_code=status.HTTP_201_CREATED)
def create_company(
    company: CompanyCreate,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_principal),
):
    return companies_crud.create_company(db, company, principal)


@router.get("/{company_id}", response_model=Company)
def read_company(company_id: int, db: Session = Depends(get_tenant_db)):
    db_company = companies_crud.get_company(db, company_id)
    if db_company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return db_company


@router.patch("/{company_id}", response_model=Company)
def update_company(
    company_id: int,
    company_update: CompanyUpdate,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_principal),
):
    _require_manager(db, principal, company_id)
    return companies_crud.update_company(db, company_id, company_update)


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company(
    company_id: int,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_principal),
):
    _require_manager(db, principal, company_id)
    companies_crud.delete_company(db, company_id)


@router.get("/{company_id}/members", response_model=List[Membership])
def read_members(company_id: int, db: Session = Depends(get_tenant_db)):
    if not companies_crud.get_company(db, company_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return companies_crud.get_memberships(db, company_id)


@router.post("/{company_id}/members", response_model=Membership, status_code=status.HTTP_201_CREATED)
def add_member(
    company_id: int,
    membership: MembershipCreate,
    db: Session = Depends(get_tenant_db),
):
    if not companies_crud.get_company(db, company_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    # Non-managers are refused by the write rule on commit
    try:
        return companies_crud.add_membership(db, company_id, membership)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/{company_id}/members/{membership_id}", response_model=Membership)
def update_member(
    company_id: int,
    membership_id: int,
    membership_update: MembershipUpdate,
    db: Session = Depends(get_tenant_db),
):
    db_membership = companies_crud.update_membership(db, company_id, membership_id, membership_update)
    if db_membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")
    return db_membership


@router.delete("/{company_id}/members/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    company_id: int,
    membership_id: int,
    db: Session = Depends(get_tenant_db),
):
    if not companies_crud.remove_membership(db, company_id, membership_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")
