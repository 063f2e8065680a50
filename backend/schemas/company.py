from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from models.company import AccountingRegime, MembershipRole


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    tax_id: Optional[str] = None
    default_regime: AccountingRegime = AccountingRegime.CASH

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('name must not be blank')
        return v


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    tax_id: Optional[str] = None
    default_regime: Optional[AccountingRegime] = None


class Company(CompanyBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MembershipCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=255)
    role: MembershipRole = MembershipRole.COLLABORATOR

    @field_validator('user_id')
    @classmethod
    def strip_user_id(cls, v):
        return v.strip()


class MembershipUpdate(BaseModel):
    role: MembershipRole


class Membership(BaseModel):
    id: int
    company_id: int
    user_id: str
    role: MembershipRole
    created_at: datetime

    class Config:
        from_attributes = True
