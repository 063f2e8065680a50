from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.account import AccountClass


class AccountBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    account_class: AccountClass
    account_type: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool = True


class AccountCreate(AccountBase):
    pass


class AccountUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_class: Optional[AccountClass] = None
    account_type: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None


class Account(AccountBase):
    id: int
    company_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
