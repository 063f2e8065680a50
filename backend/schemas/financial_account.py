from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional
from datetime import datetime
from models.financial_account import FinancialAccountType


class FinancialAccountBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: FinancialAccountType
    initial_balance: Decimal = Field(Decimal("0.00"), max_digits=14, decimal_places=2)
    currency: str = Field("BRL", min_length=3, max_length=3)


class FinancialAccountCreate(FinancialAccountBase):
    pass


class FinancialAccountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[FinancialAccountType] = None
    initial_balance: Optional[Decimal] = Field(None, max_digits=14, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class FinancialAccount(FinancialAccountBase):
    id: int
    company_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
