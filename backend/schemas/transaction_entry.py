from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional
from datetime import datetime


class LedgerEntryBase(BaseModel):
    account_id: int
    cost_center_id: Optional[int] = None
    # Signed: positive is a debit, negative a credit
    amount: Decimal = Field(..., max_digits=14, decimal_places=2)

    @field_validator('amount')
    @classmethod
    def check_non_zero(cls, v):
        if v == 0:
            raise ValueError('Entry amount must be non-zero.')
        return v


class LedgerEntryCreate(LedgerEntryBase):
    pass


class LedgerEntry(LedgerEntryBase):
    id: int
    transaction_id: int
    company_id: int
    side: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LedgerBalance(BaseModel):
    transaction_id: int
    total: Decimal
    count: int
    balanced: bool
    violation: Optional[str] = None
    detail: Optional[str] = None
