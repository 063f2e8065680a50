from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from models.transaction import TransactionType, TransactionStatus, RecurrenceType
from schemas.transaction_entry import LedgerEntry, LedgerEntryCreate


class TransactionBase(BaseModel):
    cash_date: date
    competence_date: date
    status: TransactionStatus = TransactionStatus.SCHEDULED
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    origin: Optional[str] = None
    financial_account_id: Optional[int] = None
    account_id: Optional[int] = None
    cost_center_id: Optional[int] = None

    @field_validator('description')
    @classmethod
    def strip_description(cls, v):
        return v.strip() if v is not None else v


class TransactionCreate(TransactionBase):
    # Income when omitted
    type: Optional[TransactionType] = None
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_total: Optional[int] = Field(None, ge=1)
    recurrence_index: Optional[int] = Field(None, ge=1)
    recurrence_parent_id: Optional[int] = None
    lines: List[LedgerEntryCreate]

    @model_validator(mode='after')
    def check_recurrence(self):
        if self.recurrence_type == RecurrenceType.NONE:
            if self.recurrence_total is not None or self.recurrence_index is not None:
                raise ValueError('recurrence_total and recurrence_index require a recurring transaction.')
        elif self.recurrence_total is not None and self.recurrence_index is not None:
            if self.recurrence_index > self.recurrence_total:
                raise ValueError('recurrence_index cannot exceed recurrence_total.')
        return self


class TransactionUpdate(TransactionBase):
    """Header fields plus the complete replacement set of lines."""
    type: Optional[TransactionType] = None
    lines: List[LedgerEntryCreate]


class TransactionSummary(TransactionBase):
    id: int
    company_id: int
    user_id: Optional[str] = None
    type: TransactionType
    amount: Decimal
    recurrence_type: RecurrenceType
    recurrence_total: Optional[int] = None
    recurrence_index: Optional[int] = None
    recurrence_parent_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Transaction(TransactionSummary):
    entries: List[LedgerEntry] = []


class TransactionFilters(BaseModel):
    description: Optional[str] = None
    status: Optional[TransactionStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    recurrence_type: Optional[RecurrenceType] = None
    account_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    limit: int = Field(50, ge=1, le=500)
