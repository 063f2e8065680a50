from sqlalchemy import Column, Integer, String, Text, Numeric, Date, Enum, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin, TenantScopedMixin


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    REALIZED = "realized"
    RECONCILED = "reconciled"


class RecurrenceType(str, enum.Enum):
    NONE = "none"
    INSTALLMENT = "installment"
    FIXED = "fixed"


def _values(enum_cls):
    return [m.value for m in enum_cls]


class TransactionHeader(Base, TimestampMixin, TenantScopedMixin):
    """One business event; its entry lines carry the double-entry legs."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=True)
    financial_account_id = Column(Integer, ForeignKey("financial_accounts.id"), nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=True)
    type = Column(Enum(TransactionType, name="transaction_type", values_callable=_values), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False, default=0)  # total of the debit legs
    cash_date = Column(Date, nullable=False)
    competence_date = Column(Date, nullable=False)
    status = Column(Enum(TransactionStatus, name="transaction_status", values_callable=_values),
                    default=TransactionStatus.SCHEDULED, nullable=False)
    recurrence_type = Column(Enum(RecurrenceType, name="transaction_recurrence_type", values_callable=_values),
                             default=RecurrenceType.NONE, nullable=False)
    recurrence_total = Column(Integer, nullable=True)
    recurrence_index = Column(Integer, nullable=True)
    recurrence_parent_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    origin = Column(String, nullable=True)

    # Relationships
    entries = relationship("LedgerEntry", back_populates="transaction", cascade="all, delete-orphan",
                           order_by="LedgerEntry.id")
    financial_account = relationship("FinancialAccount")
    account = relationship("Account")
    cost_center = relationship("CostCenter")
