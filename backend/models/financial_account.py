from sqlalchemy import Column, Integer, String, Numeric, Enum, ForeignKey
from database import Base
import enum
from models.audit_mixin import TimestampMixin, TenantScopedMixin


class FinancialAccountType(str, enum.Enum):
    BANK = "bank"
    CASH = "cash"
    CREDIT_CARD = "credit_card"


class FinancialAccount(Base, TimestampMixin, TenantScopedMixin):
    """Bank, cash or credit card control account."""
    __tablename__ = "financial_accounts"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(Enum(FinancialAccountType, name="financial_account_type", values_callable=lambda e: [m.value for m in e]), nullable=False)
    initial_balance = Column(Numeric(14, 2), default=0, nullable=False)
    currency = Column(String(3), default="BRL", nullable=False)
