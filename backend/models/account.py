from sqlalchemy import Column, Integer, String, Boolean, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin, TenantScopedMixin


class AccountClass(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class Account(Base, TimestampMixin, TenantScopedMixin):
    """Chart of accounts entry."""
    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint('company_id', 'code', name='_company_account_code_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(20), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    account_class = Column("class", Enum(AccountClass, name="account_class", values_callable=lambda e: [m.value for m in e]), nullable=False)
    account_type = Column(String, nullable=True)  # free-text nature, e.g. "bank", "receivable"
    parent_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    parent = relationship("Account", remote_side=[id], backref="children")
