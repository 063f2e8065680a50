from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin, TenantScopedMixin


class LedgerEntry(Base, TimestampMixin, TenantScopedMixin):
    """One debit (positive amount) or credit (negative amount) leg of a transaction.

    `company_id` is copied from the owning header on every flush and is never
    edited on its own.
    """
    __tablename__ = "transaction_entries"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)

    # Relationships
    transaction = relationship("TransactionHeader", back_populates="entries")
    account = relationship("Account")
    cost_center = relationship("CostCenter")

    @property
    def side(self) -> str:
        return "debit" if self.amount >= 0 else "credit"
