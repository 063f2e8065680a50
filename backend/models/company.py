from sqlalchemy import Column, Integer, String, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin, TenantScopedMixin


class AccountingRegime(str, enum.Enum):
    CASH = "cash"
    ACCRUAL = "accrual"


class MembershipRole(str, enum.Enum):
    ADMIN = "admin"
    COLLABORATOR = "collaborator"
    ACCOUNTANT = "accountant"


class Company(Base, TimestampMixin, TenantScopedMixin):
    __tablename__ = "companies"
    # A company is its own tenant
    __tenant_column__ = "id"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    tax_id = Column(String, nullable=True)
    default_regime = Column(Enum(AccountingRegime, name="accounting_regime", values_callable=lambda e: [m.value for m in e]),
                            default=AccountingRegime.CASH, nullable=False)

    memberships = relationship("TenantMembership", back_populates="company", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Company(id={self.id}, name={self.name})>"


class TenantMembership(Base, TimestampMixin):
    """Links a principal (identity provider subject) to a company with a role."""
    __tablename__ = "company_users"
    __table_args__ = (UniqueConstraint('company_id', 'user_id', name='_company_user_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    role = Column(Enum(MembershipRole, name="app_role", values_callable=lambda e: [m.value for m in e]),
                  default=MembershipRole.COLLABORATOR, nullable=False)

    company = relationship("Company", back_populates="memberships")

    def __repr__(self):
        return f"<TenantMembership(company_id={self.company_id}, user_id={self.user_id}, role={self.role})>"
