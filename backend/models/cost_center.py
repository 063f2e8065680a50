from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin, TenantScopedMixin


class CostCenter(Base, TimestampMixin, TenantScopedMixin):
    __tablename__ = "cost_centers"
    __table_args__ = (UniqueConstraint('company_id', 'code', name='_company_cost_center_code_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(20), nullable=False)
    name = Column(String(100), nullable=False)
    parent_id = Column(Integer, ForeignKey("cost_centers.id", ondelete="SET NULL"), nullable=True)

    parent = relationship("CostCenter", remote_side=[id], backref="children")
