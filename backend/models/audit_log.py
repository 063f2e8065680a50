from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from database import Base
from models.audit_mixin import utcnow


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = Column(String, nullable=True)
    action = Column(String, nullable=False)  # e.g., 'INSERT', 'UPDATE', 'DELETE'
    table_name = Column(String, nullable=False)
    record_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
