from sqlalchemy.orm import Session
from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate


def create_audit_log(db: Session, log_entry: AuditLogCreate):
    """Adds an audit row to the ambient transaction; it commits or rolls back with it."""
    db_log_entry = AuditLog(**log_entry.model_dump())
    db.add(db_log_entry)
    return db_log_entry


def get_audit_logs(db: Session, company_id: int, table_name: str = None, record_id: int = None, limit: int = 100):
    query = db.query(AuditLog).filter(AuditLog.company_id == company_id)
    if table_name:
        query = query.filter(AuditLog.table_name == table_name)
    if record_id is not None:
        query = query.filter(AuditLog.record_id == record_id)
    return query.order_by(AuditLog.id.desc()).limit(limit).all()
