from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class AuditLogCreate(BaseModel):
    company_id: Optional[int] = None
    user_id: Optional[str] = None
    action: str
    table_name: str
    record_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None


class AuditLog(AuditLogCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
