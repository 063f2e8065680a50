from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from access_rule import Principal, bind_principal, can_access
from database import get_db
from utils.auth_utils import get_principal


def get_tenant_db(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> Session:
    """Database session with the tenant access rule bound to the caller."""
    return bind_principal(db, principal)


def get_tenant_id(
    x_tenant_id: str = Header(...),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_tenant_db),
) -> int:
    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is missing")
    try:
        tenant_id = int(x_tenant_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header must be a company id")
    # A company the caller cannot access looks exactly like one that does not exist
    if not can_access(db, principal, tenant_id):
        raise HTTPException(status_code=404, detail="Company not found")
    return tenant_id
