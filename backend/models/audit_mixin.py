from sqlalchemy import Column, DateTime
from datetime import datetime
import pytz


def utcnow():
    return datetime.now(pytz.utc)


class TimestampMixin:
    """Mixin that provides created/updated timestamps.

    `updated_at` is refreshed by the ORM on every UPDATE, which replaces the
    per-table "touch updated_at" database trigger.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class TenantScopedMixin:
    """Marks a model as guarded by the tenant access rule.

    `__tenant_column__` names the column holding the owning company id.
    """
    __tenant_column__ = "company_id"

    @classmethod
    def tenant_column(cls):
        return getattr(cls, cls.__tenant_column__)

    def tenant_value(self):
        return getattr(self, self.__tenant_column__)
