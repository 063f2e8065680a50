"""
Tenant access rule, applied as ORM middleware.

Every session that serves a request is bound to the acting principal. Two
session event listeners then enforce the rule on every guarded table
(companies, accounts, cost centers, financial accounts, transactions and
transaction entries):

- ``do_orm_execute`` adds a loader criteria to each SELECT so rows of tenants
  the principal is not a member of are simply not there (USING).
- ``before_flush`` checks every pending insert, update and delete: the row's
  current tenant must be accessible (USING) and the tenant id being written
  must be accessible too (WITH CHECK). A failure raises ``PermissionDenied``
  before any SQL reaches the database.
- ORM bulk ``update()`` / ``delete()`` statements are narrowed to the
  principal's tenants, and bulk writes that would place rows in a foreign
  tenant raise ``PermissionDenied``.

Sessions without a principal (migrations, maintenance scripts, the commit-time
ledger check) are not filtered. ``rls_bypass(session)`` lifts the rule
temporarily for a bound session.
"""
import logging
from contextlib import contextmanager
from typing import NamedTuple, Optional, Set

from sqlalchemy import event, inspect, or_, select
from sqlalchemy.orm import Session, with_loader_criteria

from exceptions import PermissionDenied
from models import TENANT_SCOPED_MODELS, Company, TenantMembership, MembershipRole
from models.audit_mixin import TenantScopedMixin

logger = logging.getLogger(__name__)

PRINCIPAL_KEY = "principal"
BYPASS_KEY = "rls_bypass"

_memberships = TenantMembership.__table__


class Principal(NamedTuple):
    """Authenticated actor supplied by the identity provider."""

    user_id: str
    is_admin: bool = False  # global capability, independent of any tenant


def bind_principal(session: Session, principal: Optional[Principal]) -> Session:
    session.info[PRINCIPAL_KEY] = principal
    return session


def current_principal(session: Session) -> Optional[Principal]:
    return session.info.get(PRINCIPAL_KEY)


def is_bypassed(session: Session) -> bool:
    return bool(session.info.get(BYPASS_KEY))


@contextmanager
def rls_bypass(session: Session):
    """
    Temporarily lift the access rule for ``session``.

    Saves the previous bypass state and restores it on exit.

    Usage:
        with rls_bypass(db):
            headers = db.query(TransactionHeader).all()
    """
    previous = session.info.get(BYPASS_KEY, False)
    session.info[BYPASS_KEY] = True
    try:
        yield session
    finally:
        session.info[BYPASS_KEY] = previous


def member_tenant_ids(user_id: str):
    """Subquery of the company ids ``user_id`` is linked to.

    Built on the table rather than the mapped class so the membership
    criteria below is never applied to it recursively.
    """
    return select(_memberships.c.company_id).where(_memberships.c.user_id == user_id)


def _enforced(session: Session) -> Optional[Principal]:
    principal = current_principal(session)
    if principal is None or principal.is_admin or is_bypassed(session):
        return None
    return principal


def can_access(db: Session, principal: Principal, tenant_id: Optional[int]) -> bool:
    """True iff ``principal`` is a member of ``tenant_id`` (any role) or a global admin."""
    if principal.is_admin:
        return True
    if tenant_id is None:
        return False
    row = db.execute(
        select(_memberships.c.id).where(
            _memberships.c.company_id == tenant_id,
            _memberships.c.user_id == principal.user_id,
        )
    ).first()
    return row is not None


def can_manage_members(db: Session, principal: Principal, tenant_id: Optional[int]) -> bool:
    """Global admins and tenant admins may change a tenant's memberships."""
    if principal.is_admin:
        return True
    if tenant_id is None:
        return False
    row = db.execute(
        select(_memberships.c.id).where(
            _memberships.c.company_id == tenant_id,
            _memberships.c.user_id == principal.user_id,
            _memberships.c.role == MembershipRole.ADMIN,
        )
    ).first()
    return row is not None


def accessible_tenant_ids(db: Session, principal: Principal) -> Set[int]:
    return set(db.execute(member_tenant_ids(principal.user_id)).scalars().all())


@event.listens_for(Session, "do_orm_execute")
def apply_tenant_row_filter(execute_state):
    """
    Hide rows of foreign tenants from every ORM SELECT.

    Relationship and column loads are skipped: the criteria added to the
    parent statement propagates to them.
    """
    if (
        not execute_state.is_select
        or not execute_state.is_orm_statement
        or execute_state.is_column_load
        or execute_state.is_relationship_load
        or execute_state.execution_options.get(BYPASS_KEY, False)
    ):
        return

    principal = _enforced(execute_state.session)
    if principal is None:
        return

    visible = member_tenant_ids(principal.user_id)
    options = [
        with_loader_criteria(model, model.tenant_column().in_(visible), include_aliases=True)
        for model in TENANT_SCOPED_MODELS
    ]
    options.append(
        with_loader_criteria(
            TenantMembership,
            or_(TenantMembership.user_id == principal.user_id, TenantMembership.company_id.in_(visible)),
            include_aliases=True,
        )
    )
    execute_state.statement = execute_state.statement.options(*options)


def bulk_target(execute_state):
    """Mapped class written by an ORM-enabled INSERT, UPDATE or DELETE, else None."""
    if not execute_state.is_orm_statement or execute_state.is_select:
        return None
    if not (execute_state.is_insert or execute_state.is_update or execute_state.is_delete):
        return None
    mapper = execute_state.bind_mapper
    return mapper.class_ if mapper is not None else None


def bulk_parameter_rows(execute_state):
    params = execute_state.parameters
    if isinstance(params, (list, tuple)):
        return list(params)
    return [params] if params else []


def rows_addressed(execute_state, model, *columns, bypass=True):
    """
    Rows a bulk UPDATE or DELETE addresses, keyed by id.

    Statements executed with a list of parameter dicts address rows by
    primary key; the others by their WHERE clause.
    """
    statement = execute_state.statement
    query = select(model.id, *columns)
    params = execute_state.parameters
    if isinstance(params, (list, tuple)) and params:
        query = query.where(model.id.in_({row["id"] for row in params}))
    elif statement.whereclause is not None:
        query = query.where(statement.whereclause)
    query = query.execution_options(**{BYPASS_KEY: bypass})
    return {row[0]: tuple(row[1:]) for row in execute_state.session.execute(query)}


@event.listens_for(Session, "do_orm_execute")
def enforce_tenant_bulk_writes(execute_state):
    """
    Apply the rule to ORM bulk statements, which never pass through a flush.

    DELETE and UPDATE are narrowed to the principal's tenants. An UPDATE must
    leave every row it touched in an accessible tenant. INSERT must carry its
    rows as parameter dicts whose tenant ids are accessible.
    """
    model = bulk_target(execute_state)
    if model is None or execute_state.execution_options.get(BYPASS_KEY, False):
        return
    session = execute_state.session
    principal = _enforced(session)
    if principal is None:
        return

    if model is TenantMembership:
        raise _deny(principal, "bulk write", model)
    if not issubclass(model, TenantScopedMixin):
        return

    allowed = accessible_tenant_ids(session, principal)

    if execute_state.is_insert:
        rows = bulk_parameter_rows(execute_state)
        if not rows or any(row.get(model.__tenant_column__) not in allowed for row in rows):
            raise _deny(principal, "bulk insert", model)
        return

    params = execute_state.parameters
    if isinstance(params, (list, tuple)) and params:
        # By primary key: every addressed row must be visible
        wanted = {row["id"] for row in params}
        visible = rows_addressed(execute_state, model, bypass=False)
        if wanted - set(visible):
            raise _deny(principal, "bulk " + ("update" if execute_state.is_update else "delete"), model)
    else:
        execute_state.statement = execute_state.statement.where(
            model.tenant_column().in_(member_tenant_ids(principal.user_id))
        )

    if execute_state.is_delete:
        return

    touched = list(rows_addressed(execute_state, model))
    result = execute_state.invoke_statement()
    if touched:
        escaped = session.execute(
            select(model.id).where(
                model.id.in_(touched), model.tenant_column().not_in(allowed)
            ).execution_options(**{BYPASS_KEY: True})
        ).first()
        if escaped is not None:
            raise _deny(principal, "bulk update", model)
    return result


def _previous_value(obj, key):
    history = inspect(obj).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return getattr(obj, key)


def _deny(principal: Principal, action: str, target) -> PermissionDenied:
    # target is a mapped instance or, for bulk statements, the mapped class
    logger.warning(
        f"Denied {action} on {target.__tablename__} for principal {principal.user_id}"
    )
    return PermissionDenied()


@event.listens_for(Session, "before_flush")
def enforce_tenant_write_rule(session, flush_context, instances):
    """Check USING and WITH CHECK for every row about to be written."""
    principal = _enforced(session)
    if principal is None:
        return

    allowed = accessible_tenant_ids(session, principal)
    new_companies = {obj for obj in session.new if isinstance(obj, Company)}

    for obj in session.new:
        if isinstance(obj, TenantMembership):
            if obj.company in new_companies:
                continue
            if not can_manage_members(session, principal, obj.company_id):
                raise _deny(principal, "insert", obj)
        elif isinstance(obj, Company):
            # Any principal may open a new company; it is linked to its creator.
            continue
        elif isinstance(obj, TenantScopedMixin):
            if obj.tenant_value() not in allowed:
                raise _deny(principal, "insert", obj)

    for obj in session.dirty:
        if not session.is_modified(obj, include_collections=False):
            continue
        if isinstance(obj, TenantMembership):
            old_tenant = _previous_value(obj, "company_id")
            if not (can_manage_members(session, principal, old_tenant)
                    and can_manage_members(session, principal, obj.company_id)):
                raise _deny(principal, "update", obj)
        elif isinstance(obj, TenantScopedMixin):
            old_tenant = _previous_value(obj, obj.__tenant_column__)
            if old_tenant not in allowed or obj.tenant_value() not in allowed:
                raise _deny(principal, "update", obj)

    for obj in session.deleted:
        if isinstance(obj, TenantMembership):
            if not can_manage_members(session, principal, _previous_value(obj, "company_id")):
                raise _deny(principal, "delete", obj)
        elif isinstance(obj, TenantScopedMixin):
            if _previous_value(obj, obj.__tenant_column__) not in allowed:
                raise _deny(principal, "delete", obj)
