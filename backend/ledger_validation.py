"""
Double-entry validation for transaction lines.

Every transaction header whose lines were written must, when the ambient
database transaction commits, have at least two lines and lines that sum to
exactly zero. The check is deferred: inside an open transaction the lines of
a header may be deleted, re-inserted or edited through any number of
unbalanced intermediate states, and only the final state is validated.

How it works:
1. ``before_flush`` copies the owning company id from the header onto every
   new or changed line, and onto every line of a header whose company
   changed (the denormalised tenant id is never set by callers).
2. ``after_flush`` records the header id of every inserted, updated or
   deleted line in a per-session set.
3. ``before_commit`` flushes what is pending, locks each recorded header
   that still exists and runs ``check_balance`` on it once. The first
   violation is raised out of ``Session.commit()``; the caller rolls the
   whole transaction back (``session_scope`` and ``get_db`` do so).
4. ``after_transaction_end`` forgets the recorded headers once the root
   transaction ends, including when a session is closed without a rollback.

ORM bulk ``update()`` and ``delete()`` statements on lines never reach a flush;
``do_orm_execute`` records the headers they touch and re-derives the company
id of the lines they changed. Bulk ``insert()`` of lines is refused.
"""
import logging
from typing import Optional, Set

from sqlalchemy import event, inspect, select, update
from sqlalchemy.orm import Session

from access_rule import bulk_target, current_principal, rows_addressed
from crud.transaction_entries import sum_and_count
from exceptions import LedgerViolation, PermissionDenied, TooFewLines, Unbalanced, UnsupportedWrite
from models.transaction import TransactionHeader
from models.transaction_entry import LedgerEntry

logger = logging.getLogger(__name__)

DIRTY_HEADERS_KEY = "ledger_dirty_headers"

_headers = TransactionHeader.__table__
_entries = LedgerEntry.__table__


def dirty_headers(session: Session) -> Set[int]:
    return session.info.setdefault(DIRTY_HEADERS_KEY, set())


def mark_dirty(session: Session, header_id: Optional[int]) -> None:
    if header_id is not None:
        dirty_headers(session).add(header_id)


def check_balance(db: Session, header_id: int) -> Optional[LedgerViolation]:
    """
    Classifies the current line set of a header.

    Returns ``TooFewLines`` when fewer than two lines exist, ``Unbalanced``
    when the signed amounts do not sum to exactly zero, or None when the
    header is balanced. Reads only; calling it twice on an unchanged header
    gives the same answer.
    """
    total, count = sum_and_count(db, header_id, all_tenants=True)
    if count < 2:
        return TooFewLines(header_id, count)
    if total != 0:
        return Unbalanced(header_id, total)
    return None


def assert_balanced(db: Session, header_id: int) -> None:
    violation = check_balance(db, header_id)
    if violation is not None:
        raise violation


@event.listens_for(Session, "before_flush", insert=True)
def derive_entry_tenant(session, flush_context, instances):
    """Keep each line's company id equal to its header's."""
    for header in list(session.dirty):
        if not isinstance(header, TransactionHeader):
            continue
        if inspect(header).attrs.company_id.history.has_changes():
            # The lines follow their header; the write rule then checks both tenants
            for entry in header.entries:
                entry.company_id = header.company_id

    for obj in list(session.new) + list(session.dirty):
        if not isinstance(obj, LedgerEntry):
            continue
        if obj in session.dirty and not session.is_modified(obj, include_collections=False):
            continue
        header = obj.transaction
        if header is None or (obj.transaction_id is not None and header.id not in (None, obj.transaction_id)):
            header = session.get(TransactionHeader, obj.transaction_id) if obj.transaction_id is not None else None
        if header is None:
            if current_principal(session) is not None:
                raise PermissionDenied()
            continue
        obj.company_id = header.company_id


def _previous_header_ids(obj):
    history = inspect(obj).attrs["transaction_id"].history
    return list(history.deleted or ()) + list(history.unchanged or ())


@event.listens_for(Session, "after_flush")
def record_dirty_headers(session, flush_context):
    for obj in session.new:
        if isinstance(obj, LedgerEntry):
            mark_dirty(session, obj.transaction_id)

    for obj in session.dirty:
        if isinstance(obj, LedgerEntry) and session.is_modified(obj, include_collections=False):
            for header_id in _previous_header_ids(obj):
                mark_dirty(session, header_id)
            mark_dirty(session, obj.transaction_id)

    for obj in session.deleted:
        if isinstance(obj, LedgerEntry):
            for header_id in _previous_header_ids(obj):
                mark_dirty(session, header_id)


@event.listens_for(Session, "before_commit")
def validate_dirty_headers(session):
    """Run the double-entry check once per header touched in this transaction."""
    if session.in_nested_transaction():
        return

    session.flush()
    pending = sorted(dirty_headers(session))
    if not pending:
        return

    logger.debug(f"Validating {len(pending)} transaction(s) before commit: {pending}")
    for header_id in pending:
        exists = session.execute(
            select(_headers.c.id).where(_headers.c.id == header_id).with_for_update()
        ).first()
        if exists is None:
            # Header deleted in this transaction; its lines went with it.
            continue
        violation = check_balance(session, header_id)
        if violation is not None:
            logger.warning(f"Rejecting commit: {violation.message}")
            raise violation


def _resync_entry_tenants(session, criteria):
    """Re-derive ``company_id`` from the header for the lines matching ``criteria``."""
    session.execute(
        update(_entries)
        .where(criteria)
        .values(
            company_id=select(_headers.c.company_id)
            .where(_headers.c.id == _entries.c.transaction_id)
            .scalar_subquery()
        )
    )
    for obj in list(session.identity_map.values()):
        if isinstance(obj, LedgerEntry):
            session.expire(obj, ["company_id"])


@event.listens_for(Session, "do_orm_execute")
def record_bulk_line_writes(execute_state):
    """Track lines written by ORM bulk statements, which skip the flush hooks above."""
    model = bulk_target(execute_state)
    if model is LedgerEntry:
        if execute_state.is_insert:
            raise UnsupportedWrite()
        session = execute_state.session
        previous = rows_addressed(execute_state, LedgerEntry, LedgerEntry.transaction_id)
        result = execute_state.invoke_statement()
        for (header_id,) in previous.values():
            mark_dirty(session, header_id)
        if execute_state.is_update and previous:
            changed = _entries.c.id.in_(list(previous))
            for header_id in session.execute(select(_entries.c.transaction_id).where(changed)).scalars():
                mark_dirty(session, header_id)
            _resync_entry_tenants(session, changed)
        return result

    if model is TransactionHeader and execute_state.is_update:
        touched = list(rows_addressed(execute_state, TransactionHeader))
        result = execute_state.invoke_statement()
        if touched:
            _resync_entry_tenants(execute_state.session, _entries.c.transaction_id.in_(touched))
        return result


@event.listens_for(Session, "after_transaction_end")
def forget_headers(session, transaction):
    if transaction.parent is None:
        session.info.pop(DIRTY_HEADERS_KEY, None)
