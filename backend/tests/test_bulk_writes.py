# tests/test_bulk_writes.py
"""
Tests for ORM bulk update(), delete() and insert() statements against the
tenant rule and the commit-time double-entry check.
"""

from decimal import Decimal

import pytest
from sqlalchemy import delete, insert, select, update

from conftest import make_header, OWNER, OUTSIDER
from crud.transaction_entries import insert_entries, sum_and_count
from exceptions import PermissionDenied, TooFewLines, Unbalanced, UnsupportedWrite
from ledger_validation import dirty_headers
from models import Account, AccountClass, LedgerEntry, TenantMembership, TransactionHeader
from schemas.transaction_entry import LedgerEntryCreate

_entries = LedgerEntry.__table__


def post(db, company_id, debit_account, credit_account, amount="100.00", description="Sale"):
    header = make_header(db, company_id, description)
    insert_entries(db, header.id, company_id, [
        LedgerEntryCreate(account_id=debit_account.id, amount=Decimal(amount)),
        LedgerEntryCreate(account_id=credit_account.id, amount=-Decimal(amount)),
    ])
    db.commit()
    return header


@pytest.fixture
def posted(system_db, company, accounts):
    cash, revenue, _ = accounts
    return post(system_db, company.id, cash, revenue)


def line_count(open_session, header_id):
    rows = open_session().execute(select(_entries.c.id).where(_entries.c.transaction_id == header_id))
    return len(rows.all())


# --- double-entry check ---


def test_bulk_amount_update_is_checked_at_commit(open_session, posted):
    db = open_session(OWNER)
    db.execute(
        update(LedgerEntry)
        .where(LedgerEntry.transaction_id == posted.id, LedgerEntry.amount > 0)
        .values(amount=Decimal("5.00"))
    )

    with pytest.raises(Unbalanced) as exc_info:
        db.commit()
    db.rollback()

    assert exc_info.value.header_id == posted.id
    assert sum_and_count(open_session(), posted.id) == (Decimal("0.00"), 2)


def test_bulk_delete_of_every_line_is_rejected(system_db, open_session, posted):
    system_db.execute(delete(LedgerEntry).where(LedgerEntry.transaction_id == posted.id))

    with pytest.raises(TooFewLines):
        system_db.commit()
    system_db.rollback()

    assert line_count(open_session, posted.id) == 2


def test_bulk_move_marks_both_headers(system_db, company, accounts):
    cash, revenue, expense = accounts
    first = post(system_db, company.id, cash, revenue, "5.00", "first")
    second = post(system_db, company.id, cash, expense, "5.00", "second")
    moved = system_db.execute(
        select(_entries.c.id).where(_entries.c.transaction_id == first.id)
    ).scalars().first()

    system_db.execute(update(LedgerEntry).where(LedgerEntry.id == moved).values(transaction_id=second.id))
    assert dirty_headers(system_db) == {first.id, second.id}

    with pytest.raises(TooFewLines) as exc_info:
        system_db.commit()
    system_db.rollback()

    assert exc_info.value.header_id == first.id


def test_bulk_update_rederives_the_line_company(system_db, open_session, company, second_company, posted):
    system_db.execute(
        update(LedgerEntry).where(LedgerEntry.transaction_id == posted.id).values(company_id=second_company.id)
    )
    system_db.commit()

    companies = open_session().execute(
        select(_entries.c.company_id).where(_entries.c.transaction_id == posted.id)
    ).scalars().all()
    assert set(companies) == {company.id}


def test_bulk_header_update_moves_its_lines(system_db, open_session, second_company, posted):
    system_db.execute(
        update(TransactionHeader).where(TransactionHeader.id == posted.id).values(company_id=second_company.id)
    )
    system_db.commit()

    companies = open_session().execute(
        select(_entries.c.company_id).where(_entries.c.transaction_id == posted.id)
    ).scalars().all()
    assert set(companies) == {second_company.id}


def test_bulk_insert_of_lines_is_refused(system_db, company, accounts, posted):
    cash, _, _ = accounts

    with pytest.raises(UnsupportedWrite):
        system_db.execute(insert(LedgerEntry), [
            {"transaction_id": posted.id, "company_id": company.id, "account_id": cash.id, "amount": Decimal("1.00")},
        ])
    system_db.rollback()


# --- tenant rule ---


def test_outsider_bulk_delete_leaves_foreign_lines(open_session, second_company, posted):
    db = open_session(OUTSIDER)
    db.execute(delete(LedgerEntry).where(LedgerEntry.transaction_id == posted.id))
    db.commit()

    assert line_count(open_session, posted.id) == 2


def test_outsider_bulk_update_touches_nothing(open_session, second_company, posted):
    db = open_session(OUTSIDER)
    db.execute(
        update(LedgerEntry).where(LedgerEntry.transaction_id == posted.id).values(amount=Decimal("1.00"))
    )
    db.commit()

    assert sum_and_count(open_session(), posted.id) == (Decimal("0.00"), 2)


def test_member_bulk_update_cannot_move_rows_out(open_session, second_company, accounts):
    cash, _, _ = accounts
    db = open_session(OWNER)

    with pytest.raises(PermissionDenied):
        db.execute(update(Account).where(Account.id == cash.id).values(company_id=second_company.id))
    db.rollback()

    assert open_session().get(Account, cash.id).company_id == cash.company_id


def test_bulk_update_by_primary_key_needs_every_row_visible(open_session, accounts, second_accounts):
    cash, _, _ = accounts
    foreign_cash, _, _ = second_accounts
    db = open_session(OWNER)

    with pytest.raises(PermissionDenied):
        db.execute(update(Account), [
            {"id": cash.id, "name": "Petty cash"},
            {"id": foreign_cash.id, "name": "Petty cash"},
        ])
    db.rollback()

    names = {a.name for a in open_session().query(Account).filter(Account.id.in_([cash.id, foreign_cash.id]))}
    assert names == {"Cash"}


def test_outsider_bulk_insert_into_a_foreign_tenant_is_denied(open_session, company, second_company):
    db = open_session(OUTSIDER)

    with pytest.raises(PermissionDenied):
        db.execute(insert(Account), [
            {"company_id": company.id, "code": "9.9", "name": "Planted", "account_class": AccountClass.ASSET},
        ])
    db.rollback()


def test_member_bulk_insert_into_own_tenant(open_session, company):
    db = open_session(OWNER)
    db.execute(insert(Account), [
        {"company_id": company.id, "code": "5.1", "name": "Payroll", "account_class": AccountClass.EXPENSE},
    ])
    db.commit()

    assert open_session(OWNER).query(Account).filter_by(code="5.1").count() == 1


def test_bulk_membership_writes_are_denied(open_session, company):
    db = open_session(OWNER)

    with pytest.raises(PermissionDenied):
        db.execute(delete(TenantMembership).where(TenantMembership.company_id == company.id))
    db.rollback()
