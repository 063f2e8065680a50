# tests/test_access_rule.py
"""
Tests for the tenant access rule (row filter and write guard).
"""

from decimal import Decimal

import pytest

from conftest import make_header, OWNER, COLLABORATOR, OUTSIDER, SUPERUSER
from access_rule import (
    BYPASS_KEY, accessible_tenant_ids, can_access, can_manage_members, is_bypassed, rls_bypass,
)
from crud import companies as companies_crud
from crud.transaction_entries import insert_entries, sum_and_count
from exceptions import PermissionDenied
from models import Account, AccountClass, Company, LedgerEntry, MembershipRole, TenantMembership, TransactionHeader
from schemas.company import CompanyCreate
from schemas.transaction_entry import LedgerEntryCreate


@pytest.fixture
def posted(system_db, company, accounts):
    """A balanced transaction of tenant T1."""
    cash, revenue, _ = accounts
    header = make_header(system_db, company.id)
    insert_entries(system_db, header.id, company.id, [
        LedgerEntryCreate(account_id=cash.id, amount=Decimal("100.00")),
        LedgerEntryCreate(account_id=revenue.id, amount=Decimal("-100.00")),
    ])
    system_db.commit()
    return header


def test_member_sees_own_tenant_rows(open_session, company, posted):
    db = open_session(COLLABORATOR)

    assert db.query(LedgerEntry).count() == 2
    assert [h.id for h in db.query(TransactionHeader).all()] == [posted.id]
    assert db.query(Account).count() == 3
    assert [c.id for c in db.query(Company).all()] == [company.id]


def test_outsider_reads_nothing_of_a_foreign_tenant(open_session, second_company, posted):
    db = open_session(OUTSIDER)

    assert db.query(LedgerEntry).all() == []
    assert db.query(LedgerEntry).filter(LedgerEntry.transaction_id == posted.id).count() == 0
    assert db.get(TransactionHeader, posted.id) is None
    assert db.query(Account).count() == 0
    assert [c.id for c in db.query(Company).all()] == [second_company.id]


def test_outsider_aggregate_sees_no_lines(open_session, second_company, posted):
    db = open_session(OUTSIDER)

    assert sum_and_count(db, posted.id) == (Decimal("0.00"), 0)


def test_global_admin_sees_every_tenant(open_session, company, second_company, posted):
    db = open_session(SUPERUSER)

    assert db.query(LedgerEntry).count() == 2
    assert {c.id for c in db.query(Company).all()} == {company.id, second_company.id}


def test_bypass_lifts_the_filter_and_restores_state(open_session, second_company, posted):
    db = open_session(OUTSIDER)

    with rls_bypass(db):
        assert is_bypassed(db)
        assert db.query(LedgerEntry).count() == 2
    assert not is_bypassed(db)
    assert db.query(LedgerEntry).count() == 0

    db.info[BYPASS_KEY] = True
    with rls_bypass(db):
        pass
    assert is_bypassed(db)


def test_outsider_cannot_insert_into_a_foreign_tenant(open_session, company, second_company):
    db = open_session(OUTSIDER)
    db.add(Account(company_id=company.id, code="9.9", name="Intruder", account_class=AccountClass.ASSET))

    with pytest.raises(PermissionDenied) as exc_info:
        db.commit()
    db.rollback()

    assert str(exc_info.value) == "Permission denied"


def test_outsider_cannot_attach_lines_to_a_foreign_header(open_session, second_company, second_accounts, posted):
    db = open_session(OUTSIDER)
    cash, _, _ = second_accounts
    db.add(LedgerEntry(transaction_id=posted.id, account_id=cash.id, amount=Decimal("1.00")))

    with pytest.raises(PermissionDenied):
        db.flush()
    db.rollback()


def test_insert_entries_treats_a_foreign_header_as_missing(open_session, second_company, second_accounts, posted):
    db = open_session(OUTSIDER)
    cash, _, _ = second_accounts

    with pytest.raises(ValueError, match="not found"):
        insert_entries(db, posted.id, second_company.id, [LedgerEntryCreate(account_id=cash.id, amount=Decimal("1.00"))])
    db.rollback()


def test_member_cannot_move_a_row_to_a_foreign_tenant(open_session, company, second_company, accounts):
    db = open_session(OWNER)
    cash = db.get(Account, accounts[0].id)
    cash.company_id = second_company.id

    with pytest.raises(PermissionDenied):
        db.commit()
    db.rollback()


def test_rows_loaded_under_bypass_cannot_be_deleted(open_session, company, second_company, accounts):
    db = open_session(OUTSIDER)
    with rls_bypass(db):
        cash = db.get(Account, accounts[0].id)
    db.delete(cash)

    with pytest.raises(PermissionDenied):
        db.commit()
    db.rollback()


def test_can_access(system_db, company, second_company):
    assert can_access(system_db, OWNER, company.id)
    assert can_access(system_db, COLLABORATOR, company.id)
    assert not can_access(system_db, OUTSIDER, company.id)
    assert not can_access(system_db, OWNER, None)
    assert can_access(system_db, SUPERUSER, second_company.id)
    assert accessible_tenant_ids(system_db, OWNER) == {company.id}


def test_only_tenant_admins_manage_members(system_db, company):
    assert can_manage_members(system_db, OWNER, company.id)
    assert not can_manage_members(system_db, COLLABORATOR, company.id)
    assert not can_manage_members(system_db, OUTSIDER, company.id)
    assert can_manage_members(system_db, SUPERUSER, company.id)


def test_collaborator_cannot_add_members(open_session, company):
    db = open_session(COLLABORATOR)
    db.add(TenantMembership(company_id=company.id, user_id="newcomer", role=MembershipRole.ADMIN))

    with pytest.raises(PermissionDenied):
        db.commit()
    db.rollback()


def test_tenant_admin_adds_and_removes_members(open_session, company):
    db = open_session(OWNER)
    membership = TenantMembership(company_id=company.id, user_id="newcomer", role=MembershipRole.ACCOUNTANT)
    db.add(membership)
    db.commit()

    assert {m.user_id for m in db.query(TenantMembership).all()} == {OWNER.user_id, COLLABORATOR.user_id, "newcomer"}

    db.delete(membership)
    db.commit()
    assert db.query(TenantMembership).filter_by(user_id="newcomer").count() == 0


def test_outsider_sees_only_own_memberships(open_session, company, second_company):
    db = open_session(OUTSIDER)

    assert [(m.company_id, m.user_id) for m in db.query(TenantMembership).all()] == [
        (second_company.id, OUTSIDER.user_id)
    ]


def test_any_principal_may_open_a_company(open_session, company):
    db = open_session(OUTSIDER)

    created = companies_crud.create_company(db, CompanyCreate(name="Fresh Co"), OUTSIDER)

    memberships = db.query(TenantMembership).filter_by(company_id=created.id).all()
    assert [(m.user_id, m.role) for m in memberships] == [(OUTSIDER.user_id, MembershipRole.ADMIN)]
    assert [c.id for c in db.query(Company).all()] == [created.id]


def test_default_company_is_created_once(open_session):
    db = open_session(OWNER)

    first = companies_crud.ensure_default_company(db, OWNER)
    second = companies_crud.ensure_default_company(db, OWNER)

    assert [c.name for c in first] == [companies_crud.DEFAULT_COMPANY_NAME]
    assert [c.id for c in second] == [first[0].id]
