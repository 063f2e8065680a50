# tests/test_transactions.py
"""
Tests for saving transactions (header plus entry lines) in one unit of work.
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import OWNER
from crud import transactions as transactions_crud
from exceptions import TooFewLines, Unbalanced
from models import AuditLog, LedgerEntry, RecurrenceType, TransactionHeader, TransactionStatus, TransactionType
from schemas.transaction import TransactionCreate, TransactionFilters, TransactionUpdate
from schemas.transaction_entry import LedgerEntryCreate


def payload(lines, **kw):
    data = dict(
        cash_date=date(2024, 5, 10),
        competence_date=date(2024, 5, 1),
        description="Monthly rent",
        lines=[LedgerEntryCreate(account_id=a, amount=Decimal(v)) for a, v in lines],
    )
    data.update(kw)
    return data


@pytest.fixture
def db(open_session, company):
    return open_session(OWNER)


def test_create_saves_header_lines_and_audit(db, company, accounts):
    cash, _, expense = accounts
    tx = TransactionCreate(**payload([(expense.id, "1200.00"), (cash.id, "-1200.00")]))

    header = transactions_crud.create_transaction(db, tx, company.id, OWNER.user_id)

    assert header.amount == Decimal("1200.00")
    assert header.type == TransactionType.INCOME
    assert header.user_id == OWNER.user_id
    assert [(e.account_id, e.amount, e.company_id) for e in header.entries] == [
        (expense.id, Decimal("1200.00"), company.id),
        (cash.id, Decimal("-1200.00"), company.id),
    ]
    log = db.query(AuditLog).one()
    assert (log.action, log.table_name, log.record_id) == ("INSERT", "transactions", header.id)
    assert len(log.details["new"]["entries"]) == 2


def test_explicit_type_is_kept(db, company, accounts):
    cash, _, expense = accounts
    tx = TransactionCreate(**payload([(expense.id, "10.00"), (cash.id, "-10.00")], type=TransactionType.EXPENSE))

    header = transactions_crud.create_transaction(db, tx, company.id, OWNER.user_id)

    assert header.type == TransactionType.EXPENSE


def test_unbalanced_create_leaves_nothing_behind(db, company, accounts):
    cash, _, expense = accounts
    tx = TransactionCreate(**payload([(expense.id, "100.00"), (cash.id, "-90.00")]))

    with pytest.raises(Unbalanced):
        transactions_crud.create_transaction(db, tx, company.id, OWNER.user_id)

    assert db.query(TransactionHeader).count() == 0
    assert db.query(LedgerEntry).count() == 0
    assert db.query(AuditLog).count() == 0


def test_single_line_create_is_rejected(db, company, accounts):
    cash, _, _ = accounts
    tx = TransactionCreate(**payload([(cash.id, "50.00")]))

    with pytest.raises(TooFewLines):
        transactions_crud.create_transaction(db, tx, company.id, OWNER.user_id)

    assert db.query(TransactionHeader).count() == 0


def test_unknown_account_is_a_value_error(db, company, accounts, second_accounts):
    cash, _, _ = accounts
    foreign = second_accounts[0]
    tx = TransactionCreate(**payload([(cash.id, "5.00"), (foreign.id, "-5.00")]))

    with pytest.raises(ValueError, match="not found"):
        transactions_crud.create_transaction(db, tx, company.id, OWNER.user_id)


def test_update_replaces_the_line_set(db, company, accounts):
    cash, revenue, expense = accounts
    header = transactions_crud.create_transaction(
        db, TransactionCreate(**payload([(cash.id, "100.00"), (revenue.id, "-100.00")])), company.id, OWNER.user_id,
    )

    update = TransactionUpdate(**payload(
        [(cash.id, "300.00"), (revenue.id, "-150.00"), (expense.id, "-150.00")],
        status=TransactionStatus.REALIZED,
    ))
    updated = transactions_crud.update_transaction(db, header.id, update, company.id, OWNER.user_id)

    assert updated.status == TransactionStatus.REALIZED
    assert updated.amount == Decimal("300.00")
    assert [e.amount for e in updated.entries] == [Decimal("300.00"), Decimal("-150.00"), Decimal("-150.00")]
    actions = [log.action for log in db.query(AuditLog).order_by(AuditLog.id)]
    assert actions == ["INSERT", "UPDATE"]


def test_unbalanced_update_keeps_the_previous_lines(db, company, accounts):
    cash, revenue, _ = accounts
    header = transactions_crud.create_transaction(
        db, TransactionCreate(**payload([(cash.id, "100.00"), (revenue.id, "-100.00")])), company.id, OWNER.user_id,
    )
    header_id = header.id

    with pytest.raises(Unbalanced):
        transactions_crud.update_transaction(
            db, header_id, TransactionUpdate(**payload([(cash.id, "100.00"), (revenue.id, "-99.99")])),
            company.id, OWNER.user_id,
        )

    kept = transactions_crud.get_transaction(db, header_id, company.id)
    assert [e.amount for e in kept.entries] == [Decimal("100.00"), Decimal("-100.00")]


def test_update_of_missing_transaction_returns_none(db, company, accounts):
    cash, revenue, _ = accounts
    update = TransactionUpdate(**payload([(cash.id, "1.00"), (revenue.id, "-1.00")]))

    assert transactions_crud.update_transaction(db, 999, update, company.id, OWNER.user_id) is None


def test_duplicate_copies_lines(db, company, accounts):
    cash, revenue, _ = accounts
    source = transactions_crud.create_transaction(
        db, TransactionCreate(**payload([(cash.id, "40.00"), (revenue.id, "-40.00")],
                                        recurrence_type=RecurrenceType.INSTALLMENT,
                                        recurrence_total=3, recurrence_index=1)),
        company.id, OWNER.user_id,
    )

    copy = transactions_crud.duplicate_transaction(db, source.id, company.id, OWNER.user_id)

    assert copy.id != source.id
    assert copy.recurrence_type == RecurrenceType.NONE
    assert copy.description == source.description
    assert [(e.account_id, e.amount) for e in copy.entries] == [(cash.id, Decimal("40.00")), (revenue.id, Decimal("-40.00"))]


def test_delete_removes_lines(db, company, accounts):
    cash, revenue, _ = accounts
    header = transactions_crud.create_transaction(
        db, TransactionCreate(**payload([(cash.id, "9.00"), (revenue.id, "-9.00")])), company.id, OWNER.user_id,
    )
    header_id = header.id

    assert transactions_crud.delete_transaction(db, header_id, company.id, OWNER.user_id)
    assert db.query(LedgerEntry).filter_by(transaction_id=header_id).count() == 0
    assert not transactions_crud.delete_transaction(db, header_id, company.id, OWNER.user_id)


def test_list_filters(db, company, accounts):
    cash, revenue, expense = accounts
    rent = transactions_crud.create_transaction(
        db, TransactionCreate(**payload([(expense.id, "10.00"), (cash.id, "-10.00")],
                                        description="Office RENT", cash_date=date(2024, 1, 5))),
        company.id, OWNER.user_id,
    )
    sale = transactions_crud.create_transaction(
        db, TransactionCreate(**payload([(cash.id, "20.00"), (revenue.id, "-20.00")],
                                        description="Sale", cash_date=date(2024, 2, 5),
                                        status=TransactionStatus.REALIZED)),
        company.id, OWNER.user_id,
    )

    def ids(**kw):
        return [h.id for h in transactions_crud.get_transactions(db, company.id, TransactionFilters(**kw))]

    assert ids() == [sale.id, rent.id]
    assert ids(description="rent") == [rent.id]
    assert ids(status=TransactionStatus.REALIZED) == [sale.id]
    assert ids(date_from=date(2024, 2, 1)) == [sale.id]
    assert ids(date_to=date(2024, 1, 31)) == [rent.id]
    assert ids(account_id=revenue.id) == [sale.id]
    assert ids(limit=1) == [sale.id]


def test_recurrence_fields_require_recurring_type():
    with pytest.raises(ValueError):
        TransactionCreate(**payload([(1, "1.00"), (2, "-1.00")], recurrence_total=2))


def test_zero_amount_line_is_rejected():
    with pytest.raises(ValueError):
        LedgerEntryCreate(account_id=1, amount=Decimal("0.00"))
