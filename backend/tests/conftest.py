# tests/conftest.py
"""
Pytest fixtures for the ledger tests.

Every test gets a fresh in-memory SQLite database. Fixture data is written
through a system session (no principal bound, so the tenant rule is off);
tests then open sessions bound to a principal to exercise the rule.
"""

import os
import tempfile

# Configure the environment before any application import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ledger-logs-"))

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import access_rule  # noqa: F401  registers the tenant listeners
import ledger_validation  # noqa: F401  registers the commit-time check
from access_rule import Principal, bind_principal
from database import Base
from models import (
    Account, AccountClass, Company, MembershipRole, TenantMembership,
    TransactionHeader, TransactionType,
)

OWNER = Principal(user_id="owner-1")
COLLABORATOR = Principal(user_id="collab-1")
OUTSIDER = Principal(user_id="owner-2")
SUPERUSER = Principal(user_id="root", is_admin=True)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def open_session(session_factory):
    """Opens sessions, optionally bound to a principal; all are closed at teardown."""
    sessions = []

    def _open(principal=None, **kw):
        session = bind_principal(session_factory(**kw), principal)
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.close()


@pytest.fixture
def system_db(open_session):
    # Fixture objects stay loaded after commit so reading their ids never
    # opens a transaction on the shared connection.
    return open_session(expire_on_commit=False)


@pytest.fixture
def company(system_db):
    """Tenant T1: OWNER is its admin, COLLABORATOR a plain member."""
    company = Company(name="Tenant One")
    system_db.add(company)
    system_db.flush()
    system_db.add_all([
        TenantMembership(company_id=company.id, user_id=OWNER.user_id, role=MembershipRole.ADMIN),
        TenantMembership(company_id=company.id, user_id=COLLABORATOR.user_id, role=MembershipRole.COLLABORATOR),
    ])
    system_db.commit()
    return company


@pytest.fixture
def second_company(system_db):
    """Tenant T2, owned by OUTSIDER only."""
    company = Company(name="Tenant Two")
    system_db.add(company)
    system_db.flush()
    system_db.add(TenantMembership(company_id=company.id, user_id=OUTSIDER.user_id, role=MembershipRole.ADMIN))
    system_db.commit()
    return company


def _accounts(db, company_id):
    cash = Account(company_id=company_id, code="1.1", name="Cash", account_class=AccountClass.ASSET)
    revenue = Account(company_id=company_id, code="3.1", name="Sales", account_class=AccountClass.REVENUE)
    expense = Account(company_id=company_id, code="4.1", name="Rent", account_class=AccountClass.EXPENSE)
    db.add_all([cash, revenue, expense])
    db.commit()
    return cash, revenue, expense


@pytest.fixture
def accounts(system_db, company):
    return _accounts(system_db, company.id)


@pytest.fixture
def second_accounts(system_db, second_company):
    return _accounts(system_db, second_company.id)


def make_header(db, company_id, description="Sale"):
    header = TransactionHeader(
        company_id=company_id,
        type=TransactionType.INCOME,
        cash_date=date(2024, 3, 1),
        competence_date=date(2024, 3, 1),
        description=description,
    )
    db.add(header)
    db.flush()
    return header
