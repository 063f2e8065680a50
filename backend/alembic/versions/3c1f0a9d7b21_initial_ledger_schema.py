"""initial ledger schema

Revision ID: 3c1f0a9d7b21
Revises:
Create Date: 2026-10-19 10:12:44.381902

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d7b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


accounting_regime = postgresql.ENUM('cash', 'accrual', name='accounting_regime', create_type=False)
app_role = postgresql.ENUM('admin', 'collaborator', 'accountant', name='app_role', create_type=False)
account_class = postgresql.ENUM('asset', 'liability', 'equity', 'revenue', 'expense', name='account_class', create_type=False)
financial_account_type = postgresql.ENUM('bank', 'cash', 'credit_card', name='financial_account_type', create_type=False)
transaction_type = postgresql.ENUM('income', 'expense', name='transaction_type', create_type=False)
transaction_status = postgresql.ENUM('scheduled', 'pending', 'realized', 'reconciled', name='transaction_status', create_type=False)
transaction_recurrence_type = postgresql.ENUM('none', 'installment', 'fixed', name='transaction_recurrence_type', create_type=False)

ENUMS = (
    accounting_regime, app_role, account_class, financial_account_type,
    transaction_type, transaction_status, transaction_recurrence_type,
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('tax_id', sa.String(), nullable=True),
        sa.Column('default_regime', accounting_regime, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_companies_id', 'companies', ['id'])

    op.create_table(
        'company_users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('role', app_role, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'user_id', name='_company_user_uc'),
    )
    op.create_index('ix_company_users_id', 'company_users', ['id'])
    op.create_index('ix_company_users_company_id', 'company_users', ['company_id'])
    op.create_index('ix_company_users_user_id', 'company_users', ['user_id'])

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('class', account_class, nullable=False),
        sa.Column('account_type', sa.String(), nullable=True),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'code', name='_company_account_code_uc'),
    )
    op.create_index('ix_accounts_id', 'accounts', ['id'])
    op.create_index('ix_accounts_company_id', 'accounts', ['company_id'])
    op.create_index('ix_accounts_code', 'accounts', ['code'])

    op.create_table(
        'cost_centers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('cost_centers.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('company_id', 'code', name='_company_cost_center_code_uc'),
    )
    op.create_index('ix_cost_centers_id', 'cost_centers', ['id'])
    op.create_index('ix_cost_centers_company_id', 'cost_centers', ['company_id'])

    op.create_table(
        'financial_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', financial_account_type, nullable=False),
        sa.Column('initial_balance', sa.Numeric(14, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_financial_accounts_id', 'financial_accounts', ['id'])
    op.create_index('ix_financial_accounts_company_id', 'financial_accounts', ['company_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('financial_account_id', sa.Integer(), sa.ForeignKey('financial_accounts.id'), nullable=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('cost_center_id', sa.Integer(), sa.ForeignKey('cost_centers.id'), nullable=True),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('cash_date', sa.Date(), nullable=False),
        sa.Column('competence_date', sa.Date(), nullable=False),
        sa.Column('status', transaction_status, nullable=False),
        sa.Column('recurrence_type', transaction_recurrence_type, nullable=False),
        sa.Column('recurrence_total', sa.Integer(), nullable=True),
        sa.Column('recurrence_index', sa.Integer(), nullable=True),
        sa.Column('recurrence_parent_id', sa.Integer(), sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('origin', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_transactions_id', 'transactions', ['id'])
    op.create_index('ix_transactions_company_id', 'transactions', ['company_id'])

    op.create_table(
        'transaction_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('cost_center_id', sa.Integer(), sa.ForeignKey('cost_centers.id'), nullable=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_transaction_entries_id', 'transaction_entries', ['id'])
    op.create_index('ix_transaction_entries_company_id', 'transaction_entries', ['company_id'])
    op.create_index('ix_transaction_entries_transaction_id', 'transaction_entries', ['transaction_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])
    op.create_index('ix_audit_log_company_id', 'audit_log', ['company_id'])


def downgrade() -> None:
    for table in (
        'audit_log', 'transaction_entries', 'transactions', 'financial_accounts',
        'cost_centers', 'accounts', 'company_users', 'companies',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
