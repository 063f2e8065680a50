from models.company import Company, TenantMembership, AccountingRegime, MembershipRole
from models.account import Account, AccountClass
from models.cost_center import CostCenter
from models.financial_account import FinancialAccount, FinancialAccountType
from models.transaction import TransactionHeader, TransactionType, TransactionStatus, RecurrenceType
from models.transaction_entry import LedgerEntry
from models.audit_log import AuditLog

# Tables guarded by the tenant access rule
TENANT_SCOPED_MODELS = (Company, Account, CostCenter, FinancialAccount, TransactionHeader, LedgerEntry)

__all__ = ['Account', 'AccountClass', 'AccountingRegime', 'AuditLog', 'Company', 'CostCenter', 'FinancialAccount', 'FinancialAccountType', 'LedgerEntry', 'MembershipRole', 'RecurrenceType', 'TENANT_SCOPED_MODELS', 'TenantMembership', 'TransactionHeader', 'TransactionStatus', 'TransactionType',]
