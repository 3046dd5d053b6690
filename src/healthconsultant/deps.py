"""Dependency injection singletons for HealthConsultant."""

from healthconsultant.common.config import get_settings
from healthconsultant.common.database import DatabaseManager
from healthconsultant.accounts.service import AccountService
from healthconsultant.audit.service import AuditService
from healthconsultant.billing.service import BillingService
from healthconsultant.entitlement.service import PlanEntitlement
from healthconsultant.plans.service import PlanCatalog
from healthconsultant.usage.service import UsageLedger

_db: DatabaseManager | None = None
_plans: PlanCatalog | None = None
_accounts: AccountService | None = None
_ledger: UsageLedger | None = None
_entitlement: PlanEntitlement | None = None
_audit: AuditService | None = None
_billing: BillingService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_plan_catalog() -> PlanCatalog:
    global _plans
    if _plans is None:
        _plans = PlanCatalog()
    return _plans


def get_audit_service() -> AuditService:
    global _audit
    if _audit is None:
        _audit = AuditService()
    return _audit


def get_account_service() -> AccountService:
    global _accounts
    if _accounts is None:
        _accounts = AccountService(
            get_settings(), get_plan_catalog(),
            audit_service=get_audit_service(),
        )
    return _accounts


def get_usage_ledger() -> UsageLedger:
    global _ledger
    if _ledger is None:
        _ledger = UsageLedger()
    return _ledger


def get_entitlement_service() -> PlanEntitlement:
    global _entitlement
    if _entitlement is None:
        _entitlement = PlanEntitlement(
            get_settings(), get_usage_ledger(), get_plan_catalog(),
            get_account_service(),
            audit_service=get_audit_service(),
        )
    return _entitlement


def get_billing_service() -> BillingService:
    global _billing
    if _billing is None:
        _billing = BillingService(
            get_settings(), get_account_service(), get_plan_catalog(),
        )
    return _billing


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _plans, _accounts, _ledger, _entitlement, _audit, _billing
    _db = None
    _plans = None
    _accounts = None
    _ledger = None
    _entitlement = None
    _audit = None
    _billing = None
