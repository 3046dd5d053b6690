"""HealthConsultant: usage metering and plan entitlements for the AI doctor helper."""

from healthconsultant.client import UsageClient
from healthconsultant.common.security import Identity, issue_session_token, verify_session_token
from healthconsultant.entitlement.service import EntitlementDecision, PlanEntitlement
from healthconsultant.usage.service import UsageLedger

__all__ = [
    "UsageClient",
    "Identity",
    "issue_session_token",
    "verify_session_token",
    "EntitlementDecision",
    "PlanEntitlement",
    "UsageLedger",
]
__version__ = "0.1.0"
