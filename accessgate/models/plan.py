"""
accessgate/models/plan.py

Subscription plan tiers, plan-gated features and numeric plan limits.
"""

from enum import Enum
from typing import FrozenSet
from pydantic import BaseModel, ConfigDict


class Plan(str, Enum):
    """
    Subscription tier, totally ordered by capability.

    free < basic < pro < enterprise
    """
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @property
    def tier(self) -> int:
        return _PLAN_ORDER.index(self)

    @classmethod
    def ordered(cls) -> tuple:
        return _PLAN_ORDER


_PLAN_ORDER = (Plan.FREE, Plan.BASIC, Plan.PRO, Plan.ENTERPRISE)


class PlanFeature(str, Enum):
    """Capability tag gated by plan."""
    REPORTS = "reports"
    ANALYTICS = "analytics"
    AUDIT_LOGS = "audit_logs"
    API_ACCESS = "api_access"
    CUSTOM_BRANDING = "custom_branding"
    WHITE_LABEL = "white_label"
    PRIORITY_SUPPORT = "priority_support"
    ADVANCED_INVOICING = "advanced_invoicing"
    BULK_OPERATIONS = "bulk_operations"
    EXPORT_DATA = "export_data"
    TEAM_MANAGEMENT = "team_management"
    MULTI_USER = "multi_user"
    NOTIFICATIONS = "notifications"
    DELIVERY_CHALLANS = "delivery_challans"


class PlanLimits(BaseModel):
    """
    Numeric caps for a plan. -1 = unlimited.

    Derived from Plan only; never mutated.
    """
    model_config = ConfigDict(frozen=True)

    max_team_members: int
    max_customers: int
    max_invoices_per_month: int
    max_quotations_per_month: int
    storage_gb: int


class PlanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan: Plan
    display_name: str
    features: FrozenSet[PlanFeature]
    limits: PlanLimits
    trial_days: int = 0
