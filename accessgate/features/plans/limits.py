"""
accessgate/features/plans/limits.py

Usage-limit checks against the plan catalog.

Soft warning at 80% of a limit, hard stop at 100%. A limit of -1 means
unlimited. Enforcement refuses new records once the subscription no
longer grants access or the hard limit is reached.
"""

from enum import Enum
from typing import Optional
import logging

from pydantic import BaseModel, ConfigDict

from accessgate.features.plans import catalog
from accessgate.models.plan import Plan, PlanLimits
from accessgate.models.subscription import SubscriptionState


logger = logging.getLogger(__name__)

SOFT_LIMIT_RATIO = 0.8
UNLIMITED = -1


class LimitType(str, Enum):
    USERS = "users"
    CLIENTS = "clients"
    INVOICES = "invoices"
    QUOTATIONS = "quotations"


class LimitLevel(str, Enum):
    NONE = "none"
    SOFT = "soft"
    HARD = "hard"


class EnforcementReason(str, Enum):
    OK = "ok"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    LIMIT_REACHED = "limit_reached"


class LimitWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: LimitLevel
    current: int
    limit: int
    percentage: int
    message: Optional[str] = None


class EnforcementResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: EnforcementReason
    message: Optional[str] = None
    required_plan: Optional[Plan] = None


def limit_value(limits: PlanLimits, limit_type: LimitType) -> int:
    return {
        LimitType.USERS: limits.max_team_members,
        LimitType.CLIENTS: limits.max_customers,
        LimitType.INVOICES: limits.max_invoices_per_month,
        LimitType.QUOTATIONS: limits.max_quotations_per_month,
    }[LimitType(limit_type)]


def check_limit(current: int, limit: int, limit_type: LimitType) -> LimitWarning:
    """Classify current usage against one limit."""
    label = LimitType(limit_type).value
    if limit == UNLIMITED:
        return LimitWarning(level=LimitLevel.NONE, current=current, limit=limit, percentage=0)
    if limit <= 0:
        return LimitWarning(
            level=LimitLevel.HARD,
            current=current,
            limit=limit,
            percentage=100,
            message=f"You've reached your {label} limit ({current}/{limit}). Upgrade to continue.",
        )

    percentage = round(current / limit * 100)
    if current >= limit:
        return LimitWarning(
            level=LimitLevel.HARD,
            current=current,
            limit=limit,
            percentage=percentage,
            message=f"You've reached your {label} limit ({current}/{limit}). Upgrade to continue.",
        )
    if current >= limit * SOFT_LIMIT_RATIO:
        remaining = limit - current
        return LimitWarning(
            level=LimitLevel.SOFT,
            current=current,
            limit=limit,
            percentage=percentage,
            message=f"You're approaching your {label} limit ({current}/{limit}). Only {remaining} remaining.",
        )
    return LimitWarning(level=LimitLevel.NONE, current=current, limit=limit, percentage=percentage)


def enforce_limit(
    state: SubscriptionState,
    plan: Optional[Plan],
    limit_type: LimitType,
    current: int,
) -> EnforcementResult:
    """Decide whether one more record of limit_type may be created."""
    if not state.is_active or state.is_trial_expired:
        return EnforcementResult(
            allowed=False,
            reason=EnforcementReason.SUBSCRIPTION_EXPIRED,
            message="Your subscription has expired. Please upgrade to continue.",
            required_plan=catalog.next_plan(plan),
        )

    limit = limit_value(catalog.limits_for(plan), limit_type)
    warning = check_limit(current, limit, limit_type)
    if warning.level == LimitLevel.HARD:
        logger.info(
            "[limits] limit reached",
            extra={"plan": plan.value if plan else None, "limit_type": LimitType(limit_type).value,
                   "current": current, "limit": limit},
        )
        return EnforcementResult(
            allowed=False,
            reason=EnforcementReason.LIMIT_REACHED,
            message=warning.message,
            required_plan=catalog.next_plan(plan),
        )
    return EnforcementResult(allowed=True, reason=EnforcementReason.OK)


def limit_warning(limit_type: LimitType, current: int, plan: Optional[Plan]) -> LimitWarning:
    """Warning level for current usage under the plan's limit."""
    return check_limit(current, limit_value(catalog.limits_for(plan), limit_type), limit_type)
