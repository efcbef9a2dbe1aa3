"""
accessgate/models/subscription.py

Subscription snapshot as stored per organization, and the state derived
from it at evaluation time.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

from accessgate.models.plan import Plan


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIAL = "trial"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class SubscriptionSnapshot(BaseModel):
    """
    Immutable {plan, status, trial_ends_at} read from the store.

    Treated as a snapshot for the duration of one check.
    """
    model_config = ConfigDict(frozen=True)

    plan: Plan
    status: SubscriptionStatus
    trial_ends_at: Optional[datetime] = None


class SubscriptionState(BaseModel):
    """Derived flags; recomputed on every check, never cached."""
    model_config = ConfigDict(frozen=True)

    is_active: bool
    is_trial_expired: bool
    days_remaining: Optional[int] = None
    is_expiring_soon: bool = False
