"""
accessgate/features/subscriptions/evaluator.py

Derives subscription state from a stored snapshot and a supplied clock.

Pure: no hidden clock, no caching. Callers pass `now` explicitly so the
same inputs always produce the same state.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from accessgate.models.subscription import (
    SubscriptionSnapshot,
    SubscriptionState,
    SubscriptionStatus,
)


EXPIRING_SOON_DAYS = 3

_ACTIVE_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL})


def normalize_now(now: Optional[datetime]) -> datetime:
    """Treat naive datetimes as UTC; None means the current time."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def evaluate(subscription: Optional[SubscriptionSnapshot], now: datetime) -> SubscriptionState:
    """
    Derive {is_active, is_trial_expired} for one check.

    - suspended, cancelled, expired or missing subscription -> inactive
    - trial past its end timestamp -> trial expired
    """
    if subscription is None:
        return SubscriptionState(is_active=False, is_trial_expired=False)

    current = normalize_now(now)
    is_active = subscription.status in _ACTIVE_STATUSES

    if subscription.status != SubscriptionStatus.TRIAL:
        return SubscriptionState(is_active=is_active, is_trial_expired=False)

    if subscription.trial_ends_at is None:
        # Open-ended trial
        return SubscriptionState(is_active=is_active, is_trial_expired=False)

    trial_end = normalize_now(subscription.trial_ends_at)
    is_trial_expired = current > trial_end
    remaining_seconds = (trial_end - current).total_seconds()
    days_remaining = max(0, math.ceil(remaining_seconds / 86400))

    return SubscriptionState(
        is_active=is_active,
        is_trial_expired=is_trial_expired,
        days_remaining=days_remaining,
        is_expiring_soon=days_remaining <= EXPIRING_SOON_DAYS,
    )


def is_read_only(subscription: Optional[SubscriptionSnapshot], now: datetime) -> bool:
    """Mutation controls are disabled when the subscription does not grant access."""
    state = evaluate(subscription, now)
    return not state.is_active or state.is_trial_expired
