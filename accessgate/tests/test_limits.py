"""Tests for plan limit warnings and enforcement."""

from accessgate.features.plans.limits import (
    EnforcementReason,
    LimitLevel,
    LimitType,
    check_limit,
    enforce_limit,
    limit_warning,
)
from accessgate.models.plan import Plan
from accessgate.models.subscription import SubscriptionState


ACTIVE = SubscriptionState(is_active=True, is_trial_expired=False)
EXPIRED_TRIAL = SubscriptionState(is_active=True, is_trial_expired=True)


def test_below_soft_threshold_has_no_warning():
    warning = check_limit(3, 10, LimitType.CLIENTS)
    assert warning.level == LimitLevel.NONE
    assert warning.message is None
    assert warning.percentage == 30


def test_soft_warning_at_eighty_percent():
    warning = check_limit(8, 10, LimitType.INVOICES)
    assert warning.level == LimitLevel.SOFT
    assert warning.message == "You're approaching your invoices limit (8/10). Only 2 remaining."


def test_hard_warning_at_limit():
    warning = check_limit(10, 10, LimitType.USERS)
    assert warning.level == LimitLevel.HARD
    assert warning.message == "You've reached your users limit (10/10). Upgrade to continue."


def test_unlimited_never_warns():
    warning = check_limit(10_000, -1, LimitType.CLIENTS)
    assert warning.level == LimitLevel.NONE


def test_limit_warning_reads_plan_limits():
    # Free plan allows 3 team members
    assert limit_warning(LimitType.USERS, 3, Plan.FREE).level == LimitLevel.HARD
    assert limit_warning(LimitType.USERS, 3, Plan.PRO).level == LimitLevel.NONE
    assert limit_warning(LimitType.CLIENTS, 5000, Plan.ENTERPRISE).level == LimitLevel.NONE


def test_enforce_blocks_when_limit_reached():
    result = enforce_limit(ACTIVE, Plan.FREE, LimitType.QUOTATIONS, 20)
    assert result.allowed is False
    assert result.reason == EnforcementReason.LIMIT_REACHED
    assert result.required_plan == Plan.BASIC


def test_enforce_blocks_on_expired_trial():
    result = enforce_limit(EXPIRED_TRIAL, Plan.BASIC, LimitType.CLIENTS, 0)
    assert result.allowed is False
    assert result.reason == EnforcementReason.SUBSCRIPTION_EXPIRED


def test_enforce_allows_under_limit():
    result = enforce_limit(ACTIVE, Plan.BASIC, LimitType.CLIENTS, 10)
    assert result.allowed is True
    assert result.reason == EnforcementReason.OK
    assert result.message is None
