"""
Tests for the access resolver.

Covers the ordered rules (bypass, subscription, plan feature, role), the
verdict invariant, org-specific overrides, and the convenience flags.
"""

import logging
from datetime import timedelta

import pytest

from accessgate.core.errors import UnknownFeatureError
from accessgate.features.access.resolver import AccessResolver, check_access
from accessgate.models.access import AccessVerdict
from accessgate.models.plan import Plan, PlanFeature
from accessgate.models.roles import OrgAction, OrgModule, OrgRole
from accessgate.models.subscription import SubscriptionStatus


def assert_invariant(verdict: AccessVerdict):
    assert verdict.has_access == (not (verdict.blocked_by_plan or verdict.blocked_by_role))
    assert not (verdict.blocked_by_plan and verdict.blocked_by_role)
    if verdict.has_access:
        assert verdict.message is None


# ---------- Scenarios ----------

def test_free_plan_blocked_from_audit_logs(make_context):
    verdict = check_access(make_context(plan=Plan.FREE), PlanFeature.AUDIT_LOGS)
    assert verdict.has_access is False
    assert verdict.blocked_by_plan is True
    assert verdict.required_plan == "Enterprise"
    assert "Enterprise" in verdict.message


def test_accounts_cannot_edit_team_members_on_pro(make_context):
    ctx = make_context(plan=Plan.PRO, role=OrgRole.ACCOUNTS)
    verdict = check_access(ctx, module=OrgModule.TEAM_MEMBERS, action=OrgAction.EDIT)
    assert verdict.has_access is False
    assert verdict.blocked_by_role is True
    assert verdict.blocked_by_plan is False
    assert verdict.message == "You don't have permission to edit team members."


def test_expired_trial_is_read_only_and_blocks_everything(make_context, now):
    ctx = make_context(
        plan=Plan.ENTERPRISE,
        status=SubscriptionStatus.TRIAL,
        trial_ends_at=now - timedelta(hours=1),
        role=OrgRole.OWNER,
    )
    resolver = AccessResolver(ctx)
    assert resolver.is_read_only is True

    for feature, module in [
        (PlanFeature.REPORTS, OrgModule.REPORTS),
        (None, OrgModule.DASHBOARD),
        (PlanFeature.MULTI_USER, None),
    ]:
        verdict = resolver.check_access(feature, module, OrgAction.VIEW)
        assert verdict.blocked_by_plan is True
        assert verdict.required_plan == "active subscription"


def test_super_admin_bypasses_plan(make_context):
    ctx = make_context(plan=Plan.FREE, role=None, is_super_admin=True)
    verdict = check_access(ctx, PlanFeature.AUDIT_LOGS)
    assert verdict == AccessVerdict.allow()


# ---------- Ordering ----------

def test_subscription_checked_before_plan(make_context):
    ctx = make_context(plan=Plan.FREE, status=SubscriptionStatus.SUSPENDED)
    verdict = check_access(ctx, PlanFeature.AUDIT_LOGS)
    assert verdict.required_plan == "active subscription"


def test_plan_checked_before_role(make_context):
    ctx = make_context(plan=Plan.FREE, role=OrgRole.EMPLOYEE)
    verdict = check_access(ctx, PlanFeature.REPORTS, OrgModule.REPORTS, OrgAction.VIEW)
    assert verdict.blocked_by_plan is True
    assert verdict.blocked_by_role is False
    assert verdict.required_plan == "Basic"


def test_missing_subscription_is_denied(make_context):
    verdict = check_access(make_context(subscription=False), None, OrgModule.DASHBOARD)
    assert verdict.blocked_by_plan is True


def test_allowed_when_all_gates_pass(make_context):
    ctx = make_context(plan=Plan.BASIC, role=OrgRole.MANAGER)
    verdict = check_access(ctx, PlanFeature.REPORTS, OrgModule.REPORTS, OrgAction.EXPORT)
    assert verdict.has_access is True
    assert verdict.required_plan is None


def test_no_feature_no_module_only_subscription_matters(make_context):
    assert check_access(make_context(role=None)).has_access is True


@pytest.mark.parametrize("role", list(OrgRole))
@pytest.mark.parametrize("plan", list(Plan))
def test_verdict_invariant_holds(make_context, plan, role):
    resolver = AccessResolver(make_context(plan=plan, role=role))
    for feature in (PlanFeature.REPORTS, PlanFeature.AUDIT_LOGS, None):
        for module in (OrgModule.BILLING, OrgModule.TASKS, None):
            assert_invariant(resolver.check_access(feature, module, OrgAction.EDIT))


def test_repeated_checks_are_identical(make_context):
    resolver = AccessResolver(make_context(plan=Plan.PRO, role=OrgRole.SALES_STAFF))
    first = resolver.check_access(PlanFeature.ANALYTICS, OrgModule.INVOICES, OrgAction.CREATE)
    second = resolver.check_access(PlanFeature.ANALYTICS, OrgModule.INVOICES, OrgAction.CREATE)
    assert first == second


# ---------- Impersonation ----------

def test_super_admin_impersonating_suspended_org_is_view_only(make_context):
    ctx = make_context(
        plan=Plan.PRO,
        status=SubscriptionStatus.SUSPENDED,
        role=OrgRole.OWNER,
        is_super_admin=True,
        is_impersonating=True,
    )
    resolver = AccessResolver(ctx)
    assert resolver.check_access(None, OrgModule.INVOICES, OrgAction.VIEW).has_access is True

    denied = resolver.check_access(None, OrgModule.INVOICES, OrgAction.EDIT)
    assert denied.blocked_by_plan is True
    assert denied.required_plan == "active subscription"


def test_super_admin_impersonating_active_org_has_full_access(make_context):
    ctx = make_context(plan=Plan.FREE, is_super_admin=True, is_impersonating=True)
    assert check_access(ctx, PlanFeature.WHITE_LABEL, OrgModule.BILLING, OrgAction.MANAGE).has_access


# ---------- Org-specific overrides ----------

def test_override_grants_beyond_matrix(make_context):
    ctx = make_context(role=OrgRole.EMPLOYEE, overrides={"billing_view": True})
    assert check_access(ctx, module=OrgModule.BILLING).has_access is True


def test_override_revokes_matrix_grant(make_context):
    ctx = make_context(role=OrgRole.OWNER, overrides={"invoices_delete": False})
    verdict = check_access(ctx, module=OrgModule.INVOICES, action=OrgAction.DELETE)
    assert verdict.blocked_by_role is True
    assert verdict.message == "Access restricted by organization permissions."


def test_missing_override_falls_back_to_matrix(make_context):
    ctx = make_context(role=OrgRole.OWNER, overrides={"billing_view": False})
    assert check_access(ctx, module=OrgModule.INVOICES, action=OrgAction.DELETE).has_access is True


def test_injected_matrix_replaces_default(make_context):
    custom = {OrgRole.EMPLOYEE: {OrgModule.SALARY: frozenset({OrgAction.VIEW})}}
    resolver = AccessResolver(make_context(role=OrgRole.EMPLOYEE), permission_matrix=custom)
    assert resolver.check_org_permission(OrgModule.SALARY).has_access is True
    assert resolver.check_org_permission(OrgModule.DASHBOARD).has_access is False


# ---------- Partial checks and convenience flags ----------

def test_check_org_permission_ignores_subscription(make_context):
    ctx = make_context(status=SubscriptionStatus.EXPIRED, role=OrgRole.OWNER)
    resolver = AccessResolver(ctx)
    assert resolver.check_org_permission(OrgModule.BILLING).has_access is True
    assert resolver.check_plan_feature(PlanFeature.REPORTS).blocked_by_plan is True


def test_convenience_flags_for_pro_owner(make_context):
    resolver = AccessResolver(make_context(plan=Plan.PRO, role=OrgRole.OWNER))
    assert resolver.can_access_reports is True
    assert resolver.can_access_analytics is True
    assert resolver.can_access_audit_logs is False
    assert resolver.can_manage_team is True
    assert resolver.can_access_billing is True
    assert resolver.can_access_settings is True


def test_convenience_flags_for_basic_employee(make_context):
    resolver = AccessResolver(make_context(plan=Plan.BASIC, role=OrgRole.EMPLOYEE))
    assert resolver.can_access_reports is False
    assert resolver.can_access_analytics is False
    assert resolver.can_manage_team is False
    assert resolver.can_access_billing is False


def test_summary_and_limits(make_context):
    summary = AccessResolver(make_context(plan=Plan.ENTERPRISE)).summary()
    assert summary["plan"] == Plan.ENTERPRISE
    assert summary["is_read_only"] is False
    assert summary["limits"].max_customers == -1
    assert summary["can_access_audit_logs"] is True


def test_denials_are_logged(make_context, caplog):
    caplog.set_level(logging.INFO, logger="accessgate.features.access.resolver")
    check_access(make_context(plan=Plan.FREE), PlanFeature.AUDIT_LOGS)
    assert any("DENIED" in r.getMessage() for r in caplog.records)


def test_empty_feature_name_raises_when_strict(make_context, strict_catalog):
    with pytest.raises(UnknownFeatureError):
        check_access(make_context(plan=Plan.FREE), "", None)


def test_empty_feature_name_denies_when_lenient(make_context, lenient_catalog):
    verdict = check_access(make_context(plan=Plan.ENTERPRISE), "", None)
    assert verdict.has_access is False
    assert verdict.blocked_by_plan is True
    assert verdict.required_plan == "Enterprise"


def test_empty_module_name_is_denied(make_context):
    verdict = check_access(make_context(), None, "")
    assert verdict.has_access is False
    assert verdict.blocked_by_role is True


def test_role_unknown_to_matrix_is_denied(make_context):
    context = make_context(role="staff")
    assert context.org_role == "staff"
    verdict = check_access(context, None, OrgModule.DASHBOARD)
    assert verdict.blocked_by_role is True
    assert AccessResolver(context).summary()["org_role"] == "staff"


def test_known_role_name_parses_to_enum(make_context):
    assert make_context(role="manager").org_role is OrgRole.MANAGER
