"""
accessgate/features/access/resolver.py

Access resolution: combines super-admin bypass, subscription state, plan
catalog and role matrix into one AccessVerdict.

Order (first match wins):
1. super admin -> allow (impersonation of a suspended org is view-only)
2. inactive subscription or expired trial -> blocked by plan
3. feature missing from plan -> blocked by plan, names the minimum plan
4. role may not perform module/action -> blocked by role
5. allow

Denials are values. Nothing here raises for a normal "no", performs I/O,
or keeps state between calls; the context is supplied per request.
"""

from typing import Dict, FrozenSet, Optional, Union
import logging

from accessgate.features.permissions import matrix
from accessgate.features.permissions.matrix import permission_key
from accessgate.features.plans import catalog
from accessgate.features.subscriptions.evaluator import evaluate
from accessgate.models.access import (
    ACTIVE_SUBSCRIPTION_REQUIRED,
    AccessContext,
    AccessVerdict,
)
from accessgate.models.plan import PlanFeature, PlanLimits
from accessgate.models.roles import OrgAction, OrgModule, OrgRole
from accessgate.models.subscription import SubscriptionState, SubscriptionStatus


logger = logging.getLogger(__name__)

SUBSCRIPTION_EXPIRED_MESSAGE = "Your subscription has expired. Please upgrade to continue."
SUSPENDED_IMPERSONATION_MESSAGE = "This organization is suspended. Impersonation is read-only."
ORG_OVERRIDE_DENIED_MESSAGE = "Access restricted by organization permissions."

FeatureLike = Union[PlanFeature, str, None]
ModuleLike = Union[OrgModule, str, None]
ActionLike = Union[OrgAction, str]


def _label(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


class AccessResolver:
    """Per-request access decisions over an explicit AccessContext."""

    def __init__(
        self,
        context: AccessContext,
        *,
        strict: Optional[bool] = None,
        permission_matrix: Optional[Dict[OrgRole, Dict[OrgModule, FrozenSet[OrgAction]]]] = None,
    ):
        self.context = context
        self.strict = strict
        self.permission_matrix = permission_matrix

    @property
    def subscription_state(self) -> SubscriptionState:
        # Recomputed on every access; never cached on the instance
        return evaluate(self.context.subscription, self.context.now)

    @property
    def current_plan(self):
        sub = self.context.subscription
        return sub.plan if sub else None

    @property
    def is_read_only(self) -> bool:
        state = self.subscription_state
        return not state.is_active or state.is_trial_expired

    @property
    def limits(self) -> PlanLimits:
        return catalog.limits_for(self.current_plan, strict=self.strict)

    def _bypass(self, action: ActionLike) -> Optional[AccessVerdict]:
        """Super-admin short circuit; None when the caller is not a super admin."""
        ctx = self.context
        if not ctx.is_super_admin:
            return None
        if ctx.is_impersonating:
            sub = ctx.subscription
            suspended = sub is not None and sub.status == SubscriptionStatus.SUSPENDED
            if suspended and _label(action) != OrgAction.VIEW.value:
                return AccessVerdict.deny_by_plan(ACTIVE_SUBSCRIPTION_REQUIRED, SUSPENDED_IMPERSONATION_MESSAGE)
        return AccessVerdict.allow()

    def _subscription_gate(self) -> Optional[AccessVerdict]:
        state = self.subscription_state
        if not state.is_active or state.is_trial_expired:
            return AccessVerdict.deny_by_plan(ACTIVE_SUBSCRIPTION_REQUIRED, SUBSCRIPTION_EXPIRED_MESSAGE)
        return None

    def _plan_gate(self, feature: Union[PlanFeature, str]) -> Optional[AccessVerdict]:
        if catalog.has_feature(self.current_plan, feature, strict=self.strict):
            return None
        required = catalog.display_name(catalog.minimum_plan_for(feature, strict=self.strict))
        return AccessVerdict.deny_by_plan(
            required,
            f"This feature requires the {required} plan or higher.",
        )

    def _role_gate(self, module: Union[OrgModule, str], action: ActionLike) -> Optional[AccessVerdict]:
        overrides = self.context.permission_overrides
        if overrides is not None:
            key = permission_key(module, action)
            if key in overrides:
                if overrides[key]:
                    return None
                return AccessVerdict.deny_by_role(ORG_OVERRIDE_DENIED_MESSAGE)

        if matrix.is_allowed(self.context.org_role, module, action, self.permission_matrix):
            return None
        module_words = _label(module).replace("_", " ")
        return AccessVerdict.deny_by_role(
            f"You don't have permission to {_label(action)} {module_words}."
        )

    def _log_denial(self, verdict: AccessVerdict, feature, module, action) -> AccessVerdict:
        if not verdict.has_access:
            logger.info(
                "[access] DENIED",
                extra={
                    "feature": _label(feature) if feature is not None else None,
                    "org_module": _label(module) if module is not None else None,
                    "action": _label(action),
                    "org_role": _label(self.context.org_role) if self.context.org_role else None,
                    "blocked_by_plan": verdict.blocked_by_plan,
                    "blocked_by_role": verdict.blocked_by_role,
                    "required_plan": verdict.required_plan,
                },
            )
        return verdict

    def check_plan_feature(self, feature: Union[PlanFeature, str]) -> AccessVerdict:
        """Subscription state and plan membership only."""
        verdict = (
            self._bypass(OrgAction.VIEW)
            or self._subscription_gate()
            or self._plan_gate(feature)
            or AccessVerdict.allow()
        )
        return self._log_denial(verdict, feature, None, OrgAction.VIEW)

    def check_org_permission(self, module: Union[OrgModule, str], action: ActionLike = OrgAction.VIEW) -> AccessVerdict:
        """Role matrix (and org overrides) only."""
        verdict = self._bypass(action) or self._role_gate(module, action) or AccessVerdict.allow()
        return self._log_denial(verdict, None, module, action)

    def check_access(
        self,
        feature: FeatureLike = None,
        module: ModuleLike = None,
        action: ActionLike = OrgAction.VIEW,
    ) -> AccessVerdict:
        """Full check: bypass, subscription, plan feature, then role."""
        verdict = self._bypass(action) or self._subscription_gate()
        if verdict is None and feature is not None:
            verdict = self._plan_gate(feature)
        if verdict is None and module is not None:
            verdict = self._role_gate(module, action)
        return self._log_denial(verdict or AccessVerdict.allow(), feature, module, action)

    @property
    def can_access_reports(self) -> bool:
        return self.check_access(PlanFeature.REPORTS, OrgModule.REPORTS, OrgAction.VIEW).has_access

    @property
    def can_access_analytics(self) -> bool:
        return self.check_plan_feature(PlanFeature.ANALYTICS).has_access

    @property
    def can_access_audit_logs(self) -> bool:
        return self.check_plan_feature(PlanFeature.AUDIT_LOGS).has_access

    @property
    def can_manage_team(self) -> bool:
        return self.check_org_permission(OrgModule.TEAM_MEMBERS, OrgAction.VIEW).has_access

    @property
    def can_access_billing(self) -> bool:
        return self.check_org_permission(OrgModule.BILLING, OrgAction.VIEW).has_access

    @property
    def can_access_settings(self) -> bool:
        return self.check_org_permission(OrgModule.SETTINGS, OrgAction.VIEW).has_access

    def summary(self) -> dict:
        """Convenience flags for UI callers, recomputed on each call."""
        return {
            "is_super_admin": self.context.is_super_admin,
            "is_impersonating": self.context.is_impersonating,
            "org_role": self.context.org_role,
            "plan": self.current_plan,
            "is_read_only": self.is_read_only,
            "limits": self.limits,
            "can_access_reports": self.can_access_reports,
            "can_access_analytics": self.can_access_analytics,
            "can_access_audit_logs": self.can_access_audit_logs,
            "can_manage_team": self.can_manage_team,
            "can_access_billing": self.can_access_billing,
            "can_access_settings": self.can_access_settings,
        }


def check_access(
    context: AccessContext,
    feature: FeatureLike = None,
    module: ModuleLike = None,
    action: ActionLike = OrgAction.VIEW,
) -> AccessVerdict:
    """Functional entry point: one check against one context."""
    return AccessResolver(context).check_access(feature, module, action)
