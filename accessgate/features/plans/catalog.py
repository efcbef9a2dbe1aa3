"""
accessgate/features/plans/catalog.py

Plan catalog: which features and limits each subscription plan carries.

The catalog is data. PLAN_CONFIGS is the only place features and limits
are declared; every lookup below reads from it. validate_catalog() runs
at import and refuses a catalog that is not total over PlanFeature or
not monotonic in plan tier.
"""

import logging
from typing import Dict, Optional, Union

from accessgate.core.config import catalog_strict
from accessgate.core.errors import UnknownFeatureError
from accessgate.models.plan import Plan, PlanConfig, PlanFeature, PlanLimits


logger = logging.getLogger(__name__)

PlanLike = Union[Plan, str, None]
FeatureLike = Union[PlanFeature, str]

_F = PlanFeature

_FREE_FEATURES = frozenset({
    _F.MULTI_USER,
    _F.TEAM_MANAGEMENT,
    _F.NOTIFICATIONS,
    _F.DELIVERY_CHALLANS,
    _F.EXPORT_DATA,
})
_BASIC_FEATURES = _FREE_FEATURES | {_F.REPORTS}
_PRO_FEATURES = _BASIC_FEATURES | {
    _F.ANALYTICS,
    _F.ADVANCED_INVOICING,
    _F.BULK_OPERATIONS,
    _F.PRIORITY_SUPPORT,
}
_ENTERPRISE_FEATURES = _PRO_FEATURES | {
    _F.AUDIT_LOGS,
    _F.API_ACCESS,
    _F.CUSTOM_BRANDING,
    _F.WHITE_LABEL,
}

PLAN_CONFIGS: Dict[Plan, PlanConfig] = {
    Plan.FREE: PlanConfig(
        plan=Plan.FREE,
        display_name="Free Trial",
        features=_FREE_FEATURES,
        limits=PlanLimits(
            max_team_members=3,
            max_customers=50,
            max_invoices_per_month=20,
            max_quotations_per_month=20,
            storage_gb=1,
        ),
        trial_days=7,
    ),
    Plan.BASIC: PlanConfig(
        plan=Plan.BASIC,
        display_name="Basic",
        features=_BASIC_FEATURES,
        limits=PlanLimits(
            max_team_members=5,
            max_customers=200,
            max_invoices_per_month=100,
            max_quotations_per_month=100,
            storage_gb=5,
        ),
    ),
    Plan.PRO: PlanConfig(
        plan=Plan.PRO,
        display_name="Pro",
        features=_PRO_FEATURES,
        limits=PlanLimits(
            max_team_members=15,
            max_customers=1000,
            max_invoices_per_month=500,
            max_quotations_per_month=500,
            storage_gb=25,
        ),
    ),
    Plan.ENTERPRISE: PlanConfig(
        plan=Plan.ENTERPRISE,
        display_name="Enterprise",
        features=_ENTERPRISE_FEATURES,
        limits=PlanLimits(
            max_team_members=100,
            max_customers=-1,
            max_invoices_per_month=-1,
            max_quotations_per_month=-1,
            storage_gb=100,
        ),
    ),
}

FEATURE_DISPLAY_NAMES: Dict[PlanFeature, str] = {
    _F.REPORTS: "Reports",
    _F.ANALYTICS: "Analytics Dashboard",
    _F.AUDIT_LOGS: "Audit Logs",
    _F.API_ACCESS: "API Access",
    _F.CUSTOM_BRANDING: "Custom Branding",
    _F.WHITE_LABEL: "White Label",
    _F.PRIORITY_SUPPORT: "Priority Support",
    _F.ADVANCED_INVOICING: "Advanced Invoicing",
    _F.BULK_OPERATIONS: "Bulk Operations",
    _F.EXPORT_DATA: "Data Export",
    _F.TEAM_MANAGEMENT: "Team Management",
    _F.MULTI_USER: "Multi-User Access",
    _F.NOTIFICATIONS: "Notifications",
    _F.DELIVERY_CHALLANS: "Delivery Challans",
}


def validate_catalog(configs: Optional[Dict[Plan, PlanConfig]] = None) -> None:
    """
    Check the catalog is total and monotonic.

    Raises:
        RuntimeError: a plan has no config, a feature has no minimum plan,
            or a higher tier lacks a feature a lower tier has
    """
    cfgs = configs if configs is not None else PLAN_CONFIGS

    missing_plans = [p.value for p in Plan if p not in cfgs]
    if missing_plans:
        raise RuntimeError(f"Plan catalog missing plans: {', '.join(missing_plans)}")

    top = cfgs[Plan.ordered()[-1]].features
    orphaned = [f.value for f in PlanFeature if f not in top]
    if orphaned:
        raise RuntimeError(f"Features without a minimum plan: {', '.join(orphaned)}")

    ordered = Plan.ordered()
    for lower, higher in zip(ordered, ordered[1:]):
        dropped = cfgs[lower].features - cfgs[higher].features
        if dropped:
            names = ", ".join(sorted(f.value for f in dropped))
            raise RuntimeError(
                f"Plan catalog not monotonic: {higher.value} lacks {names} from {lower.value}"
            )


validate_catalog()


def _unknown(kind: str, value: object, strict: Optional[bool]) -> None:
    """Raise in strict mode, otherwise log and let the caller degrade."""
    is_strict = catalog_strict() if strict is None else strict
    if is_strict:
        raise UnknownFeatureError(f"Unknown {kind}: {value!r}")
    logger.warning(
        "[catalog] unknown value, denying",
        extra={"kind": kind, "value": str(value)},
    )


def coerce_plan(plan: PlanLike, *, strict: Optional[bool] = None) -> Optional[Plan]:
    """Normalize a stored plan value; None or unknown (lenient) -> None."""
    if plan is None or isinstance(plan, Plan):
        return plan
    try:
        return Plan(plan)
    except ValueError:
        _unknown("plan", plan, strict)
        return None


def coerce_feature(feature: FeatureLike, *, strict: Optional[bool] = None) -> Optional[PlanFeature]:
    if isinstance(feature, PlanFeature):
        return feature
    try:
        return PlanFeature(feature)
    except ValueError:
        _unknown("feature", feature, strict)
        return None


def has_feature(plan: PlanLike, feature: FeatureLike, *, strict: Optional[bool] = None) -> bool:
    """True iff the plan includes the feature. No plan has no features."""
    resolved_feature = coerce_feature(feature, strict=strict)
    resolved_plan = coerce_plan(plan, strict=strict)
    if resolved_feature is None or resolved_plan is None:
        return False
    return resolved_feature in PLAN_CONFIGS[resolved_plan].features


def minimum_plan_for(feature: FeatureLike, *, strict: Optional[bool] = None) -> Plan:
    """Lowest tier carrying the feature (enterprise for unknown, lenient)."""
    resolved = coerce_feature(feature, strict=strict)
    if resolved is not None:
        for plan in Plan.ordered():
            if resolved in PLAN_CONFIGS[plan].features:
                return plan
    return Plan.ENTERPRISE


def limits_for(plan: PlanLike, *, strict: Optional[bool] = None) -> PlanLimits:
    resolved = coerce_plan(plan, strict=strict)
    if resolved is None:
        return PLAN_CONFIGS[Plan.FREE].limits
    return PLAN_CONFIGS[resolved].limits


def display_name(plan: PlanLike, *, strict: Optional[bool] = None) -> str:
    if plan is None:
        return "No Plan"
    resolved = coerce_plan(plan, strict=strict)
    if resolved is None:
        return str(plan)
    return PLAN_CONFIGS[resolved].display_name


def feature_display_name(feature: FeatureLike) -> str:
    try:
        return FEATURE_DISPLAY_NAMES[PlanFeature(feature)]
    except ValueError:
        return str(feature)


def trial_days(plan: PlanLike) -> int:
    resolved = coerce_plan(plan, strict=False)
    return PLAN_CONFIGS[resolved].trial_days if resolved else 0


def is_plan_at_least(current: PlanLike, required: Plan) -> bool:
    resolved = coerce_plan(current)
    if resolved is None:
        return False
    return resolved.tier >= required.tier


def next_plan(plan: PlanLike) -> Plan:
    """Upgrade target: the next tier up, enterprise stays enterprise."""
    resolved = coerce_plan(plan) or Plan.FREE
    ordered = Plan.ordered()
    return ordered[min(resolved.tier + 1, len(ordered) - 1)]
