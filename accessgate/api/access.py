"""
Access check API.

The caller's role always comes from the authoritative role resolution
service (forwarding the caller's own session token); subscription and
org-specific overrides come from the store. Denials are 200 responses
carrying the verdict. Only a missing session (401) or a failed role
round trip (502) are errors, and callers treat both as "no access".
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, ConfigDict

from accessgate.core.config import settings
from accessgate.core.errors import UnauthenticatedError
from accessgate.core.logging import log_event
from accessgate.features.access.resolver import AccessResolver
from accessgate.features.permissions.overrides import get_permission_overrides
from accessgate.features.plans import catalog
from accessgate.features.roles.resolution_client import RoleResolutionClient, build_client
from accessgate.features.roles.session import bearer_token, verify_session_token
from accessgate.features.subscriptions.store import get_subscription
from accessgate.models.access import AccessContext, AccessVerdict
from accessgate.models.plan import PlanFeature, PlanLimits
from accessgate.models.resolved_role import ImpersonationTarget, ResolvedRole
from accessgate.models.roles import ORG_ROLE_DISPLAY, OrgAction, OrgModule, role_name
from accessgate.models.subscription import SubscriptionSnapshot

router = APIRouter(prefix="/v1/access", tags=["access"])

NOT_A_MEMBER_MESSAGE = "You are not a member of this organization."


class AccessCheckRequest(BaseModel):
    organization_id: Optional[str] = None
    feature: Optional[PlanFeature] = None
    module: Optional[OrgModule] = None
    action: OrgAction = OrgAction.VIEW
    is_impersonating: bool = False
    impersonation_target: Optional[ImpersonationTarget] = None


class AccessCheckResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_access: bool
    blocked_by_plan: bool = False
    blocked_by_role: bool = False
    required_plan: Optional[str] = None
    message: Optional[str] = None
    organization_id: Optional[str] = None
    org_role: Optional[str] = None
    plan: Optional[str] = None
    is_super_admin: bool = False
    is_impersonating: bool = False
    is_read_only: bool = False


class AccessSummaryResponse(BaseModel):
    organization_id: Optional[str] = None
    org_role: Optional[str] = None
    org_role_display_name: Optional[str] = None
    plan: Optional[str] = None
    plan_display_name: str
    is_super_admin: bool
    is_impersonating: bool
    is_read_only: bool
    limits: PlanLimits
    can_access_reports: bool
    can_access_analytics: bool
    can_access_audit_logs: bool
    can_manage_team: bool
    can_access_billing: bool
    can_access_settings: bool


def get_session_token(authorization: Optional[str] = Header(None)) -> str:
    """Bearer session token of the caller; verified locally when a secret is configured."""
    token = bearer_token(authorization)
    if not token:
        raise UnauthenticatedError("Not authenticated")
    if settings.SESSION_JWT_SECRET:
        verify_session_token(token)
    return token


def get_role_client(token: str = Depends(get_session_token)) -> RoleResolutionClient:
    return build_client(lambda: token)


def get_subscription_loader() -> Callable[[str], Optional[SubscriptionSnapshot]]:
    return get_subscription


def get_overrides_loader() -> Callable[..., Optional[Dict[str, bool]]]:
    return get_permission_overrides


def get_clock() -> Callable[[], datetime]:
    return lambda: datetime.now(timezone.utc)


def _build_context(
    resolved: ResolvedRole,
    organization_id: Optional[str],
    load_subscription,
    load_overrides,
    now: datetime,
) -> AccessContext:
    role = resolved.effective_role or resolved.org_role
    subscription = load_subscription(organization_id) if organization_id else None
    overrides = load_overrides(organization_id, role) if organization_id and role else None
    return AccessContext(
        is_super_admin=resolved.is_super_admin,
        is_impersonating=resolved.is_impersonating,
        org_role=role,
        subscription=subscription,
        now=now,
        permission_overrides=overrides,
    )


@router.post("/check", response_model=AccessCheckResponse)
async def check_access_endpoint(
    body: AccessCheckRequest,
    client: RoleResolutionClient = Depends(get_role_client),
    load_subscription=Depends(get_subscription_loader),
    load_overrides=Depends(get_overrides_loader),
    clock=Depends(get_clock),
):
    impersonation = body.impersonation_target if body.is_impersonating else None
    resolved = await client.resolve_role(organization_id=body.organization_id, impersonation=impersonation)

    organization_id = resolved.organization_id or body.organization_id
    context = _build_context(resolved, organization_id, load_subscription, load_overrides, clock())
    resolver = AccessResolver(context)

    if not context.is_super_admin and context.org_role is None:
        verdict = AccessVerdict.deny_by_role(NOT_A_MEMBER_MESSAGE)
    else:
        verdict = resolver.check_access(body.feature, body.module, body.action)

    log_event(
        "info",
        "access.check",
        user_id=resolved.user_id,
        organization_id=organization_id,
        event_type="access.granted" if verdict.has_access else "access.denied",
        extra={
            "feature": body.feature.value if body.feature else None,
            "org_module": body.module.value if body.module else None,
            "action": body.action.value,
        },
    )

    return AccessCheckResponse(
        **verdict.model_dump(),
        organization_id=organization_id,
        org_role=role_name(context.org_role),
        plan=resolver.current_plan.value if resolver.current_plan else None,
        is_super_admin=context.is_super_admin,
        is_impersonating=context.is_impersonating,
        is_read_only=resolver.is_read_only,
    )


@router.get("/summary", response_model=AccessSummaryResponse)
async def access_summary(
    organization_id: Optional[str] = Query(None),
    client: RoleResolutionClient = Depends(get_role_client),
    load_subscription=Depends(get_subscription_loader),
    load_overrides=Depends(get_overrides_loader),
    clock=Depends(get_clock),
):
    resolved = await client.resolve_role(organization_id=organization_id)
    org_id = resolved.organization_id or organization_id
    context = _build_context(resolved, org_id, load_subscription, load_overrides, clock())
    summary = AccessResolver(context).summary()
    plan = summary.pop("plan")
    role = summary.pop("org_role")

    return AccessSummaryResponse(
        organization_id=org_id,
        org_role=role_name(role),
        org_role_display_name=ORG_ROLE_DISPLAY.get(role) if role else None,
        plan=plan.value if plan else None,
        plan_display_name=catalog.display_name(plan),
        **summary,
    )
