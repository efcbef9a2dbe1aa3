"""
accessgate/features/access/impersonation.py

Impersonation guard for super admins.

A super admin may act as the owner of another organization. Only one
impersonation can be active at a time, and a suspended target is
view-only for the duration.
"""

from typing import Optional, Union
import logging

from pydantic import BaseModel, ConfigDict

from accessgate.models.resolved_role import ImpersonationTarget
from accessgate.models.subscription import SubscriptionStatus


logger = logging.getLogger(__name__)


class ImpersonationCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None


def can_impersonate(
    is_super_admin: bool,
    already_impersonating: bool,
    target: Optional[ImpersonationTarget],
) -> ImpersonationCheck:
    if not is_super_admin:
        return ImpersonationCheck(allowed=False, reason="Only Super Admins can impersonate users")
    if already_impersonating:
        return ImpersonationCheck(allowed=False, reason="Already impersonating another user")
    if target is None or not target.owner_id:
        logger.info(
            "[impersonation] target owner missing",
            extra={"organization_id": target.organization_id if target else None},
        )
        return ImpersonationCheck(allowed=False, reason="Owner account not found or disabled")
    return ImpersonationCheck(allowed=True)


def impersonation_is_read_only(status: Union[SubscriptionStatus, str, None]) -> bool:
    """Suspended organizations can be inspected but not modified."""
    if status is None:
        return False
    value = status.value if isinstance(status, SubscriptionStatus) else str(status)
    return value == SubscriptionStatus.SUSPENDED.value
