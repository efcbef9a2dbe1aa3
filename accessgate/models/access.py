"""
accessgate/models/access.py

Access verdicts and the identity context an access check runs against.
"""

from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from accessgate.models.roles import RoleName
from accessgate.models.subscription import SubscriptionSnapshot


ACTIVE_SUBSCRIPTION_REQUIRED = "active subscription"


class AccessVerdict(BaseModel):
    """
    Structured result of an access check.

    Invariants:
    - has_access == not (blocked_by_plan or blocked_by_role)
    - has_access implies message is None
    - at most one blocked flag is set (plan is checked before role)
    """
    model_config = ConfigDict(frozen=True)

    has_access: bool
    blocked_by_plan: bool = False
    blocked_by_role: bool = False
    required_plan: Optional[str] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "AccessVerdict":
        if self.blocked_by_plan and self.blocked_by_role:
            raise ValueError("verdict cannot be blocked by both plan and role")
        if self.has_access == (self.blocked_by_plan or self.blocked_by_role):
            raise ValueError("has_access must equal not (blocked_by_plan or blocked_by_role)")
        if self.has_access and (self.message is not None or self.required_plan is not None):
            raise ValueError("granted verdicts carry no message or required plan")
        return self

    @classmethod
    def allow(cls) -> "AccessVerdict":
        return cls(has_access=True)

    @classmethod
    def deny_by_plan(cls, required_plan: str, message: str) -> "AccessVerdict":
        return cls(has_access=False, blocked_by_plan=True, required_plan=required_plan, message=message)

    @classmethod
    def deny_by_role(cls, message: str) -> "AccessVerdict":
        return cls(has_access=False, blocked_by_role=True, message=message)


class AccessContext(BaseModel):
    """
    Caller identity threaded explicitly into every check.

    permission_overrides holds org-specific "<module>_<action>" switches for
    organizations that opted out of the global matrix (None = use global).
    """
    model_config = ConfigDict(frozen=True)

    is_super_admin: bool = False
    is_impersonating: bool = False
    org_role: Optional[RoleName] = None
    subscription: Optional[SubscriptionSnapshot] = None
    now: datetime
    permission_overrides: Optional[Dict[str, bool]] = Field(default=None)
