"""
accessgate/models/resolved_role.py

Wire contract of the authoritative role resolution service.

A ResolvedRole lives for exactly one request/response round trip. It is
re-fetched on login, page refresh and organization switch, and never
stored.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from accessgate.models.roles import RoleName, SystemRole


class Membership(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    organization_id: str = Field(alias="organizationId")
    # missing for impersonation targets sent without an owner id
    user_id: Optional[str] = Field(default=None, alias="userId")
    role: str


class ImpersonationTarget(BaseModel):
    """Organization a super admin acts on behalf of (as its owner)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    organization_id: str = Field(alias="organizationId")
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    organization_name: Optional[str] = Field(default=None, alias="organizationName")
    owner_email: Optional[str] = Field(default=None, alias="ownerEmail")
    subscription_status: Optional[str] = Field(default=None, alias="subscriptionStatus")


class ResolveRoleRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    organization_id: Optional[str] = Field(default=None, alias="organizationId")
    is_impersonating: bool = Field(default=False, alias="isImpersonating")
    impersonation_target: Optional[ImpersonationTarget] = Field(default=None, alias="impersonationTarget")

    def to_wire(self) -> dict:
        body = {"isImpersonating": self.is_impersonating}
        if self.organization_id:
            body["organizationId"] = self.organization_id
        if self.impersonation_target:
            body["impersonationTarget"] = {
                "organizationId": self.impersonation_target.organization_id,
                "ownerId": self.impersonation_target.owner_id,
            }
        return body


class ResolvedRole(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    system_role: Optional[SystemRole] = Field(default=None, alias="systemRole")
    is_super_admin: bool = Field(default=False, alias="isSuperAdmin")
    org_role: Optional[RoleName] = Field(default=None, alias="orgRole")
    organization_id: Optional[str] = Field(default=None, alias="organizationId")
    is_impersonating: bool = Field(default=False, alias="isImpersonating")
    effective_role: Optional[RoleName] = Field(default=None, alias="effectiveRole")
    membership: Optional[Membership] = None
