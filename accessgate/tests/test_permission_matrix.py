"""Tests for the role permission matrix."""

from accessgate.features.permissions.matrix import (
    ORG_ROLE_HIERARCHY,
    PERMISSION_MATRIX,
    accessible_modules,
    is_allowed,
    is_role_at_least,
    permission_key,
    roles_for,
)
from accessgate.models.roles import OrgAction, OrgModule, OrgRole


def test_every_role_has_an_entry():
    for role in OrgRole:
        assert role in PERMISSION_MATRIX
        assert role in ORG_ROLE_HIERARCHY


def test_accounts_cannot_edit_team_members():
    assert is_allowed(OrgRole.ACCOUNTS, OrgModule.TEAM_MEMBERS, OrgAction.EDIT) is False


def test_owner_can_edit_team_members():
    assert is_allowed("owner", "team_members", "edit") is True


def test_owner_is_not_implicitly_granted_everything():
    # Reports are view/export only, even for owner
    assert is_allowed(OrgRole.OWNER, OrgModule.REPORTS, OrgAction.DELETE) is False


def test_billing_is_owner_only():
    assert roles_for(OrgModule.BILLING, OrgAction.VIEW) == [OrgRole.OWNER]


def test_unknown_values_are_denied_not_raised():
    assert is_allowed("janitor", OrgModule.INVOICES, OrgAction.VIEW) is False
    assert is_allowed(OrgRole.OWNER, "spaceships", OrgAction.VIEW) is False
    assert is_allowed(OrgRole.OWNER, OrgModule.INVOICES, "launch") is False
    assert is_allowed(None, OrgModule.INVOICES, OrgAction.VIEW) is False


def test_missing_module_entry_is_denied():
    # Designers have no customers entry at all
    assert OrgModule.CUSTOMERS not in PERMISSION_MATRIX[OrgRole.DESIGNER]
    for action in OrgAction:
        assert is_allowed(OrgRole.DESIGNER, OrgModule.CUSTOMERS, action) is False


def test_custom_matrix_is_honoured():
    custom = {OrgRole.EMPLOYEE: {OrgModule.BILLING: frozenset({OrgAction.VIEW})}}
    assert is_allowed(OrgRole.EMPLOYEE, OrgModule.BILLING, OrgAction.VIEW, custom) is True
    assert is_allowed(OrgRole.OWNER, OrgModule.BILLING, OrgAction.VIEW, custom) is False


def test_roles_for_sorted_by_hierarchy():
    roles = roles_for(OrgModule.TASKS, OrgAction.VIEW)
    assert roles[0] == OrgRole.OWNER
    assert roles == sorted(roles, key=lambda r: ORG_ROLE_HIERARCHY[r], reverse=True)
    assert len(roles) == len(OrgRole)


def test_accessible_modules_for_employee():
    modules = accessible_modules(OrgRole.EMPLOYEE)
    assert OrgModule.DASHBOARD in modules
    assert OrgModule.SETTINGS not in modules


def test_role_hierarchy():
    assert is_role_at_least(OrgRole.MANAGER, OrgRole.ACCOUNTS)
    assert not is_role_at_least(OrgRole.EMPLOYEE, OrgRole.DESIGNER)
    assert not is_role_at_least("nobody", OrgRole.EMPLOYEE)


def test_permission_key_format():
    assert permission_key(OrgModule.TEAM_MEMBERS, OrgAction.EDIT) == "team_members_edit"
    assert permission_key("invoices", "view") == "invoices_view"
