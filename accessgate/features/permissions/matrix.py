"""
accessgate/features/permissions/matrix.py

Role permission matrix: OrgRole -> {OrgModule -> allowed actions}.

Lookup only. There is no inheritance between roles and no implied
"manage covers edit"; owner is listed explicitly like every other role.
Super-admin and impersonation bypass live in the resolver, not here.
Anything missing from the table is denied.
"""

from typing import Dict, FrozenSet, List, Optional, Union

from accessgate.models.roles import OrgAction, OrgModule, OrgRole


M = OrgModule
A = OrgAction

ALL_ACTIONS: FrozenSet[OrgAction] = frozenset(OrgAction)
_VIEW = frozenset({A.VIEW})
_VIEW_CREATE = frozenset({A.VIEW, A.CREATE})
_VIEW_EXPORT = frozenset({A.VIEW, A.EXPORT})
_WORK = frozenset({A.VIEW, A.MANAGE, A.CREATE, A.EDIT})
_MAINTAIN = frozenset({A.VIEW, A.MANAGE, A.CREATE, A.EDIT, A.DELETE})
_MAINTAIN_EXPORT = _MAINTAIN | {A.EXPORT}
_MAINTAIN_BULK_EXPORT = _MAINTAIN_EXPORT | {A.BULK}


PERMISSION_MATRIX: Dict[OrgRole, Dict[OrgModule, FrozenSet[OrgAction]]] = {
    OrgRole.OWNER: {
        M.DASHBOARD: _VIEW,
        M.CUSTOMERS: ALL_ACTIONS,
        M.INVOICES: ALL_ACTIONS,
        M.PAYMENTS: _MAINTAIN_EXPORT,
        M.QUOTATIONS: ALL_ACTIONS,
        M.PRICE_CALCULATIONS: _MAINTAIN_EXPORT,
        M.DELIVERY_CHALLANS: _MAINTAIN_BULK_EXPORT,
        M.EXPENSES: ALL_ACTIONS,
        M.EXPENSE_CATEGORIES: _MAINTAIN,
        M.VENDORS: ALL_ACTIONS,
        M.EMPLOYEES: ALL_ACTIONS,
        M.ATTENDANCE: _MAINTAIN_BULK_EXPORT,
        M.SALARY: _MAINTAIN_EXPORT,
        M.LEAVE: _MAINTAIN,
        M.PERFORMANCE: _MAINTAIN,
        M.TASKS: _MAINTAIN_BULK_EXPORT,
        M.REPORTS: _VIEW_EXPORT,
        M.TEAM_MEMBERS: _MAINTAIN,
        M.SETTINGS: frozenset({A.VIEW, A.MANAGE, A.EDIT}),
        M.BILLING: frozenset({A.VIEW, A.MANAGE, A.EDIT}),
        M.ANALYTICS: _VIEW_EXPORT,
    },
    OrgRole.MANAGER: {
        M.DASHBOARD: _VIEW,
        M.CUSTOMERS: ALL_ACTIONS,
        M.INVOICES: ALL_ACTIONS,
        M.PAYMENTS: _MAINTAIN_EXPORT,
        M.QUOTATIONS: ALL_ACTIONS,
        M.PRICE_CALCULATIONS: _MAINTAIN_EXPORT,
        M.DELIVERY_CHALLANS: _MAINTAIN_BULK_EXPORT,
        M.EXPENSES: ALL_ACTIONS - {A.DELETE},
        M.EXPENSE_CATEGORIES: _MAINTAIN,
        M.VENDORS: ALL_ACTIONS - {A.DELETE},
        M.EMPLOYEES: _WORK | {A.EXPORT},
        M.ATTENDANCE: _WORK | {A.EXPORT},
        M.LEAVE: _WORK,
        M.PERFORMANCE: _WORK,
        M.TASKS: _MAINTAIN | {A.BULK},
        M.REPORTS: _VIEW_EXPORT,
        M.TEAM_MEMBERS: _VIEW,
        M.SETTINGS: _VIEW,
        M.ANALYTICS: _VIEW_EXPORT,
    },
    OrgRole.ACCOUNTS: {
        M.DASHBOARD: _VIEW,
        M.CUSTOMERS: _VIEW,
        M.INVOICES: _WORK,
        M.PAYMENTS: _WORK,
        M.PRICE_CALCULATIONS: _VIEW,
        M.DELIVERY_CHALLANS: _VIEW,
        M.EXPENSES: frozenset({A.VIEW, A.MANAGE, A.CREATE}),
        M.EXPENSE_CATEGORIES: _VIEW,
        M.VENDORS: frozenset({A.VIEW, A.MANAGE, A.CREATE}),
        M.EMPLOYEES: _VIEW,
        M.ATTENDANCE: _VIEW,
        M.SALARY: _VIEW,
        M.LEAVE: _VIEW_CREATE,
        M.TASKS: _WORK,
    },
    OrgRole.SALES_STAFF: {
        M.DASHBOARD: _VIEW,
        M.CUSTOMERS: _WORK,
        M.INVOICES: _WORK,
        M.PAYMENTS: _VIEW,
        M.QUOTATIONS: _WORK,
        M.PRICE_CALCULATIONS: _VIEW,
        M.DELIVERY_CHALLANS: _WORK,
        M.ATTENDANCE: _VIEW,
        M.LEAVE: _VIEW_CREATE,
        M.TASKS: _WORK,
    },
    OrgRole.DESIGNER: {
        M.DASHBOARD: _VIEW,
        M.QUOTATIONS: _VIEW,
        M.PRICE_CALCULATIONS: _VIEW,
        M.ATTENDANCE: _VIEW,
        M.LEAVE: _VIEW_CREATE,
        M.TASKS: _WORK,
    },
    OrgRole.EMPLOYEE: {
        M.DASHBOARD: _VIEW,
        M.CUSTOMERS: _VIEW,
        M.INVOICES: _VIEW,
        M.DELIVERY_CHALLANS: _VIEW,
        M.ATTENDANCE: _VIEW,
        M.LEAVE: _VIEW_CREATE,
        M.TASKS: _WORK,
    },
}

ORG_ROLE_HIERARCHY: Dict[OrgRole, int] = {
    OrgRole.OWNER: 100,
    OrgRole.MANAGER: 75,
    OrgRole.ACCOUNTS: 50,
    OrgRole.SALES_STAFF: 40,
    OrgRole.DESIGNER: 35,
    OrgRole.EMPLOYEE: 25,
}

RoleLike = Union[OrgRole, str, None]
ModuleLike = Union[OrgModule, str]
ActionLike = Union[OrgAction, str]


def _as_enum(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def permission_key(module: ModuleLike, action: ActionLike) -> str:
    """Key used by org-specific overrides, e.g. "team_members_edit"."""
    module_name = module.value if isinstance(module, OrgModule) else str(module)
    action_name = action.value if isinstance(action, OrgAction) else str(action)
    return f"{module_name}_{action_name}"


def is_allowed(
    role: RoleLike,
    module: ModuleLike,
    action: ActionLike,
    matrix: Optional[Dict[OrgRole, Dict[OrgModule, FrozenSet[OrgAction]]]] = None,
) -> bool:
    """Deny-by-default matrix lookup; never raises."""
    table = PERMISSION_MATRIX if matrix is None else matrix
    resolved_role = _as_enum(OrgRole, role)
    resolved_module = _as_enum(OrgModule, module)
    resolved_action = _as_enum(OrgAction, action)
    if resolved_role is None or resolved_module is None or resolved_action is None:
        return False
    return resolved_action in table.get(resolved_role, {}).get(resolved_module, frozenset())


def roles_for(module: ModuleLike, action: ActionLike) -> List[OrgRole]:
    """Roles allowed to perform the action, highest first."""
    allowed = [role for role in OrgRole if is_allowed(role, module, action)]
    return sorted(allowed, key=lambda r: ORG_ROLE_HIERARCHY[r], reverse=True)


def accessible_modules(role: RoleLike) -> List[OrgModule]:
    return [module for module in OrgModule if is_allowed(role, module, OrgAction.VIEW)]


def is_role_at_least(role: RoleLike, min_role: OrgRole) -> bool:
    resolved = _as_enum(OrgRole, role)
    if resolved is None:
        return False
    return ORG_ROLE_HIERARCHY[resolved] >= ORG_ROLE_HIERARCHY[min_role]
