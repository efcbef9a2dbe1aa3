"""
accessgate/models/roles.py

Two-tier role model:
- System role (super_admin) exists outside any organization.
- Organization roles apply only inside their organization.
"""

from enum import Enum
from typing import Annotated, Optional, Union

from pydantic import Field


class SystemRole(str, Enum):
    SUPER_ADMIN = "super_admin"


class OrgRole(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"
    ACCOUNTS = "accounts"
    SALES_STAFF = "sales_staff"
    DESIGNER = "designer"
    EMPLOYEE = "employee"


class OrgModule(str, Enum):
    DASHBOARD = "dashboard"
    INVOICES = "invoices"
    PAYMENTS = "payments"
    QUOTATIONS = "quotations"
    PRICE_CALCULATIONS = "price_calculations"
    DELIVERY_CHALLANS = "delivery_challans"
    CUSTOMERS = "customers"
    VENDORS = "vendors"
    EXPENSES = "expenses"
    EXPENSE_CATEGORIES = "expense_categories"
    EMPLOYEES = "employees"
    ATTENDANCE = "attendance"
    SALARY = "salary"
    LEAVE = "leave"
    PERFORMANCE = "performance"
    TASKS = "tasks"
    REPORTS = "reports"
    TEAM_MEMBERS = "team_members"
    SETTINGS = "settings"
    BILLING = "billing"
    ANALYTICS = "analytics"


class OrgAction(str, Enum):
    VIEW = "view"
    MANAGE = "manage"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    BULK = "bulk"
    IMPORT = "import"
    EXPORT = "export"


ORG_ROLE_DISPLAY = {
    OrgRole.OWNER: "Owner",
    OrgRole.MANAGER: "Manager",
    OrgRole.ACCOUNTS: "Accounts",
    OrgRole.SALES_STAFF: "Sales Staff",
    OrgRole.DESIGNER: "Designer",
    OrgRole.EMPLOYEE: "Employee",
}


# Known names parse to OrgRole; anything else stays a plain string that the
# permission matrix denies.
RoleName = Annotated[Union[OrgRole, str], Field(union_mode="left_to_right")]


def role_name(role: Optional[Union[OrgRole, str]]) -> Optional[str]:
    if role is None:
        return None
    return role.value if isinstance(role, OrgRole) else str(role)
