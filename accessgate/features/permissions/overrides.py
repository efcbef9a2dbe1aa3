"""
accessgate/features/permissions/overrides.py

Org-specific permission overrides.

An organization may opt out of the global role matrix. When it does, each
"<module>_<action>" key it stores for a role replaces the matrix answer for
that role; keys it does not store still fall back to the matrix.
"""

from typing import Dict, Optional, Union
import logging

from sqlalchemy import select, insert, update, delete

from accessgate.core.database import (
    get_db_session,
    org_permission_settings,
    org_specific_permissions,
)
from accessgate.features.permissions.matrix import permission_key
from accessgate.models.roles import OrgAction, OrgModule, OrgRole


logger = logging.getLogger(__name__)


def uses_global_permissions(organization_id: str) -> bool:
    """Organizations without a settings row use the global matrix."""
    with get_db_session() as session:
        row = session.execute(
            select(org_permission_settings.c.use_global_permissions)
            .where(org_permission_settings.c.organization_id == organization_id)
        ).first()
    if row is None:
        return True
    return bool(row.use_global_permissions)


def set_use_global_permissions(organization_id: str, use_global: bool) -> None:
    with get_db_session() as session:
        existing = session.execute(
            select(org_permission_settings.c.organization_id)
            .where(org_permission_settings.c.organization_id == organization_id)
        ).first()
        if existing:
            session.execute(
                update(org_permission_settings)
                .where(org_permission_settings.c.organization_id == organization_id)
                .values(use_global_permissions=use_global)
            )
        else:
            session.execute(
                insert(org_permission_settings).values(
                    organization_id=organization_id,
                    use_global_permissions=use_global,
                )
            )


def set_override(
    organization_id: str,
    role: Union[OrgRole, str],
    module: Union[OrgModule, str],
    action: Union[OrgAction, str],
    is_enabled: bool,
) -> None:
    """Upsert one override switch for a role."""
    role_value = OrgRole(role).value
    key = permission_key(OrgModule(module), OrgAction(action))
    with get_db_session() as session:
        session.execute(
            delete(org_specific_permissions)
            .where(org_specific_permissions.c.organization_id == organization_id)
            .where(org_specific_permissions.c.role == role_value)
            .where(org_specific_permissions.c.permission_key == key)
        )
        session.execute(
            insert(org_specific_permissions).values(
                organization_id=organization_id,
                role=role_value,
                permission_key=key,
                is_enabled=is_enabled,
            )
        )


def get_permission_overrides(
    organization_id: str,
    role: Optional[Union[OrgRole, str]],
) -> Optional[Dict[str, bool]]:
    """
    Overrides for the role, or None when the organization uses the global matrix.

    An empty dict means "custom permissions enabled, nothing overridden for
    this role".
    """
    if role is None or uses_global_permissions(organization_id):
        return None

    role_value = role.value if isinstance(role, OrgRole) else str(role)
    with get_db_session() as session:
        rows = session.execute(
            select(org_specific_permissions.c.permission_key, org_specific_permissions.c.is_enabled)
            .where(org_specific_permissions.c.organization_id == organization_id)
            .where(org_specific_permissions.c.role == role_value)
        ).all()

    overrides = {row.permission_key: bool(row.is_enabled) for row in rows}
    logger.debug(
        "[permissions] loaded org overrides",
        extra={"organization_id": organization_id, "role": role_value, "count": len(overrides)},
    )
    return overrides
