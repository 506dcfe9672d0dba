"""Permission service: reads and maintains the role_permissions allow-list."""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.core.exceptions import ResourceConflictError, ResourceNotFoundError
from backend.core.permissions import DEFAULT_PERMISSIONS, Action, Resource
from backend.core.roles import ROLE_HIERARCHY, TOP_AUTHORITY_ROLE, parse_role
from backend.models.role_permission import RolePermission

logger = logging.getLogger("citt")


def _as_str(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


class PermissionService:
    """Whitelist lookups over (role, resource, action) triples.

    Nothing is cached: every call reads the table so edits take effect on
    the next request. Query errors propagate; callers decide how to surface
    them.
    """

    @staticmethod
    def has_permission(db: Session, role, resource, action) -> bool:
        """True if ``role`` may perform ``action`` on ``resource``.

        superAdmin is always allowed. Any other role needs an exact row;
        there is no wildcard or hierarchical matching.
        """
        if role == TOP_AUTHORITY_ROLE:
            return True
        row = (
            db.query(RolePermission.id)
            .filter(
                RolePermission.role == role,
                RolePermission.resource == _as_str(resource),
                RolePermission.action == _as_str(action),
            )
            .first()
        )
        return row is not None

    @staticmethod
    def get_role_permissions(db: Session, role) -> List[RolePermission]:
        return (
            db.query(RolePermission)
            .filter(RolePermission.role == role)
            .order_by(RolePermission.resource, RolePermission.action)
            .all()
        )

    @staticmethod
    def get_role_permissions_by_resource(db: Session, role) -> Dict[str, List[dict]]:
        """Registry helper: a role's permissions keyed by resource, for admin views."""
        grouped: Dict[str, List[dict]] = {}
        for perm in PermissionService.get_role_permissions(db, role):
            grouped.setdefault(perm.resource, []).append(
                {"action": perm.action, "description": perm.description}
            )
        return grouped

    @staticmethod
    def can_perform_action(db: Session, role, action) -> bool:
        """Registry helper: true if the role holds ``action`` on at least one resource."""
        if role == TOP_AUTHORITY_ROLE:
            return True
        row = (
            db.query(RolePermission.id)
            .filter(RolePermission.role == role, RolePermission.action == _as_str(action))
            .first()
        )
        return row is not None

    @staticmethod
    def get_accessible_resources(db: Session, role) -> List[str]:
        """Registry helper: resources on which the role holds at least one action."""
        rows = (
            db.query(RolePermission.resource)
            .filter(RolePermission.role == role)
            .distinct()
            .order_by(RolePermission.resource)
            .all()
        )
        return [r[0] for r in rows]

    @staticmethod
    def list_grouped_by_role(db: Session) -> Dict[str, List[dict]]:
        """All permissions grouped by role, highest authority first."""
        rows = db.query(RolePermission).all()
        rows.sort(key=lambda p: (-ROLE_HIERARCHY[p.role], p.resource, p.action))
        grouped: Dict[str, List[dict]] = {}
        for perm in rows:
            grouped.setdefault(perm.role.value, []).append({
                "id": perm.id,
                "resource": perm.resource,
                "action": perm.action,
                "description": perm.description,
            })
        return grouped

    @staticmethod
    def add_permission(
        db: Session,
        role,
        resource: Resource,
        action: Action,
        description: Optional[str] = None,
    ) -> RolePermission:
        """Insert a permission row.

        Raises:
            ValidationError: If ``role`` is not a system role.
            ResourceConflictError: If the triple already exists.
        """
        perm = RolePermission(
            role=parse_role(role),
            resource=Resource(resource).value,
            action=Action(action).value,
            description=description,
        )
        db.add(perm)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ResourceConflictError("This permission already exists", code="DUPLICATE_PERMISSION")
        db.refresh(perm)
        logger.info("Permission added: %s -> %s:%s", perm.role.value, perm.resource, perm.action)
        return perm

    @staticmethod
    def delete_permission(db: Session, permission_id: int) -> dict:
        perm = db.query(RolePermission).filter(RolePermission.id == permission_id).first()
        if not perm:
            raise ResourceNotFoundError("Permission not found")
        deleted = {
            "id": perm.id,
            "role": perm.role.value,
            "resource": perm.resource,
            "action": perm.action,
            "description": perm.description,
        }
        db.delete(perm)
        db.commit()
        logger.info("Permission deleted: %(role)s -> %(resource)s:%(action)s", deleted)
        return deleted

    @staticmethod
    def seed_defaults(db: Session) -> int:
        """Insert any missing default permissions. Returns the number added."""
        existing = {
            (p.role, p.resource, p.action)
            for p in db.query(RolePermission.role, RolePermission.resource, RolePermission.action)
        }
        added = 0
        for role, resource, action, description in DEFAULT_PERMISSIONS:
            if (role, resource.value, action.value) in existing:
                continue
            db.add(RolePermission(
                role=role, resource=resource.value, action=action.value, description=description,
            ))
            added += 1
        db.commit()
        return added


permission_service = PermissionService()
