"""Role registry: the four system roles and their authority levels."""

import enum
from typing import List, Optional

from backend.core.exceptions import ValidationError


class Role(str, enum.Enum):
    SUPER_ADMIN = "superAdmin"
    ADMIN = "admin"
    IP_MANAGER = "ipManager"
    INNOVATOR = "innovator"


# Higher level = higher authority
ROLE_HIERARCHY = {
    Role.INNOVATOR: 1,
    Role.IP_MANAGER: 2,
    Role.ADMIN: 3,
    Role.SUPER_ADMIN: 4,
}

ROLE_NAMES = {
    Role.SUPER_ADMIN: "Super Administrator",
    Role.ADMIN: "Administrator",
    Role.IP_MANAGER: "IP Manager",
    Role.INNOVATOR: "Innovator",
}

ROLE_DESCRIPTIONS = {
    Role.SUPER_ADMIN: "Full system access with ability to manage users, roles, and system settings",
    Role.ADMIN: "Manage users, approve projects/funding/IP applications, view analytics",
    Role.IP_MANAGER: "Manage IP records and approve IP applications",
    Role.INNOVATOR: "Submit projects, apply for funding, and manage own submissions",
}

TOP_AUTHORITY_ROLE = Role.SUPER_ADMIN

# Roles that skip ownership checks. Kept as an explicit set rather than a
# level threshold.
ELEVATED_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

REVIEWER_ROLES = frozenset({Role.IP_MANAGER, Role.ADMIN, Role.SUPER_ADMIN})


def role_value(role) -> Optional[str]:
    """Plain string form of a role, for JSON bodies and audit rows."""
    if role is None:
        return None
    return role.value if isinstance(role, Role) else str(role)


def is_valid_role(value) -> bool:
    return value in {r.value for r in Role}


def parse_role(value) -> Role:
    """Convert a raw string into a Role.

    Raises:
        ValidationError: If the value is not one of the system roles.
    """
    if isinstance(value, Role):
        return value
    if not is_valid_role(value):
        raise ValidationError(
            "Invalid role",
            code="INVALID_ROLE",
            validRoles=[r.value for r in Role],
        )
    return Role(value)


def has_higher_authority(role_a: Role, role_b: Role) -> bool:
    return ROLE_HIERARCHY[role_a] > ROLE_HIERARCHY[role_b]


def has_equal_or_higher_authority(role_a: Role, role_b: Role) -> bool:
    return ROLE_HIERARCHY[role_a] >= ROLE_HIERARCHY[role_b]


def get_manageable_roles(role: Role) -> List[Role]:
    """Roles strictly below the given one."""
    level = ROLE_HIERARCHY[role]
    return [r for r, lvl in ROLE_HIERARCHY.items() if lvl < level]


def get_roles_by_hierarchy() -> List[Role]:
    """All roles, highest authority first."""
    return sorted(ROLE_HIERARCHY, key=ROLE_HIERARCHY.get, reverse=True)


def can_promote_to_role(user_role: Optional[Role], target_role: Role) -> bool:
    # Only superAdmin changes roles, whatever the target
    return user_role == TOP_AUTHORITY_ROLE


def is_admin(role: Optional[Role]) -> bool:
    return role in ELEVATED_ROLES


def is_reviewer(role: Optional[Role]) -> bool:
    return role in REVIEWER_ROLES
