"""Permission vocabulary and the default role_permissions seed table."""

import enum

from backend.core.roles import Role


class Resource(str, enum.Enum):
    USERS = "users"
    PROJECTS = "projects"
    FUNDING = "funding"
    IP_MANAGEMENT = "ip_management"
    EVENTS = "events"
    ANALYTICS = "analytics"
    REPORTS = "reports"
    AUDIT = "audit"
    SYSTEM = "system"


class Action(str, enum.Enum):
    READ = "read"
    READ_OWN = "read_own"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_OWN = "update_own"
    DELETE = "delete"
    DELETE_OWN = "delete_own"
    APPROVE = "approve"
    REJECT = "reject"
    PROMOTE = "promote"
    DEMOTE = "demote"
    MANAGE = "manage"
    VIEW = "view"
    GENERATE = "generate"
    SETTINGS = "settings"


# superAdmin has no rows: it is authorized for everything implicitly.
DEFAULT_PERMISSIONS = [
    # admin
    (Role.ADMIN, Resource.USERS, Action.READ, "View all users"),
    (Role.ADMIN, Resource.USERS, Action.UPDATE, "Edit user profiles"),
    (Role.ADMIN, Resource.USERS, Action.DELETE, "Remove users"),
    (Role.ADMIN, Resource.PROJECTS, Action.READ, "View all projects"),
    (Role.ADMIN, Resource.PROJECTS, Action.UPDATE, "Edit any project"),
    (Role.ADMIN, Resource.PROJECTS, Action.DELETE, "Delete any project"),
    (Role.ADMIN, Resource.PROJECTS, Action.APPROVE, "Approve projects"),
    (Role.ADMIN, Resource.PROJECTS, Action.REJECT, "Reject projects"),
    (Role.ADMIN, Resource.FUNDING, Action.READ, "View all funding applications"),
    (Role.ADMIN, Resource.FUNDING, Action.APPROVE, "Approve funding applications"),
    (Role.ADMIN, Resource.FUNDING, Action.REJECT, "Reject funding applications"),
    (Role.ADMIN, Resource.IP_MANAGEMENT, Action.READ, "View all IP records"),
    (Role.ADMIN, Resource.IP_MANAGEMENT, Action.APPROVE, "Approve IP applications"),
    (Role.ADMIN, Resource.IP_MANAGEMENT, Action.REJECT, "Reject IP applications"),
    (Role.ADMIN, Resource.EVENTS, Action.CREATE, "Create events"),
    (Role.ADMIN, Resource.EVENTS, Action.UPDATE, "Edit events"),
    (Role.ADMIN, Resource.EVENTS, Action.DELETE, "Delete events"),
    (Role.ADMIN, Resource.ANALYTICS, Action.VIEW, "View analytics"),
    (Role.ADMIN, Resource.AUDIT, Action.VIEW, "View audit logs"),
    # ipManager
    (Role.IP_MANAGER, Resource.IP_MANAGEMENT, Action.READ, "View all IP records"),
    (Role.IP_MANAGER, Resource.IP_MANAGEMENT, Action.UPDATE, "Edit IP records"),
    (Role.IP_MANAGER, Resource.IP_MANAGEMENT, Action.DELETE, "Delete IP records"),
    (Role.IP_MANAGER, Resource.IP_MANAGEMENT, Action.APPROVE, "Approve IP applications"),
    (Role.IP_MANAGER, Resource.IP_MANAGEMENT, Action.REJECT, "Reject IP applications"),
    (Role.IP_MANAGER, Resource.FUNDING, Action.READ, "View funding applications"),
    (Role.IP_MANAGER, Resource.FUNDING, Action.APPROVE, "Approve funding applications"),
    (Role.IP_MANAGER, Resource.FUNDING, Action.REJECT, "Reject funding applications"),
    (Role.IP_MANAGER, Resource.PROJECTS, Action.READ, "View all projects"),
    # innovator
    (Role.INNOVATOR, Resource.PROJECTS, Action.CREATE, "Submit projects"),
    (Role.INNOVATOR, Resource.PROJECTS, Action.READ_OWN, "View own projects"),
    (Role.INNOVATOR, Resource.PROJECTS, Action.UPDATE_OWN, "Edit own projects"),
    (Role.INNOVATOR, Resource.PROJECTS, Action.DELETE_OWN, "Delete own projects"),
    (Role.INNOVATOR, Resource.FUNDING, Action.CREATE, "Apply for funding"),
    (Role.INNOVATOR, Resource.FUNDING, Action.READ_OWN, "View own funding applications"),
    (Role.INNOVATOR, Resource.FUNDING, Action.UPDATE_OWN, "Edit own funding applications"),
    (Role.INNOVATOR, Resource.IP_MANAGEMENT, Action.CREATE, "Submit IP applications"),
    (Role.INNOVATOR, Resource.IP_MANAGEMENT, Action.READ_OWN, "View own IP records"),
    (Role.INNOVATOR, Resource.EVENTS, Action.READ, "View events"),
]
