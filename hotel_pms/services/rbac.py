# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Role-based access control for staff members."""

ROLE_STAFF = "staff"
ROLE_MANAGER = "manager"
ROLE_ADMIN = "admin"
ROLE_OWNER = "owner"

ROLES = (ROLE_STAFF, ROLE_MANAGER, ROLE_ADMIN, ROLE_OWNER)

ACTION_CREATE = "create"
ACTION_READ = "read"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"

_CRUD = frozenset({ACTION_CREATE, ACTION_READ, ACTION_UPDATE, ACTION_DELETE})
_READ = frozenset({ACTION_READ})
_READ_UPDATE = frozenset({ACTION_READ, ACTION_UPDATE})

WILDCARD_RESOURCE = "*"

ROLE_PERMISSIONS: dict[str, dict[str, frozenset[str]]] = {
    ROLE_OWNER: {WILDCARD_RESOURCE: _CRUD},
    ROLE_ADMIN: {
        "employees": _CRUD,
        "bookings": _CRUD,
        "properties": _CRUD,
        "guests": _CRUD,
        "reports": _READ,
        "analytics": _READ,
        "activity-logs": _READ,
        "invoices": _CRUD,
        "housekeeping": _READ_UPDATE,
        "settings": _READ_UPDATE,
        "pricing": _CRUD,
        "reviews": frozenset({ACTION_READ, ACTION_UPDATE, ACTION_DELETE}),
    },
    ROLE_MANAGER: {
        "bookings": _CRUD,
        "properties": frozenset({ACTION_CREATE, ACTION_READ, ACTION_UPDATE}),
        "guests": _CRUD,
        "reports": _READ,
        "analytics": _READ,
        "activity-logs": _READ,
        "invoices": _READ,
        "employees": _READ,
        "housekeeping": _READ_UPDATE,
    },
    ROLE_STAFF: {
        "bookings": frozenset({ACTION_CREATE, ACTION_READ, ACTION_UPDATE}),
        "guests": _READ_UPDATE,
        "housekeeping": _READ_UPDATE,
    },
}

ROLE_LEVELS = {ROLE_STAFF: 1, ROLE_MANAGER: 2, ROLE_ADMIN: 3, ROLE_OWNER: 4}

ROLE_DESCRIPTIONS = {
    ROLE_STAFF: "Basic operations - bookings, guests, housekeeping",
    ROLE_MANAGER: "Limited management - all staff features plus reports",
    ROLE_ADMIN: "Full access - manage employees and system settings",
    ROLE_OWNER: "Full system access - highest level of control",
}


def has_permission(role: str, resource: str, action: str) -> bool:
    """Check whether a role may perform an action on a resource.

    Args:
        role: Staff role.
        resource: Resource name such as ``bookings``.
        action: One of create, read, update, delete.

    Returns:
        True if allowed. Unknown roles have no permissions.
    """
    permissions = ROLE_PERMISSIONS.get(role)
    if not permissions:
        return False
    if WILDCARD_RESOURCE in permissions:
        return action in permissions[WILDCARD_RESOURCE]
    return action in permissions.get(resource, frozenset())


def get_role_level(role: str) -> int:
    """Get the rank of a role, 0 for unknown roles."""
    return ROLE_LEVELS.get(role, 0)


def can_manage_staff(manager_role: str, target_role: str) -> bool:
    """Check whether a role may edit or remove a staff member of another role.

    Owners manage everyone; admins manage everyone except owners.
    """
    if manager_role == ROLE_OWNER:
        return True
    if manager_role == ROLE_ADMIN:
        return target_role != ROLE_OWNER
    return False


def can_assign_role(assigner_role: str, target_role: str) -> bool:
    """Check whether a role may give another staff member a role."""
    if target_role not in ROLE_LEVELS:
        return False
    if assigner_role == ROLE_OWNER:
        return True
    if assigner_role == ROLE_ADMIN:
        return get_role_level(target_role) < ROLE_LEVELS[ROLE_OWNER]
    return False


def get_role_display(role: str) -> str:
    """Get the human readable name of a role."""
    return role.capitalize() if role in ROLE_LEVELS else "Unknown"


def get_role_description(role: str) -> str:
    """Get a short description of what a role can do."""
    return ROLE_DESCRIPTIONS.get(role, "")
