"""
invoicing_kernel.domain.access_policy -- role-gated actions.

Responsibility:
    Decide whether a role may perform an action.  Pure lookup, no I/O.
    Every view and service asks the same question through ``check_access``
    so the rules live in one table.

Rules:
    - viewer: view and export (print/download/email) documents only.
    - editor: additionally create and edit documents, change status and
      open the dashboard/reports; may not delete, manage users or
      manage settings.
    - admin: everything.

Invariants:
    - The policy is advisory at the application layer.  The data store does
      not enforce it.
"""

from __future__ import annotations

from enum import Enum

from invoicing_kernel.domain.accounts import Role
from invoicing_kernel.exceptions import PermissionDeniedError


class Action(Enum):
    VIEW_DOCUMENTS = "view-own-documents"
    EXPORT_DOCUMENT = "export-document"
    VIEW_DASHBOARD = "view-dashboard"
    CREATE_DOCUMENT = "create-document"
    EDIT_DOCUMENT = "edit-document"
    EDIT_STATUS = "edit-status"
    DELETE_DOCUMENT = "delete-document"
    MANAGE_USERS = "manage-users"
    MANAGE_SETTINGS = "manage-settings"


_VIEWER_ACTIONS: frozenset[Action] = frozenset({
    Action.VIEW_DOCUMENTS,
    Action.EXPORT_DOCUMENT,
})

_EDITOR_ACTIONS: frozenset[Action] = _VIEWER_ACTIONS | {
    Action.VIEW_DASHBOARD,
    Action.CREATE_DOCUMENT,
    Action.EDIT_DOCUMENT,
    Action.EDIT_STATUS,
}

ROLE_PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.VIEWER: _VIEWER_ACTIONS,
    Role.EDITOR: _EDITOR_ACTIONS,
    Role.ADMIN: frozenset(Action),
}


def check_access(role: Role | str, action: Action | str) -> tuple[bool, str]:
    """Check whether ``role`` may perform ``action``.

    Returns:
        (allowed, reason). reason is empty when allowed, or a short message
        when denied.
    """
    try:
        role = Role.parse(role)
    except ValueError:
        return (False, f"Access: unknown role '{role}'")
    try:
        action = action if isinstance(action, Action) else Action(action)
    except ValueError:
        return (False, f"Access: unknown action '{action}'")

    if action not in ROLE_PERMISSIONS[role]:
        return (False, f"Access: '{action.value}' not granted to role '{role.value}'")
    return (True, "")


def is_permitted(role: Role | str, action: Action | str) -> bool:
    """True iff ``role`` may perform ``action``."""
    allowed, _ = check_access(role, action)
    return allowed


def require_permission(role: Role | str, action: Action | str) -> None:
    """
    Raise when ``role`` may not perform ``action``.

    Raises:
        PermissionDeniedError
    """
    allowed, reason = check_access(role, action)
    if not allowed:
        role_name = role.value if isinstance(role, Role) else str(role)
        action_name = action.value if isinstance(action, Action) else str(action)
        raise PermissionDeniedError(role_name, action_name, reason)


def permitted_actions(role: Role | str) -> frozenset[Action]:
    """All actions available to ``role``."""
    return ROLE_PERMISSIONS[Role.parse(role)]
