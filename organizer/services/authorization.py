"""Authorization engine — the single choke point for workspace access.

Every public service operation calls authorize() before reading or
writing workspace-scoped rows. The answer is derived from the membership
table on each call; nothing is cached.

A principal with no membership gets NotFoundError, exactly as if the
workspace did not exist. A member whose role is too low gets
InsufficientPermissionsError.
"""

import logging

from flask import current_app

from organizer.errors import InsufficientPermissionsError, NotFoundError
from organizer.models.workspace import WorkspaceMember

logger = logging.getLogger(__name__)

# -- Capabilities --
ANY_MEMBER = "any_member"
OWNER_OR_ADMIN = "owner_or_admin"
OWNER_ONLY = "owner_only"

CAPABILITY_ROLES = {
    ANY_MEMBER: ("owner", "admin", "member", "read_only"),
    OWNER_OR_ADMIN: ("owner", "admin"),
    OWNER_ONLY: ("owner",),
}


def get_membership(workspace_id, user_id):
    if not workspace_id or not user_id:
        return None
    return WorkspaceMember.query.filter_by(
        workspace_id=workspace_id, user_id=user_id
    ).first()


def role_satisfies(role, required):
    if required not in CAPABILITY_ROLES:
        raise ValueError(f"Unknown capability '{required}'")
    return role in CAPABILITY_ROLES[required]


def authorize(principal_id, workspace_id, required):
    """Check that principal may act with `required` capability in a workspace.

    Returns:
        The principal's WorkspaceMember row.

    Raises:
        NotFoundError: principal is not a member (or workspace is missing).
        InsufficientPermissionsError: member, but role does not satisfy
            the capability.
    """
    membership = get_membership(workspace_id, principal_id)
    if membership is None:
        raise NotFoundError("Workspace not found.")

    if not role_satisfies(membership.role, required):
        logger.warning(
            "Denied %s in workspace %s: role=%s required=%s",
            principal_id, workspace_id, membership.role, required,
        )
        raise InsufficientPermissionsError(
            required=required, role=membership.role
        )

    return membership


def inventory_write_capability():
    """Capability needed to mutate locations, boxes and QR codes."""
    capability = current_app.config.get("INVENTORY_WRITE_CAPABILITY", ANY_MEMBER)
    if capability not in (ANY_MEMBER, OWNER_OR_ADMIN):
        raise ValueError(
            f"INVENTORY_WRITE_CAPABILITY must be '{ANY_MEMBER}' or "
            f"'{OWNER_OR_ADMIN}', got '{capability}'"
        )
    return capability
