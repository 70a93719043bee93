"""Workspace service — create, list, rename, delete.

Creating a workspace writes the Workspace row and its owner membership
in one transaction. Deletion is handed to cascade_service.
"""

import logging

from organizer.errors import NotFoundError
from organizer.extensions import db
from organizer.models.user import User
from organizer.models.workspace import Workspace, WorkspaceMember
from organizer.services import audit_service, cascade_service, membership_service
from organizer.services.authorization import ANY_MEMBER, OWNER_ONLY, authorize
from organizer.services.naming import clean_field
from organizer.transactions import atomic

logger = logging.getLogger(__name__)


def create_workspace(principal_id, name):
    """Create a workspace owned by the principal.

    Returns:
        The created Workspace.

    Raises:
        NotFoundError: principal has no user profile.
        ValidationError: name empty or longer than 255 characters.
    """
    with atomic():
        if db.session.get(User, principal_id) is None:
            raise NotFoundError("User not found.")
        name = clean_field(name, "name", Workspace.NAME_MAX_LENGTH)

        workspace = Workspace(owner_id=principal_id, name=name)
        db.session.add(workspace)
        db.session.flush()

        membership_service.add_owner(workspace.id, principal_id)
        audit_service.record(
            workspace.id, principal_id, "workspace.created", name=name,
        )
        logger.info("Workspace %s created by %s", workspace.id, principal_id)
        return workspace


def list_workspaces(principal_id):
    """Workspaces the principal belongs to, newest first.

    Returns:
        List of (Workspace, role) tuples.
    """
    with atomic():
        rows = (
            db.session.query(Workspace, WorkspaceMember.role)
            .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
            .filter(WorkspaceMember.user_id == principal_id)
            .order_by(Workspace.created_at.desc(), Workspace.name.asc())
            .all()
        )
        return [(workspace, role) for workspace, role in rows]


def get_workspace(principal_id, workspace_id):
    with atomic():
        authorize(principal_id, workspace_id, ANY_MEMBER)
        workspace = db.session.get(Workspace, workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found.")
        return workspace


def rename_workspace(principal_id, workspace_id, name):
    """Rename a workspace. Owners only."""
    with atomic():
        authorize(principal_id, workspace_id, OWNER_ONLY)
        name = clean_field(name, "name", Workspace.NAME_MAX_LENGTH)

        workspace = db.session.get(Workspace, workspace_id)
        old_name = workspace.name
        workspace.name = name
        db.session.flush()

        audit_service.record(
            workspace_id, principal_id, "workspace.renamed",
            old_name=old_name, new_name=name,
        )
        logger.info("Workspace %s renamed by %s", workspace_id, principal_id)
        return workspace


def delete_workspace(principal_id, workspace_id):
    """Delete a workspace and everything in it. Owners only.

    Returns:
        Dict of deleted row counts (see cascade_service.delete_workspace).
    """
    return cascade_service.delete_workspace(principal_id, workspace_id)
