"""Membership service — who belongs to a workspace, and with which role.

Owner protection: a workspace always keeps at least one owner. Granting,
revoking or removing the owner role needs an owner; admins manage
everyone else. When the user referenced by Workspace.owner_id loses the
owner role, owner_id moves to the longest-standing remaining owner.
"""

import logging

from sqlalchemy.exc import IntegrityError

from organizer.errors import (
    DuplicateMemberError,
    InsufficientPermissionsError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from organizer.extensions import db
from organizer.models.user import User
from organizer.models.workspace import Workspace, WorkspaceMember
from organizer.services import audit_service
from organizer.services.authorization import (
    ANY_MEMBER,
    OWNER_ONLY,
    OWNER_OR_ADMIN,
    authorize,
    get_membership,
)
from organizer.services.naming import check_id
from organizer.transactions import atomic

logger = logging.getLogger(__name__)


def _validate_role(role):
    if role not in WorkspaceMember.ROLES:
        raise ValidationError(
            f"Invalid role '{role}'. Must be one of: {', '.join(WorkspaceMember.ROLES)}",
            field="role",
            allowed=WorkspaceMember.ROLES,
        )


def _require_owner(actor):
    if actor.role != "owner":
        raise InsufficientPermissionsError(
            "Only owners can grant, revoke or remove the owner role.",
            required=OWNER_ONLY,
            role=actor.role,
        )


def _lock_workspace(workspace_id):
    """SELECT ... FOR UPDATE on the workspace row.

    Serializes owner-changing operations in one workspace so the owner
    count read afterwards cannot be invalidated by a concurrent demotion.
    """
    return (
        Workspace.query
        .filter_by(id=workspace_id)
        .with_for_update()
        .one()
    )


def _owner_count(workspace_id):
    """Owners of the workspace. Call with the workspace row locked."""
    return WorkspaceMember.query.filter_by(
        workspace_id=workspace_id, role="owner"
    ).count()


def _resolve_user(email=None, user_id=None):
    check_id(user_id, "user_id")
    check_id(email, "email")
    if user_id:
        user = db.session.get(User, user_id)
    elif email:
        normalized = email.strip().lower()
        user = User.query.filter(db.func.lower(User.email) == normalized).first()
    else:
        raise ValidationError("Either email or user_id is required.", field="email")

    if user is None:
        raise NotFoundError("User not found.")
    return user


def _transfer_owner_id(workspace_id, departing_user_id):
    """Point Workspace.owner_id at another owner if it referenced the departing one."""
    workspace = db.session.get(Workspace, workspace_id)
    if workspace is None or workspace.owner_id != departing_user_id:
        return

    successor = (
        WorkspaceMember.query
        .filter(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.role == "owner",
            WorkspaceMember.user_id != departing_user_id,
        )
        .order_by(WorkspaceMember.joined_at.asc(), WorkspaceMember.id.asc())
        .first()
    )
    # Callers check the owner count first, so a successor always exists.
    workspace.owner_id = successor.user_id
    db.session.flush()
    logger.info(
        "Workspace %s owner_id transferred %s -> %s",
        workspace_id, departing_user_id, successor.user_id,
    )


def add_owner(workspace_id, user_id):
    """Create the initial owner membership for a new workspace.

    Only called from workspace creation, inside its transaction; it is the
    one membership write that is not preceded by authorize().
    """
    membership = WorkspaceMember(
        workspace_id=workspace_id,
        user_id=user_id,
        role="owner",
    )
    db.session.add(membership)
    db.session.flush()
    return membership


def invite(principal_id, workspace_id, role, email=None, user_id=None):
    """Add an existing user to a workspace.

    Raises:
        NotFoundError: workspace invisible to the principal, or unknown user.
        InsufficientPermissionsError: principal is not owner/admin, or is an
            admin inviting an owner.
        ValidationError: invalid role or no target given.
        DuplicateMemberError: target is already a member.
    """
    with atomic():
        actor = authorize(principal_id, workspace_id, OWNER_OR_ADMIN)
        _validate_role(role)
        if role == "owner":
            _require_owner(actor)

        user = _resolve_user(email=email, user_id=user_id)
        if get_membership(workspace_id, user.id) is not None:
            raise DuplicateMemberError(user_id=user.id)

        membership = WorkspaceMember(
            workspace_id=workspace_id,
            user_id=user.id,
            role=role,
        )
        db.session.add(membership)
        try:
            db.session.flush()
        except IntegrityError:
            # Concurrent invite of the same user won the unique constraint.
            raise DuplicateMemberError(user_id=user.id)

        audit_service.record(
            workspace_id, principal_id, "member.invited",
            user_id=user.id, role=role,
        )
        logger.info(
            "User %s added to workspace %s as %s by %s",
            user.id, workspace_id, role, principal_id,
        )
        return membership


def change_role(principal_id, workspace_id, target_user_id, new_role):
    """Change a member's role, keeping at least one owner."""
    with atomic():
        actor = authorize(principal_id, workspace_id, OWNER_OR_ADMIN)
        _validate_role(new_role)

        target = get_membership(workspace_id, target_user_id)
        if target is None:
            raise NotFoundError("Member not found.")

        old_role = target.role
        if old_role == "owner" or new_role == "owner":
            _require_owner(actor)

        if old_role == new_role:
            return target  # no-op

        if old_role == "owner":
            _lock_workspace(workspace_id)
            if _owner_count(workspace_id) <= 1:
                raise InvalidOperationError(
                    "Workspace must keep at least one owner.",
                    user_id=target_user_id,
                )

        target.role = new_role
        db.session.flush()

        if old_role == "owner":
            _transfer_owner_id(workspace_id, target_user_id)

        audit_service.record(
            workspace_id, principal_id, "member.role_changed",
            user_id=target_user_id, old_role=old_role, new_role=new_role,
        )
        logger.info(
            "Role of %s in workspace %s: %s -> %s",
            target_user_id, workspace_id, old_role, new_role,
        )
        return target


def remove(principal_id, workspace_id, target_user_id):
    """Remove a member. Any member may remove themselves (leave)."""
    with atomic():
        actor = authorize(principal_id, workspace_id, ANY_MEMBER)
        leaving = target_user_id == principal_id

        if leaving:
            target = actor
        else:
            if actor.role not in ("owner", "admin"):
                raise InsufficientPermissionsError(
                    required=OWNER_OR_ADMIN, role=actor.role
                )
            target = get_membership(workspace_id, target_user_id)
            if target is None:
                raise NotFoundError("Member not found.")
            if target.role == "owner":
                _require_owner(actor)

        was_owner = target.role == "owner"
        if was_owner:
            _lock_workspace(workspace_id)
            if _owner_count(workspace_id) <= 1:
                raise InvalidOperationError(
                    "Workspace must keep at least one owner.",
                    user_id=target_user_id,
                )

        db.session.delete(target)
        db.session.flush()

        if was_owner:
            _transfer_owner_id(workspace_id, target_user_id)

        audit_service.record(
            workspace_id, principal_id,
            "member.left" if leaving else "member.removed",
            user_id=target_user_id,
        )
        logger.info(
            "User %s removed from workspace %s by %s",
            target_user_id, workspace_id, principal_id,
        )


def list_members(principal_id, workspace_id):
    """Members of a workspace, oldest first. Any member may list."""
    with atomic():
        authorize(principal_id, workspace_id, ANY_MEMBER)
        return (
            WorkspaceMember.query
            .filter_by(workspace_id=workspace_id)
            .join(User, WorkspaceMember.user_id == User.id)
            .order_by(WorkspaceMember.joined_at.asc(), User.email.asc())
            .all()
        )


def get_role(workspace_id, user_id):
    """Role of a user in a workspace, or None if not a member."""
    membership = get_membership(workspace_id, user_id)
    return membership.role if membership else None
