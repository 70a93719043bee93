"""Audit service — append-only activity trail.

record() flushes into the caller's transaction, so an event is committed
exactly when the change it describes is.
"""

from organizer.extensions import db
from organizer.models.audit import AuditEvent
from organizer.services.authorization import OWNER_OR_ADMIN, authorize
from organizer.transactions import atomic


def record(workspace_id, actor_user_id, action, **metadata):
    """Add an AuditEvent row (flush only, never commits)."""
    event = AuditEvent(
        workspace_id=workspace_id,
        actor_user_id=actor_user_id,
        action=action,
        metadata_=metadata,
    )
    db.session.add(event)
    db.session.flush()
    return event


def list_events(principal_id, workspace_id, limit=50):
    """Most recent audit events for a workspace, newest first.

    Owners and admins only.
    """
    with atomic():
        authorize(principal_id, workspace_id, OWNER_OR_ADMIN)
        return (
            AuditEvent.query
            .filter_by(workspace_id=workspace_id)
            .order_by(AuditEvent.created_at.desc())
            .limit(limit)
            .all()
        )
