"""Audit event model.

Logs all significant actions (workspace lifecycle, membership changes,
location/box/QR mutations) for the activity feed and debugging.

workspace_id is a plain column, not a foreign key: events outlive the
workspace they describe, including its cascade deletion.
"""

import uuid

from organizer.extensions import db


class AuditEvent(db.Model):
    __tablename__ = "audit_events"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    workspace_id = db.Column(db.String(36), nullable=True, index=True)
    actor_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )
    action = db.Column(db.String(255), nullable=False)  # e.g. "box.created"
    metadata_ = db.Column(
        "metadata", db.JSON, default=dict
    )  # extra context, named metadata_ to avoid the declarative attribute clash
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    actor = db.relationship("User")

    def __repr__(self):
        return f"<AuditEvent {self.action}>"
