"""Workspace models.

- Workspace: the tenancy boundary; every location, box and QR code
  belongs to exactly one workspace.
- WorkspaceMember: join table linking users to workspaces with a role.
"""

import uuid

from organizer.extensions import db


class Workspace(db.Model):
    __tablename__ = "workspaces"

    NAME_MAX_LENGTH = 255

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Always has an owner-role membership row (maintained by membership_service).
    owner_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    owner = db.relationship("User", foreign_keys=[owner_id])
    members = db.relationship(
        "WorkspaceMember", back_populates="workspace", lazy="dynamic"
    )

    def __repr__(self):
        return f"<Workspace {self.name}>"


class WorkspaceMember(db.Model):
    __tablename__ = "workspace_members"

    # -- Valid roles, highest authority first --
    ROLES = ["owner", "admin", "member", "read_only"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    workspace_id = db.Column(
        db.String(36), db.ForeignKey("workspaces.id"), nullable=False
    )
    role = db.Column(
        db.String(50), default="member", nullable=False
    )  # owner | admin | member | read_only
    joined_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint(
            "workspace_id", "user_id", name="uq_workspace_member"
        ),
        db.Index("ix_workspace_members_user_id", "user_id"),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="workspace_memberships")
    workspace = db.relationship("Workspace", back_populates="members")

    def __repr__(self):
        return f"<WorkspaceMember user={self.user_id} workspace={self.workspace_id} role={self.role}>"
