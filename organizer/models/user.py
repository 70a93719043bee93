"""User model.

Profile directory mirrored from the external identity provider. Holds no
credentials. Authentication happens upstream and the principal id is
forwarded with every request. Flask-Login integration via UserMixin.
"""

import uuid

from flask_login import UserMixin

from organizer.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(255))
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    workspace_memberships = db.relationship(
        "WorkspaceMember", back_populates="user", lazy="dynamic"
    )

    def __repr__(self):
        return f"<User {self.email}>"
