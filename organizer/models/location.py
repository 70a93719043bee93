"""Location model.

Storage hierarchy as a materialized path. `path` is the dot-joined chain
of sanitized ASCII segments fixed when the node is created; `name` keeps
the original human-readable label. Locations are soft-deleted.

Sibling uniqueness (same workspace, same parent, non-deleted) is enforced
by a partial unique index so concurrent creates cannot both win.
"""

import uuid

from organizer.extensions import db


class Location(db.Model):
    __tablename__ = "locations"

    MAX_DEPTH = 5  # top-level locations have depth 1
    NAME_MAX_LENGTH = 64
    DESCRIPTION_MAX_LENGTH = 500

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    workspace_id = db.Column(
        db.String(36), db.ForeignKey("workspaces.id"), nullable=False, index=True
    )
    parent_id = db.Column(
        db.String(36), db.ForeignKey("locations.id"), nullable=True, index=True
    )
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    segment = db.Column(db.String(255), nullable=False)  # sanitized name
    path = db.Column(db.String(1300), nullable=False)  # e.g. garaz.polka
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    parent = db.relationship("Location", remote_side=[id])

    @property
    def depth(self):
        return len(self.path.split(".")) if self.path else 0

    def __repr__(self):
        return f"<Location {self.path} deleted={self.is_deleted}>"


# Top-level siblings share a NULL parent_id, which a plain unique index would
# treat as distinct, so coalesce it.
db.Index(
    "uq_locations_sibling_segment",
    Location.workspace_id,
    db.func.coalesce(Location.parent_id, ""),
    Location.segment,
    unique=True,
    sqlite_where=Location.is_deleted == db.false(),
    postgresql_where=Location.is_deleted == db.false(),
)
