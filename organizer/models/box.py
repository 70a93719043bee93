"""Box model.

A physical storage box. `location_id` is optional (NULL = unassigned);
`qr_code_id` is fixed at creation and mirrors QrCode.box_id, forming a
strict 1:1 pairing maintained by box_service.
"""

import uuid

from organizer.extensions import db


class Box(db.Model):
    __tablename__ = "boxes"

    SHORT_ID_LENGTH = 10
    NAME_MAX_LENGTH = 100
    DESCRIPTION_MAX_LENGTH = 10000
    TAG_MAX_LENGTH = 50
    MAX_TAGS = 20

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    workspace_id = db.Column(
        db.String(36), db.ForeignKey("workspaces.id"), nullable=False, index=True
    )
    location_id = db.Column(
        db.String(36), db.ForeignKey("locations.id"), nullable=True, index=True
    )
    # boxes <-> qr_codes reference each other; the constraint is added after
    # both tables exist.
    qr_code_id = db.Column(
        db.String(36),
        db.ForeignKey("qr_codes.id", use_alter=True, name="fk_boxes_qr_code_id"),
        nullable=True,
        unique=True,
    )
    short_id = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    tags = db.Column(db.JSON, default=list)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    location = db.relationship("Location", foreign_keys=[location_id])

    def __repr__(self):
        return f"<Box {self.short_id} {self.name[:30]}>"
