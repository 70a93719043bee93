"""QR code model.

Printable labels generated in workspace-scoped batches.

Lifecycle:
    generated — unbound, box_id is NULL
    assigned  — bound 1:1 to a box (box.qr_code_id == this id)
    printed   — assigned and marked as physically produced (re-print tracking)

A bound code returns to "generated" when its box is deleted.
"""

import uuid

from organizer.extensions import db


class QrCode(db.Model):
    __tablename__ = "qr_codes"

    # -- Valid statuses --
    STATUSES = ["generated", "assigned", "printed"]
    BOUND_STATUSES = ("assigned", "printed")

    SHORT_ID_PREFIX = "QR-"
    SHORT_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    SHORT_ID_LENGTH = 6

    MIN_BATCH_QUANTITY = 1
    MAX_BATCH_QUANTITY = 100

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    workspace_id = db.Column(
        db.String(36), db.ForeignKey("workspaces.id"), nullable=False, index=True
    )
    short_id = db.Column(db.String(20), unique=True, nullable=False)
    status = db.Column(
        db.String(20), default="generated", nullable=False
    )  # generated | assigned | printed
    box_id = db.Column(
        db.String(36), db.ForeignKey("boxes.id"), nullable=True, unique=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    @property
    def is_bound(self):
        return self.status in self.BOUND_STATUSES

    def __repr__(self):
        return f"<QrCode {self.short_id} ({self.status})>"
