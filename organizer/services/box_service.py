"""Box service — CRUD, search, and the box <-> QR code pairing.

Pairing invariant: QrCode.box_id is set exactly when the code's status is
"assigned" or "printed", and then Box.qr_code_id points back at it.

    create_box(qr_code_id=...)  -> code goes generated -> assigned
    delete_box()                -> code goes back to generated

A box's QR code is fixed at creation. Claiming a code is a conditional
UPDATE guarded on status='generated', so two boxes racing for the same
code cannot both win; the loser's box row is rolled back.
"""

import logging
import secrets
import string

from sqlalchemy.exc import IntegrityError

from organizer.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    WorkspaceMismatchError,
)
from organizer.extensions import db
from organizer.models.box import Box
from organizer.models.location import Location
from organizer.models.qr_code import QrCode
from organizer.services import audit_service
from organizer.services.authorization import (
    ANY_MEMBER,
    authorize,
    inventory_write_capability,
)
from organizer.services.naming import check_id, clean_field, clean_text
from organizer.transactions import atomic

logger = logging.getLogger(__name__)

SHORT_ID_ALPHABET = string.ascii_letters + string.digits
UPDATABLE_FIELDS = ("name", "description", "tags", "location_id")
MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _clean_tags(tags):
    """Strip, de-duplicate and bound a tag list (order preserved)."""
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple)):
        raise ValidationError("tags must be a list of strings.", field="tags")

    cleaned = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError("tags must be a list of strings.", field="tags")
        tag = clean_text(tag)
        if not tag:
            raise ValidationError("Tags cannot be empty.", field="tags")
        if len(tag) > Box.TAG_MAX_LENGTH:
            raise ValidationError(
                f"Tags must be at most {Box.TAG_MAX_LENGTH} characters.",
                field="tags",
                max_length=Box.TAG_MAX_LENGTH,
                tag=tag,
            )
        if tag not in cleaned:
            cleaned.append(tag)

    if len(cleaned) > Box.MAX_TAGS:
        raise ValidationError(
            f"A box can have at most {Box.MAX_TAGS} tags.",
            field="tags",
            max_items=Box.MAX_TAGS,
        )
    return cleaned


def _resolve_location(workspace_id, location_id):
    location = db.session.get(Location, location_id)
    if location is None or location.is_deleted:
        raise NotFoundError("Location not found.", field="location_id")
    if location.workspace_id != workspace_id:
        raise WorkspaceMismatchError(field="location_id")
    return location


def _validate_paging(limit, offset):
    for field, value, minimum in (("limit", limit, 1), ("offset", offset, 0)):
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ValidationError(
                f"{field} must be an integer >= {minimum}.", field=field
            )
    if limit > MAX_PAGE_SIZE:
        raise ValidationError(
            f"limit must be at most {MAX_PAGE_SIZE}.",
            field="limit",
            max=MAX_PAGE_SIZE,
        )


def _like_pattern(text):
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _new_short_id():
    while True:
        short_id = "".join(
            secrets.choice(SHORT_ID_ALPHABET) for _ in range(Box.SHORT_ID_LENGTH)
        )
        if not Box.query.filter_by(short_id=short_id).first():
            return short_id


# ---------------------------------------------------------------------------
# QR pairing
# ---------------------------------------------------------------------------


def _check_qr_code(workspace_id, qr_code_id):
    code = db.session.get(QrCode, qr_code_id)
    if code is None:
        raise NotFoundError("QR code not found.", field="qr_code_id")
    if code.workspace_id != workspace_id:
        raise WorkspaceMismatchError(field="qr_code_id")
    if code.status != "generated":
        raise ConflictError(
            "QR code is already assigned.", qr_code_id=qr_code_id
        )
    return code


def _claim_qr_code(workspace_id, code, box_id):
    """Bind a generated code to a box, or raise ConflictError if it was taken."""
    result = db.session.execute(
        db.update(QrCode)
        .where(
            QrCode.id == code.id,
            QrCode.workspace_id == workspace_id,
            QrCode.status == "generated",
        )
        .values(status="assigned", box_id=box_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("QR code %s claimed concurrently", code.id)
        raise ConflictError("QR code is already assigned.", qr_code_id=code.id)
    db.session.refresh(code)


def _release_qr_codes(box):
    """Return the box's QR code (and any stray back-reference) to generated."""
    released = QrCode.query.filter(
        db.or_(QrCode.id == box.qr_code_id, QrCode.box_id == box.id)
    ).all()
    for code in released:
        code.status = "generated"
        code.box_id = None
    db.session.flush()
    return released


def _load_box(principal_id, box_id, capability):
    box = db.session.get(Box, box_id) if box_id else None
    if box is None:
        raise NotFoundError("Box not found.")
    authorize(principal_id, box.workspace_id, capability)
    return box


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


def create_box(principal_id, workspace_id, name, description=None, tags=None,
               location_id=None, qr_code_id=None):
    """Create a box, optionally placed in a location and bound to a QR code.

    Raises:
        NotFoundError: workspace invisible, location missing/deleted, or QR
            code missing.
        WorkspaceMismatchError: location or QR code in another workspace.
        ConflictError: QR code already assigned (including a lost race).
        ValidationError: bad name, description or tags.
    """
    with atomic():
        authorize(principal_id, workspace_id, inventory_write_capability())

        name = clean_field(name, "name", Box.NAME_MAX_LENGTH)
        description = clean_field(
            description, "description", Box.DESCRIPTION_MAX_LENGTH,
            required=False,
        )
        tags = _clean_tags(tags)
        check_id(location_id, "location_id")
        check_id(qr_code_id, "qr_code_id")
        if location_id:
            _resolve_location(workspace_id, location_id)
        code = _check_qr_code(workspace_id, qr_code_id) if qr_code_id else None

        box = Box(
            workspace_id=workspace_id,
            location_id=location_id or None,
            qr_code_id=code.id if code else None,
            short_id=_new_short_id(),
            name=name,
            description=description,
            tags=tags,
        )
        db.session.add(box)
        try:
            db.session.flush()
        except IntegrityError:
            raise ConflictError(
                "QR code is already assigned.", qr_code_id=qr_code_id
            )

        if code is not None:
            _claim_qr_code(workspace_id, code, box.id)

        audit_service.record(
            workspace_id, principal_id, "box.created",
            box_id=box.id, name=name, qr_code_id=box.qr_code_id,
        )
        logger.info("Box %s created in workspace %s", box.id, workspace_id)
        return box


def update_box(principal_id, box_id, **fields):
    """Partially update a box.

    Accepts name, description, tags and location_id (None unassigns).
    The QR code binding cannot be changed.
    """
    if "qr_code_id" in fields:
        raise ValidationError(
            "The QR code of a box cannot be changed.", field="qr_code_id"
        )
    unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(
            f"Unknown field(s): {', '.join(unknown)}", field=unknown[0]
        )

    with atomic():
        box = _load_box(principal_id, box_id, inventory_write_capability())

        if "name" in fields:
            box.name = clean_field(fields["name"], "name", Box.NAME_MAX_LENGTH)
        if "description" in fields:
            box.description = clean_field(
                fields["description"], "description",
                Box.DESCRIPTION_MAX_LENGTH, required=False,
            )
        if "tags" in fields:
            box.tags = _clean_tags(fields["tags"])
        if "location_id" in fields:
            location_id = check_id(fields["location_id"], "location_id")
            if location_id:
                _resolve_location(box.workspace_id, location_id)
            box.location_id = location_id or None
        db.session.flush()

        audit_service.record(
            box.workspace_id, principal_id, "box.updated",
            box_id=box.id, fields=sorted(fields),
        )
        return box


def delete_box(principal_id, box_id):
    """Delete a box, releasing its QR code in the same transaction."""
    with atomic():
        box = _load_box(principal_id, box_id, inventory_write_capability())
        workspace_id = box.workspace_id

        released = _release_qr_codes(box)
        db.session.delete(box)
        db.session.flush()

        audit_service.record(
            workspace_id, principal_id, "box.deleted",
            box_id=box_id, name=box.name,
            released_qr_codes=[code.id for code in released],
        )
        logger.info("Box %s deleted from workspace %s", box_id, workspace_id)


def get_box(principal_id, box_id):
    with atomic():
        return _load_box(principal_id, box_id, ANY_MEMBER)


def list_boxes(principal_id, workspace_id, q=None, location_id=None,
               is_assigned=None, limit=50, offset=0):
    """Search boxes in a workspace, newest first.

    Returns:
        (boxes, total) where total counts all matches ignoring paging.
    """
    with atomic():
        authorize(principal_id, workspace_id, ANY_MEMBER)
        _validate_paging(limit, offset)
        check_id(location_id, "location_id")

        query = Box.query.filter(Box.workspace_id == workspace_id)

        term = clean_text(q) if q else None
        if term:
            pattern = _like_pattern(term)
            query = query.filter(
                db.or_(
                    Box.name.ilike(pattern, escape="\\"),
                    Box.description.ilike(pattern, escape="\\"),
                    db.cast(Box.tags, db.String).ilike(pattern, escape="\\"),
                )
            )
        if location_id:
            query = query.filter(Box.location_id == location_id)
        if is_assigned is True:
            query = query.filter(Box.location_id.isnot(None))
        elif is_assigned is False:
            query = query.filter(Box.location_id.is_(None))

        total = query.count()
        boxes = (
            query.order_by(Box.created_at.desc(), Box.name.asc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return boxes, total


def check_duplicate_name(principal_id, workspace_id, name, exclude_box_id=None):
    """Number of boxes in the workspace with the same name (case-insensitive).

    Advisory only; duplicate names are allowed.
    """
    with atomic():
        authorize(principal_id, workspace_id, ANY_MEMBER)
        name = clean_field(name, "name", Box.NAME_MAX_LENGTH)
        check_id(exclude_box_id, "exclude_box_id")

        query = Box.query.filter(
            Box.workspace_id == workspace_id,
            db.func.lower(Box.name) == name.lower(),
        )
        if exclude_box_id:
            query = query.filter(Box.id != exclude_box_id)
        return query.count()
