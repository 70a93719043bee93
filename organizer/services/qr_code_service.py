"""QR code service — batch generation, listing, scanning, print tracking.

Binding a code to a box (and releasing it again) lives in box_service,
next to the box writes it must stay consistent with.
"""

import logging
import re
import secrets

from organizer.errors import InvalidOperationError, NotFoundError, ValidationError
from organizer.extensions import db
from organizer.models.box import Box
from organizer.models.qr_code import QrCode
from organizer.services import audit_service
from organizer.services.authorization import (
    ANY_MEMBER,
    authorize,
    inventory_write_capability,
)
from organizer.transactions import atomic

logger = logging.getLogger(__name__)

SHORT_ID_PATTERN = re.compile(
    rf"^{QrCode.SHORT_ID_PREFIX}[A-Z0-9]{{{QrCode.SHORT_ID_LENGTH}}}$"
)
_MAX_GENERATION_ROUNDS = 10


def _random_short_id():
    suffix = "".join(
        secrets.choice(QrCode.SHORT_ID_ALPHABET)
        for _ in range(QrCode.SHORT_ID_LENGTH)
    )
    return f"{QrCode.SHORT_ID_PREFIX}{suffix}"


def _unique_short_ids(quantity):
    """Draw `quantity` short ids not yet present in the table."""
    chosen = set()
    for _ in range(_MAX_GENERATION_ROUNDS):
        needed = quantity - len(chosen)
        if needed == 0:
            break
        candidates = {_random_short_id() for _ in range(needed)} - chosen
        taken = {
            row.short_id
            for row in db.session.query(QrCode.short_id).filter(
                QrCode.short_id.in_(candidates)
            )
        }
        chosen |= candidates - taken
    if len(chosen) < quantity:
        raise RuntimeError("Could not generate unique QR short ids")
    return sorted(chosen)


def _validate_quantity(quantity):
    if (
        isinstance(quantity, bool)
        or not isinstance(quantity, int)
        or not QrCode.MIN_BATCH_QUANTITY <= quantity <= QrCode.MAX_BATCH_QUANTITY
    ):
        raise ValidationError(
            f"Quantity must be an integer between {QrCode.MIN_BATCH_QUANTITY} "
            f"and {QrCode.MAX_BATCH_QUANTITY}.",
            field="quantity",
            min=QrCode.MIN_BATCH_QUANTITY,
            max=QrCode.MAX_BATCH_QUANTITY,
        )


def normalize_short_id(short_id):
    """Upper-case and validate a scanned short id.

    Raises:
        ValidationError: not of the form QR-XXXXXX.
    """
    value = (short_id or "").strip().upper() if isinstance(short_id, str) else ""
    if not SHORT_ID_PATTERN.match(value):
        raise ValidationError(
            "Malformed QR code id.", field="short_id", value=short_id
        )
    return value


def generate_batch(principal_id, workspace_id, quantity):
    """Create `quantity` unbound QR codes in a workspace.

    Returns:
        List of created QrCode objects, ordered by short_id.
    """
    with atomic():
        authorize(principal_id, workspace_id, inventory_write_capability())
        _validate_quantity(quantity)

        codes = [
            QrCode(workspace_id=workspace_id, short_id=short_id, status="generated")
            for short_id in _unique_short_ids(quantity)
        ]
        db.session.add_all(codes)
        db.session.flush()

        audit_service.record(
            workspace_id, principal_id, "qr_codes.generated",
            quantity=quantity,
        )
        logger.info(
            "Generated %d QR codes in workspace %s", quantity, workspace_id
        )
        return codes


def list_qr_codes(principal_id, workspace_id, status=None):
    """QR codes of a workspace, newest first, optionally filtered by status."""
    with atomic():
        authorize(principal_id, workspace_id, ANY_MEMBER)
        if status is not None and status not in QrCode.STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. Must be one of: {', '.join(QrCode.STATUSES)}",
                field="status",
                allowed=QrCode.STATUSES,
            )

        query = QrCode.query.filter_by(workspace_id=workspace_id)
        if status is not None:
            query = query.filter_by(status=status)
        return query.order_by(
            QrCode.created_at.desc(), QrCode.short_id.asc()
        ).all()


def _find_visible_code(principal_id, short_id):
    short_id = normalize_short_id(short_id)
    code = QrCode.query.filter_by(short_id=short_id).first()
    if code is None:
        raise NotFoundError("QR code not found.")
    authorize(principal_id, code.workspace_id, ANY_MEMBER)
    return code


def get_qr_code_by_short_id(principal_id, short_id):
    """Resolve a scanned label. Codes in other workspaces are not found."""
    with atomic():
        return _find_visible_code(principal_id, short_id)


def scan(principal_id, short_id):
    """Resolve a scanned label together with the box it is bound to.

    Returns:
        (QrCode, Box or None)
    """
    with atomic():
        code = _find_visible_code(principal_id, short_id)
        box = db.session.get(Box, code.box_id) if code.box_id else None
        return code, box


def mark_printed(principal_id, workspace_id, qr_code_ids):
    """Mark assigned codes as physically printed.

    Already-printed codes are left alone. Unbound codes cannot be printed.

    Returns:
        List of the QrCode objects, in the order requested.
    """
    with atomic():
        authorize(principal_id, workspace_id, inventory_write_capability())
        if not isinstance(qr_code_ids, (list, tuple)) or not qr_code_ids:
            raise ValidationError(
                "qr_code_ids must be a non-empty list.", field="qr_code_ids"
            )
        if not all(isinstance(qid, str) for qid in qr_code_ids):
            raise ValidationError(
                "qr_code_ids must contain only strings.", field="qr_code_ids"
            )

        codes = {
            code.id: code
            for code in QrCode.query.filter(
                QrCode.workspace_id == workspace_id,
                QrCode.id.in_(qr_code_ids),
            )
        }
        missing = [qid for qid in qr_code_ids if qid not in codes]
        if missing:
            raise NotFoundError("QR code not found.", qr_code_ids=missing)

        printed = 0
        for code in codes.values():
            if code.status == "generated":
                raise InvalidOperationError(
                    "Only assigned QR codes can be marked as printed.",
                    qr_code_id=code.id,
                )
            if code.status == "assigned":
                code.status = "printed"
                printed += 1
        db.session.flush()

        if printed:
            audit_service.record(
                workspace_id, principal_id, "qr_codes.printed", count=printed,
            )
        return [codes[qid] for qid in qr_code_ids]
