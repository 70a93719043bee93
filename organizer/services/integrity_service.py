"""Integrity checks — read-only scan for invariant violations.

Used by `flask check-integrity`. Each finding is a short human-readable
string; an empty list means the database is consistent.
"""

from organizer.extensions import db
from organizer.models.box import Box
from organizer.models.location import Location
from organizer.models.qr_code import QrCode
from organizer.models.workspace import Workspace, WorkspaceMember


def _qr_pairing_problems():
    problems = []
    for code in QrCode.query.order_by(QrCode.short_id).all():
        if code.status == "generated" and code.box_id is not None:
            problems.append(
                f"QR {code.short_id}: status generated but box_id={code.box_id}"
            )
        elif code.status in QrCode.BOUND_STATUSES:
            if code.box_id is None:
                problems.append(f"QR {code.short_id}: status {code.status} without box")
                continue
            box = db.session.get(Box, code.box_id)
            if box is None or box.qr_code_id != code.id:
                problems.append(
                    f"QR {code.short_id}: box {code.box_id} does not point back"
                )
            elif box.workspace_id != code.workspace_id:
                problems.append(
                    f"QR {code.short_id}: bound to box {box.id} in another workspace"
                )

    for box in Box.query.filter(Box.qr_code_id.isnot(None)).all():
        code = db.session.get(QrCode, box.qr_code_id)
        if code is None or code.box_id != box.id:
            problems.append(
                f"Box {box.short_id}: QR code {box.qr_code_id} does not point back"
            )
    return problems


def _owner_problems():
    problems = []
    owner_counts = dict(
        db.session.query(WorkspaceMember.workspace_id, db.func.count())
        .filter(WorkspaceMember.role == "owner")
        .group_by(WorkspaceMember.workspace_id)
        .all()
    )
    for workspace in Workspace.query.order_by(Workspace.created_at).all():
        if not owner_counts.get(workspace.id):
            problems.append(f"Workspace {workspace.id}: no owner")
            continue
        owner = WorkspaceMember.query.filter_by(
            workspace_id=workspace.id, user_id=workspace.owner_id, role="owner"
        ).first()
        if owner is None:
            problems.append(
                f"Workspace {workspace.id}: owner_id {workspace.owner_id} is not an owner member"
            )
    return problems


def _location_problems():
    problems = []
    rows = (
        db.session.query(Box.short_id, Location.id)
        .join(Location, Box.location_id == Location.id)
        .filter(Location.is_deleted.is_(True))
        .all()
    )
    for short_id, location_id in rows:
        problems.append(f"Box {short_id}: in deleted location {location_id}")

    for location in Location.query.filter(Location.is_deleted.is_(False)).all():
        if location.depth > Location.MAX_DEPTH:
            problems.append(f"Location {location.id}: depth {location.depth}")
    return problems


def find_problems():
    """All invariant violations currently present in the database."""
    return _qr_pairing_problems() + _owner_problems() + _location_problems()
