"""Cascade deletion — tear down a workspace and everything it owns.

Steps run in a fixed order inside one transaction:

    1. authorize (owner only)
    2. release QR codes bound to the workspace's boxes, delete the boxes
    3. reset any QR code still bound, delete the QR codes
    4. hard-delete locations, deepest first
    5. delete memberships, then the workspace row

Any failure rolls back every step; the workspace is left untouched. Each
step is its own function and only flushes.
"""

import logging

from organizer.extensions import db
from organizer.models.box import Box
from organizer.models.location import Location
from organizer.models.qr_code import QrCode
from organizer.models.workspace import Workspace, WorkspaceMember
from organizer.services import audit_service
from organizer.services.authorization import OWNER_ONLY, authorize
from organizer.services.naming import path_depth
from organizer.transactions import atomic

logger = logging.getLogger(__name__)


def _release_box_qr_codes(workspace_id):
    box_ids = db.select(Box.id).where(Box.workspace_id == workspace_id)
    return QrCode.query.filter(QrCode.box_id.in_(box_ids)).update(
        {"status": "generated", "box_id": None}, synchronize_session=False
    )


def _delete_boxes(workspace_id):
    return Box.query.filter_by(workspace_id=workspace_id).delete(
        synchronize_session=False
    )


def _reset_bound_qr_codes(workspace_id):
    return QrCode.query.filter(
        QrCode.workspace_id == workspace_id,
        QrCode.box_id.isnot(None),
    ).update({"status": "generated", "box_id": None}, synchronize_session=False)


def _delete_qr_codes(workspace_id):
    return QrCode.query.filter_by(workspace_id=workspace_id).delete(
        synchronize_session=False
    )


def _delete_locations(workspace_id):
    """Delete all locations, soft-deleted ones included, children first."""
    rows = (
        db.session.query(Location.id, Location.path)
        .filter(Location.workspace_id == workspace_id)
        .all()
    )
    by_depth = {}
    for location_id, path in rows:
        by_depth.setdefault(path_depth(path), []).append(location_id)

    deleted = 0
    for depth in sorted(by_depth, reverse=True):
        deleted += Location.query.filter(
            Location.id.in_(by_depth[depth])
        ).delete(synchronize_session=False)
    return deleted


def _delete_memberships(workspace_id):
    return WorkspaceMember.query.filter_by(workspace_id=workspace_id).delete(
        synchronize_session=False
    )


def _delete_workspace_row(workspace_id):
    return Workspace.query.filter_by(id=workspace_id).delete(
        synchronize_session=False
    )


def delete_workspace(principal_id, workspace_id):
    """Delete a workspace with all its boxes, QR codes, locations and members.

    Returns:
        Dict with the number of rows deleted per table.

    Raises:
        NotFoundError: workspace missing or invisible to the principal.
        InsufficientPermissionsError: principal is not an owner.
    """
    with atomic():
        authorize(principal_id, workspace_id, OWNER_ONLY)

        released = _release_box_qr_codes(workspace_id)
        boxes = _delete_boxes(workspace_id)
        released += _reset_bound_qr_codes(workspace_id)
        qr_codes = _delete_qr_codes(workspace_id)
        locations = _delete_locations(workspace_id)
        memberships = _delete_memberships(workspace_id)
        workspaces = _delete_workspace_row(workspace_id)
        db.session.flush()

        counts = {
            "boxes": boxes,
            "qr_codes": qr_codes,
            "qr_codes_released": released,
            "locations": locations,
            "memberships": memberships,
            "workspaces": workspaces,
        }
        audit_service.record(
            workspace_id, principal_id, "workspace.deleted", **counts
        )
        # Bulk statements bypass the identity map.
        db.session.expire_all()

        logger.info(
            "Workspace %s deleted by %s: %s", workspace_id, principal_id, counts
        )
        return counts
