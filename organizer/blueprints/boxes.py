"""Boxes blueprint — box CRUD and search.

Route Map:
  GET    /api/workspaces/<ws>/boxes                    — Search (?q=&location_id=&is_assigned=&limit=&offset=)
  POST   /api/workspaces/<ws>/boxes                    — Create box
  POST   /api/workspaces/<ws>/boxes/check-duplicate    — Duplicate-name warning
  GET    /api/boxes/<id>                               — Box detail
  PATCH  /api/boxes/<id>                               — Partial update
  DELETE /api/boxes/<id>                               — Delete (releases QR code)
"""

from flask import Blueprint, jsonify, request

from organizer.blueprints.common import bool_arg, box_dict, int_arg
from organizer.decorators import json_body, principal_required
from organizer.errors import ValidationError
from organizer.services import box_service

boxes_bp = Blueprint("boxes", __name__, url_prefix="/api")


@boxes_bp.route("/workspaces/<workspace_id>/boxes", methods=["GET"])
@principal_required
def list_boxes(principal_id, workspace_id):
    limit = int_arg("limit", 50)
    offset = int_arg("offset", 0)
    boxes, total = box_service.list_boxes(
        principal_id,
        workspace_id,
        q=request.args.get("q") or None,
        location_id=request.args.get("location_id") or None,
        is_assigned=bool_arg("is_assigned"),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [box_dict(b) for b in boxes],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@boxes_bp.route("/workspaces/<workspace_id>/boxes", methods=["POST"])
@principal_required
def create_box(principal_id, workspace_id):
    data = json_body()
    box = box_service.create_box(
        principal_id,
        workspace_id,
        data.get("name"),
        description=data.get("description"),
        tags=data.get("tags"),
        location_id=data.get("location_id") or None,
        qr_code_id=data.get("qr_code_id") or None,
    )
    return jsonify(box_dict(box)), 201


@boxes_bp.route("/workspaces/<workspace_id>/boxes/check-duplicate", methods=["POST"])
@principal_required
def check_duplicate(principal_id, workspace_id):
    data = json_body()
    count = box_service.check_duplicate_name(
        principal_id,
        workspace_id,
        data.get("name"),
        exclude_box_id=data.get("exclude_box_id") or None,
    )
    return jsonify({"is_duplicate": count > 0, "count": count})


@boxes_bp.route("/boxes/<box_id>", methods=["GET"])
@principal_required
def get_box(principal_id, box_id):
    return jsonify(box_dict(box_service.get_box(principal_id, box_id)))


@boxes_bp.route("/boxes/<box_id>", methods=["PATCH"])
@principal_required
def update_box(principal_id, box_id):
    data = json_body()
    reserved = sorted(set(data) & {"principal_id", "box_id"})
    if reserved:
        raise ValidationError(
            f"Unknown field(s): {', '.join(reserved)}", field=reserved[0]
        )
    box = box_service.update_box(principal_id, box_id, **data)
    return jsonify(box_dict(box))


@boxes_bp.route("/boxes/<box_id>", methods=["DELETE"])
@principal_required
def delete_box(principal_id, box_id):
    box_service.delete_box(principal_id, box_id)
    return jsonify({"success": True})
