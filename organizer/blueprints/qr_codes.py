"""QR codes blueprint — label batches and the scanning lookup.

Route Map:
  POST /api/workspaces/<ws>/qr-codes/batch     — Generate a batch (rate limited)
  GET  /api/workspaces/<ws>/qr-codes           — List (?status=)
  POST /api/workspaces/<ws>/qr-codes/printed   — Mark assigned codes as printed
  GET  /api/qr-codes/<short_id>                — Resolve a scanned label
"""

from flask import Blueprint, current_app, jsonify, request

from organizer.blueprints.common import box_dict, qr_code_dict
from organizer.decorators import json_body, principal_required
from organizer.extensions import limiter
from organizer.services import qr_code_service

qr_codes_bp = Blueprint("qr_codes", __name__, url_prefix="/api")


@qr_codes_bp.route("/workspaces/<workspace_id>/qr-codes/batch", methods=["POST"])
@limiter.limit(lambda: current_app.config["QR_BATCH_RATE_LIMIT"])
@principal_required
def generate_batch(principal_id, workspace_id):
    data = json_body()
    codes = qr_code_service.generate_batch(
        principal_id, workspace_id, data.get("quantity")
    )
    return jsonify([qr_code_dict(c) for c in codes]), 201


@qr_codes_bp.route("/workspaces/<workspace_id>/qr-codes", methods=["GET"])
@principal_required
def list_qr_codes(principal_id, workspace_id):
    codes = qr_code_service.list_qr_codes(
        principal_id, workspace_id, status=request.args.get("status") or None
    )
    return jsonify([qr_code_dict(c) for c in codes])


@qr_codes_bp.route("/workspaces/<workspace_id>/qr-codes/printed", methods=["POST"])
@principal_required
def mark_printed(principal_id, workspace_id):
    data = json_body()
    codes = qr_code_service.mark_printed(
        principal_id, workspace_id, data.get("qr_code_ids")
    )
    return jsonify([qr_code_dict(c) for c in codes])


@qr_codes_bp.route("/qr-codes/<short_id>", methods=["GET"])
@principal_required
def scan(principal_id, short_id):
    code, box = qr_code_service.scan(principal_id, short_id)
    data = qr_code_dict(code)
    data["box"] = box_dict(box) if box else None
    return jsonify(data)
