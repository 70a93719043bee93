"""Locations blueprint — location tree endpoints.

Route Map:
  GET    /api/workspaces/<ws>/locations           — Children of ?parent_id= (top level if absent)
  POST   /api/workspaces/<ws>/locations           — Create location
  GET    /api/locations/<id>                      — Location detail
  PATCH  /api/locations/<id>                      — Rename / edit description
  DELETE /api/locations/<id>                      — Soft delete (unassigns boxes)
  GET    /api/locations/<id>/breadcrumbs          — Ancestor chain, root first
"""

from flask import Blueprint, jsonify, request

from organizer.blueprints.common import location_dict
from organizer.decorators import json_body, principal_required
from organizer.services import location_service

locations_bp = Blueprint("locations", __name__, url_prefix="/api")


@locations_bp.route("/workspaces/<workspace_id>/locations", methods=["GET"])
@principal_required
def list_locations(principal_id, workspace_id):
    locations = location_service.list_locations(
        principal_id, workspace_id, parent_id=request.args.get("parent_id") or None
    )
    return jsonify([location_dict(loc) for loc in locations])


@locations_bp.route("/workspaces/<workspace_id>/locations", methods=["POST"])
@principal_required
def create_location(principal_id, workspace_id):
    data = json_body()
    location = location_service.create_location(
        principal_id,
        workspace_id,
        data.get("name"),
        parent_id=data.get("parent_id") or None,
        description=data.get("description"),
    )
    return jsonify(location_dict(location)), 201


@locations_bp.route("/locations/<location_id>", methods=["GET"])
@principal_required
def get_location(principal_id, location_id):
    location = location_service.get_location(principal_id, location_id)
    return jsonify(location_dict(location))


@locations_bp.route("/locations/<location_id>", methods=["PATCH"])
@principal_required
def update_location(principal_id, location_id):
    data = json_body()
    fields = {k: data[k] for k in ("name", "description") if k in data}
    location = location_service.update_location(principal_id, location_id, **fields)
    return jsonify(location_dict(location))


@locations_bp.route("/locations/<location_id>", methods=["DELETE"])
@principal_required
def delete_location(principal_id, location_id):
    unassigned = location_service.delete_location(principal_id, location_id)
    return jsonify({"success": True, "boxes_unassigned": unassigned})


@locations_bp.route("/locations/<location_id>/breadcrumbs", methods=["GET"])
@principal_required
def breadcrumbs(principal_id, location_id):
    chain = location_service.get_breadcrumbs(principal_id, location_id)
    return jsonify([
        {"id": loc.id, "name": loc.name, "path": loc.path} for loc in chain
    ])
