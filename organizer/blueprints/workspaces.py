"""Workspaces blueprint — /api/workspaces/*

Route Map:
  POST   /api/workspaces                              — Create workspace
  GET    /api/workspaces                              — My workspaces
  GET    /api/workspaces/<ws>                         — Workspace detail
  PATCH  /api/workspaces/<ws>                         — Rename (owner)
  DELETE /api/workspaces/<ws>                         — Cascade delete (owner)
  GET    /api/workspaces/<ws>/members                 — List members
  POST   /api/workspaces/<ws>/members                 — Invite member
  PATCH  /api/workspaces/<ws>/members/<user_id>       — Change role
  DELETE /api/workspaces/<ws>/members/<user_id>       — Remove / leave
  GET    /api/workspaces/<ws>/audit                   — Activity trail (owner/admin)
"""

from flask import Blueprint, jsonify

from organizer.blueprints.common import (
    audit_dict,
    int_arg,
    member_dict,
    workspace_dict,
)
from organizer.decorators import json_body, principal_required
from organizer.services import audit_service, membership_service, workspace_service

workspaces_bp = Blueprint("workspaces", __name__, url_prefix="/api/workspaces")


# ─── Workspaces ──────────────────────────────────────────────────

@workspaces_bp.route("", methods=["POST"])
@principal_required
def create_workspace(principal_id):
    data = json_body()
    workspace = workspace_service.create_workspace(principal_id, data.get("name"))
    return jsonify(workspace_dict(workspace, role="owner")), 201


@workspaces_bp.route("", methods=["GET"])
@principal_required
def list_workspaces(principal_id):
    rows = workspace_service.list_workspaces(principal_id)
    return jsonify([workspace_dict(ws, role=role) for ws, role in rows])


@workspaces_bp.route("/<workspace_id>", methods=["GET"])
@principal_required
def get_workspace(principal_id, workspace_id):
    workspace = workspace_service.get_workspace(principal_id, workspace_id)
    role = membership_service.get_role(workspace_id, principal_id)
    return jsonify(workspace_dict(workspace, role=role))


@workspaces_bp.route("/<workspace_id>", methods=["PATCH"])
@principal_required
def rename_workspace(principal_id, workspace_id):
    data = json_body()
    workspace = workspace_service.rename_workspace(
        principal_id, workspace_id, data.get("name")
    )
    return jsonify(workspace_dict(workspace))


@workspaces_bp.route("/<workspace_id>", methods=["DELETE"])
@principal_required
def delete_workspace(principal_id, workspace_id):
    counts = workspace_service.delete_workspace(principal_id, workspace_id)
    return jsonify({"success": True, "deleted": counts})


# ─── Members ─────────────────────────────────────────────────────

@workspaces_bp.route("/<workspace_id>/members", methods=["GET"])
@principal_required
def list_members(principal_id, workspace_id):
    members = membership_service.list_members(principal_id, workspace_id)
    return jsonify([member_dict(m) for m in members])


@workspaces_bp.route("/<workspace_id>/members", methods=["POST"])
@principal_required
def invite_member(principal_id, workspace_id):
    data = json_body()
    membership = membership_service.invite(
        principal_id,
        workspace_id,
        role=data.get("role", "member"),
        email=data.get("email"),
        user_id=data.get("user_id"),
    )
    return jsonify(member_dict(membership)), 201


@workspaces_bp.route("/<workspace_id>/members/<user_id>", methods=["PATCH"])
@principal_required
def change_member_role(principal_id, workspace_id, user_id):
    data = json_body()
    membership = membership_service.change_role(
        principal_id, workspace_id, user_id, data.get("role")
    )
    return jsonify(member_dict(membership))


@workspaces_bp.route("/<workspace_id>/members/<user_id>", methods=["DELETE"])
@principal_required
def remove_member(principal_id, workspace_id, user_id):
    membership_service.remove(principal_id, workspace_id, user_id)
    return jsonify({"success": True})


# ─── Audit ───────────────────────────────────────────────────────

@workspaces_bp.route("/<workspace_id>/audit", methods=["GET"])
@principal_required
def list_audit_events(principal_id, workspace_id):
    limit = min(max(int_arg("limit", 50), 1), 200)
    events = audit_service.list_events(principal_id, workspace_id, limit=limit)
    return jsonify([audit_dict(e) for e in events])
