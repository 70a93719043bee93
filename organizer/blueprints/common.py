"""Shared JSON serializers and query-string parsing for the API blueprints."""

from flask import request

from organizer.errors import ValidationError


def _iso(value):
    return value.isoformat() if value else None


def workspace_dict(workspace, role=None):
    data = {
        "id": workspace.id,
        "name": workspace.name,
        "owner_id": workspace.owner_id,
        "created_at": _iso(workspace.created_at),
        "updated_at": _iso(workspace.updated_at),
    }
    if role is not None:
        data["role"] = role
    return data


def member_dict(membership):
    user = membership.user
    return {
        "user_id": membership.user_id,
        "workspace_id": membership.workspace_id,
        "role": membership.role,
        "email": user.email if user else None,
        "full_name": user.full_name if user else None,
        "joined_at": _iso(membership.joined_at),
    }


def location_dict(location):
    return {
        "id": location.id,
        "workspace_id": location.workspace_id,
        "parent_id": location.parent_id,
        "name": location.name,
        "description": location.description,
        "path": location.path,
        "depth": location.depth,
        "created_at": _iso(location.created_at),
        "updated_at": _iso(location.updated_at),
    }


def qr_code_dict(code):
    return {
        "id": code.id,
        "workspace_id": code.workspace_id,
        "short_id": code.short_id,
        "status": code.status,
        "box_id": code.box_id,
        "created_at": _iso(code.created_at),
    }


def box_dict(box):
    location = box.location
    return {
        "id": box.id,
        "workspace_id": box.workspace_id,
        "short_id": box.short_id,
        "name": box.name,
        "description": box.description,
        "tags": box.tags or [],
        "location_id": box.location_id,
        "location": (
            {"id": location.id, "name": location.name, "path": location.path}
            if location else None
        ),
        "qr_code_id": box.qr_code_id,
        "created_at": _iso(box.created_at),
        "updated_at": _iso(box.updated_at),
    }


def audit_dict(event):
    return {
        "id": event.id,
        "action": event.action,
        "actor_user_id": event.actor_user_id,
        "metadata": event.metadata_ or {},
        "created_at": _iso(event.created_at),
    }


def int_arg(name, default):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer.", field=name)


def bool_arg(name):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    raise ValidationError(f"{name} must be true or false.", field=name)
