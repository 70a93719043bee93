"""Location service — materialized-path hierarchy of storage locations.

Paths are assigned when a node is created and are never rewritten for
descendants: renaming a location changes only its own name, segment and
the last element of its own path. Anything that walks the tree (subtree
deletion, breadcrumbs) therefore follows parent_id, not path prefixes.

Locations are soft-deleted; boxes inside a deleted location become
unassigned in the same transaction.
"""

import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from organizer.errors import (
    MaxDepthExceededError,
    NotFoundError,
    SiblingNameConflictError,
    ValidationError,
)
from organizer.extensions import db
from organizer.models.box import Box
from organizer.models.location import Location
from organizer.services import audit_service
from organizer.services.authorization import (
    ANY_MEMBER,
    authorize,
    inventory_write_capability,
)
from organizer.services.naming import (
    check_id,
    clean_field,
    join_path,
    sanitize_segment,
)
from organizer.transactions import atomic

logger = logging.getLogger(__name__)

_UNSET = object()


def _segment_for(name):
    segment = sanitize_segment(name)
    if not segment:
        raise ValidationError(
            "Name must contain at least one letter or digit.", field="name"
        )
    return segment


def _find_sibling(workspace_id, parent_id, segment, exclude_id=None):
    """Non-deleted location with the same parent and segment, if any."""
    query = Location.query.filter(
        Location.workspace_id == workspace_id,
        Location.parent_id.is_(None) if parent_id is None
        else Location.parent_id == parent_id,
        Location.segment == segment,
        Location.is_deleted.is_(False),
    )
    if exclude_id is not None:
        query = query.filter(Location.id != exclude_id)
    return query.first()


def _check_sibling(workspace_id, parent_id, segment, exclude_id=None):
    sibling = _find_sibling(workspace_id, parent_id, segment, exclude_id)
    if sibling is not None:
        raise SiblingNameConflictError(
            segment=segment, conflicting_id=sibling.id
        )


def _flush_location(location):
    """Flush, turning a sibling unique-index violation into a domain error."""
    try:
        db.session.flush()
    except IntegrityError:
        logger.warning(
            "Sibling segment '%s' claimed concurrently in workspace %s",
            location.segment, location.workspace_id,
        )
        raise SiblingNameConflictError(segment=location.segment)


def _load_location(principal_id, location_id, capability):
    location = db.session.get(Location, location_id) if location_id else None
    if location is None or location.is_deleted:
        raise NotFoundError("Location not found.")
    authorize(principal_id, location.workspace_id, capability)
    return location


def _load_parent(workspace_id, parent_id):
    parent = db.session.get(Location, parent_id)
    # A parent in another workspace is reported as missing.
    if parent is None or parent.is_deleted or parent.workspace_id != workspace_id:
        raise NotFoundError("Parent location not found.")
    return parent


def _subtree_ids(root_id):
    """Ids of the root and all its non-deleted descendants, via parent_id."""
    ids = [root_id]
    frontier = [root_id]
    while frontier:
        children = [
            row.id
            for row in db.session.query(Location.id).filter(
                Location.parent_id.in_(frontier),
                Location.is_deleted.is_(False),
            )
        ]
        ids.extend(children)
        frontier = children
    return ids


def create_location(principal_id, workspace_id, name, parent_id=None, description=None):
    """Create a location at the top level or under a parent.

    Returns:
        The created Location.

    Raises:
        NotFoundError: workspace invisible, or parent missing/deleted/foreign.
        ValidationError: bad name or description.
        MaxDepthExceededError: the new node would be deeper than 5.
        SiblingNameConflictError: a sibling already uses the same segment.
    """
    with atomic():
        authorize(principal_id, workspace_id, inventory_write_capability())

        name = clean_field(name, "name", Location.NAME_MAX_LENGTH)
        description = clean_field(
            description, "description", Location.DESCRIPTION_MAX_LENGTH,
            required=False,
        )
        segment = _segment_for(name)

        check_id(parent_id, "parent_id")
        parent = _load_parent(workspace_id, parent_id) if parent_id else None
        depth = (parent.depth if parent else 0) + 1
        if depth > Location.MAX_DEPTH:
            raise MaxDepthExceededError(limit=Location.MAX_DEPTH, depth=depth)

        _check_sibling(workspace_id, parent_id, segment)

        location = Location(
            workspace_id=workspace_id,
            parent_id=parent.id if parent else None,
            name=name,
            description=description,
            segment=segment,
            path=join_path(parent.path if parent else "", segment),
        )
        db.session.add(location)
        _flush_location(location)

        audit_service.record(
            workspace_id, principal_id, "location.created",
            location_id=location.id, path=location.path,
        )
        logger.info("Location %s (%s) created", location.id, location.path)
        return location


def update_location(principal_id, location_id, name=_UNSET, description=_UNSET):
    """Update a location's name and/or description.

    A new name re-derives this node's segment and the last element of its
    own path; descendants keep their stored paths.
    """
    with atomic():
        location = _load_location(
            principal_id, location_id, inventory_write_capability()
        )
        changes = {}

        if name is not _UNSET:
            name = clean_field(name, "name", Location.NAME_MAX_LENGTH)
            segment = _segment_for(name)
            if segment != location.segment:
                _check_sibling(
                    location.workspace_id, location.parent_id, segment,
                    exclude_id=location.id,
                )
                prefix = location.path.rpartition(".")[0]
                location.segment = segment
                location.path = join_path(prefix, segment)
            if name != location.name:
                changes["name"] = {"old": location.name, "new": name}
            location.name = name

        if description is not _UNSET:
            description = clean_field(
                description, "description", Location.DESCRIPTION_MAX_LENGTH,
                required=False,
            )
            if description != location.description:
                changes["description"] = True
            location.description = description

        _flush_location(location)

        if changes:
            audit_service.record(
                location.workspace_id, principal_id, "location.updated",
                location_id=location.id, path=location.path,
                fields=sorted(changes),
            )
        return location


def rename_location(principal_id, location_id, name):
    return update_location(principal_id, location_id, name=name)


def delete_location(principal_id, location_id):
    """Soft-delete a location and unassign the boxes inside it.

    With LOCATION_DELETE_CASCADE on, the whole subtree goes too.

    Returns:
        Number of boxes whose location_id was cleared.
    """
    with atomic():
        location = _load_location(
            principal_id, location_id, inventory_write_capability()
        )

        if current_app.config.get("LOCATION_DELETE_CASCADE", True):
            ids = _subtree_ids(location.id)
        else:
            ids = [location.id]

        for node in Location.query.filter(Location.id.in_(ids)).all():
            node.is_deleted = True

        boxes = Box.query.filter(Box.location_id.in_(ids)).all()
        for box in boxes:
            box.location_id = None
        db.session.flush()

        audit_service.record(
            location.workspace_id, principal_id, "location.deleted",
            location_id=location.id, path=location.path,
            locations_deleted=len(ids), boxes_unassigned=len(boxes),
        )
        logger.info(
            "Location %s deleted (%d nodes, %d boxes unassigned)",
            location.id, len(ids), len(boxes),
        )
        return len(boxes)


def list_locations(principal_id, workspace_id, parent_id=None):
    """Direct non-deleted children of parent_id (top level when None), by name."""
    with atomic():
        authorize(principal_id, workspace_id, ANY_MEMBER)
        check_id(parent_id, "parent_id")
        if parent_id:
            _load_parent(workspace_id, parent_id)

        query = Location.query.filter(
            Location.workspace_id == workspace_id,
            Location.is_deleted.is_(False),
        )
        if parent_id:
            query = query.filter(Location.parent_id == parent_id)
        else:
            query = query.filter(Location.parent_id.is_(None))
        return query.order_by(Location.name.asc()).all()


def get_location(principal_id, location_id):
    with atomic():
        return _load_location(principal_id, location_id, ANY_MEMBER)


def get_breadcrumbs(principal_id, location_id):
    """Ancestor chain of a location, root first, ending with the location.

    The walk stops below a soft-deleted ancestor, which only exists when
    LOCATION_DELETE_CASCADE is off.
    """
    with atomic():
        location = _load_location(principal_id, location_id, ANY_MEMBER)
        chain = [location]
        node = location
        while node.parent_id is not None and len(chain) <= Location.MAX_DEPTH:
            node = db.session.get(Location, node.parent_id)
            if node is None or node.is_deleted:
                break
            chain.append(node)
        chain.reverse()
        return chain
