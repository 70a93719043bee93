"""Tests for the authorization engine.

Covers:
- Capability checks per role
- Non-members and missing workspaces are indistinguishable (NotFoundError)
- Configurable inventory write capability
"""

import pytest

from organizer.errors import InsufficientPermissionsError, NotFoundError
from organizer.services import location_service, membership_service
from organizer.services.authorization import (
    ANY_MEMBER,
    OWNER_ONLY,
    OWNER_OR_ADMIN,
    authorize,
    inventory_write_capability,
    role_satisfies,
)


class TestRoleSatisfies:

    @pytest.mark.parametrize("role, capability, allowed", [
        ("owner", OWNER_ONLY, True),
        ("admin", OWNER_ONLY, False),
        ("admin", OWNER_OR_ADMIN, True),
        ("member", OWNER_OR_ADMIN, False),
        ("member", ANY_MEMBER, True),
        ("read_only", ANY_MEMBER, True),
        ("read_only", OWNER_OR_ADMIN, False),
    ])
    def test_matrix(self, role, capability, allowed):
        assert role_satisfies(role, capability) is allowed

    def test_unknown_capability(self):
        with pytest.raises(ValueError):
            role_satisfies("owner", "superuser")


class TestAuthorize:

    def test_member_gets_membership(self, seed_data):
        membership = authorize(
            seed_data["bob_id"], seed_data["workspace_id"], ANY_MEMBER
        )
        assert membership.user_id == seed_data["bob_id"]
        assert membership.role == "member"

    def test_non_member_is_not_found(self, seed_data):
        with pytest.raises(NotFoundError) as exc:
            authorize(seed_data["carol_id"], seed_data["workspace_id"], ANY_MEMBER)
        assert exc.value.message == "Workspace not found."

    def test_missing_workspace_looks_the_same(self, seed_data):
        with pytest.raises(NotFoundError) as exc:
            authorize(seed_data["alice_id"], "no-such-workspace", ANY_MEMBER)
        assert exc.value.message == "Workspace not found."

    def test_insufficient_role(self, seed_data):
        with pytest.raises(InsufficientPermissionsError) as exc:
            authorize(seed_data["bob_id"], seed_data["workspace_id"], OWNER_OR_ADMIN)
        assert exc.value.details == {"required": OWNER_OR_ADMIN, "role": "member"}

    def test_owner_passes_owner_only(self, seed_data):
        membership = authorize(
            seed_data["alice_id"], seed_data["workspace_id"], OWNER_ONLY
        )
        assert membership.role == "owner"

    def test_role_change_takes_effect_immediately(self, seed_data):
        ws = seed_data["workspace_id"]
        membership_service.change_role(seed_data["alice_id"], ws, seed_data["bob_id"], "admin")
        assert authorize(seed_data["bob_id"], ws, OWNER_OR_ADMIN).role == "admin"

        membership_service.remove(seed_data["alice_id"], ws, seed_data["bob_id"])
        with pytest.raises(NotFoundError):
            authorize(seed_data["bob_id"], ws, ANY_MEMBER)


class TestInventoryWriteCapability:

    def test_default_is_any_member(self, app):
        assert inventory_write_capability() == ANY_MEMBER

    def test_read_only_can_write_by_default(self, seed_data):
        ws = seed_data["workspace_id"]
        membership_service.change_role(
            seed_data["alice_id"], ws, seed_data["bob_id"], "read_only"
        )
        location = location_service.create_location(seed_data["bob_id"], ws, "Attic")
        assert location.path == "attic"

    def test_owner_or_admin_policy(self, app, seed_data, monkeypatch):
        monkeypatch.setitem(app.config, "INVENTORY_WRITE_CAPABILITY", OWNER_OR_ADMIN)
        ws = seed_data["workspace_id"]

        with pytest.raises(InsufficientPermissionsError):
            location_service.create_location(seed_data["bob_id"], ws, "Attic")

        location = location_service.create_location(seed_data["alice_id"], ws, "Attic")
        assert location.depth == 1

    def test_invalid_policy(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "INVENTORY_WRITE_CAPABILITY", "everyone")
        with pytest.raises(ValueError):
            inventory_write_capability()
