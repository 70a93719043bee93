"""Tests for the JSON API blueprints.

Covers:
- Principal header handling (401)
- Error envelope and status mapping (400/403/404/409/422)
- Workspaces, members, audit, locations, QR codes and boxes routes
"""

import pytest

from organizer.extensions import db
from organizer.models.qr_code import QrCode


# ─── Helpers ───────────────────────────────────────────────

def _error(resp):
    return resp.get_json()["error"]


@pytest.fixture
def as_user(client, auth_headers):
    """Return request helpers bound to one principal."""

    class _Caller:
        def __init__(self, user_id):
            self.headers = auth_headers(user_id)

        def get(self, url, **kw):
            return client.get(url, headers=self.headers, **kw)

        def post(self, url, **kw):
            return client.post(url, headers=self.headers, **kw)

        def patch(self, url, **kw):
            return client.patch(url, headers=self.headers, **kw)

        def delete(self, url, **kw):
            return client.delete(url, headers=self.headers, **kw)

    return _Caller


# ─── Authentication / errors ───────────────────────────────

class TestPrincipal:

    def test_missing_header(self, client, seed_data):
        resp = client.get("/api/workspaces")
        assert resp.status_code == 401
        assert _error(resp)["code"] == "unauthorized"

    def test_unknown_principal(self, client, auth_headers, seed_data):
        resp = client.get("/api/workspaces", headers=auth_headers("ghost"))
        assert resp.status_code == 401

    def test_malformed_json(self, as_user, seed_data):
        resp = as_user(seed_data["alice_id"]).post(
            "/api/workspaces", data="{not json", content_type="application/json"
        )
        assert resp.status_code == 400
        assert _error(resp)["code"] == "bad_request"

    def test_json_array_body_rejected(self, as_user, seed_data):
        resp = as_user(seed_data["alice_id"]).post("/api/workspaces", json=["Home"])
        assert resp.status_code == 400

    def test_unknown_route_is_json_404(self, as_user, seed_data):
        resp = as_user(seed_data["alice_id"]).get("/api/nothing-here")
        assert resp.status_code == 404
        assert _error(resp)["code"] == "not_found"

    def test_method_not_allowed(self, client, auth_headers, seed_data):
        resp = client.put("/api/workspaces", headers=auth_headers(seed_data["alice_id"]))
        assert resp.status_code == 405
        assert _error(resp)["code"] == "method_not_allowed"

    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}


# ─── Workspaces / members / audit ──────────────────────────

class TestWorkspaceRoutes:

    def test_create_and_list(self, as_user, seed_data):
        carol = as_user(seed_data["carol_id"])
        resp = carol.post("/api/workspaces", json={"name": "Cabin"})
        assert resp.status_code == 201
        assert resp.get_json()["role"] == "owner"

        listed = carol.get("/api/workspaces").get_json()
        assert [w["name"] for w in listed] == ["Cabin"]

    def test_create_invalid_name(self, as_user, seed_data):
        resp = as_user(seed_data["carol_id"]).post("/api/workspaces", json={"name": ""})
        assert resp.status_code == 422
        assert _error(resp)["details"]["field"] == "name"

    def test_get_hidden_workspace(self, as_user, seed_data):
        resp = as_user(seed_data["carol_id"]).get(
            f"/api/workspaces/{seed_data['workspace_id']}"
        )
        assert resp.status_code == 404
        assert _error(resp) == {
            "code": "not_found",
            "message": "Workspace not found.",
            "details": {},
        }

    def test_member_cannot_rename(self, as_user, seed_data):
        resp = as_user(seed_data["bob_id"]).patch(
            f"/api/workspaces/{seed_data['workspace_id']}", json={"name": "Mine"}
        )
        assert resp.status_code == 403
        assert _error(resp)["code"] == "insufficient_permissions"

    def test_owner_renames(self, as_user, seed_data):
        resp = as_user(seed_data["alice_id"]).patch(
            f"/api/workspaces/{seed_data['workspace_id']}", json={"name": "Cottage"}
        )
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Cottage"

    def test_member_management(self, as_user, seed_data):
        alice = as_user(seed_data["alice_id"])
        ws = seed_data["workspace_id"]

        resp = alice.post(f"/api/workspaces/{ws}/members",
                          json={"email": "carol@example.com", "role": "admin"})
        assert resp.status_code == 201
        assert resp.get_json()["role"] == "admin"

        resp = alice.post(f"/api/workspaces/{ws}/members",
                          json={"email": "carol@example.com"})
        assert resp.status_code == 409
        assert _error(resp)["code"] == "duplicate_member"

        resp = alice.patch(f"/api/workspaces/{ws}/members/{seed_data['carol_id']}",
                           json={"role": "read_only"})
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "read_only"

        members = alice.get(f"/api/workspaces/{ws}/members").get_json()
        assert {m["email"] for m in members} == {
            "alice@example.com", "bob@example.com", "carol@example.com",
        }

        resp = alice.delete(f"/api/workspaces/{ws}/members/{seed_data['carol_id']}")
        assert resp.status_code == 200

    def test_last_owner_protection(self, as_user, seed_data):
        resp = as_user(seed_data["alice_id"]).patch(
            f"/api/workspaces/{seed_data['workspace_id']}/members/{seed_data['alice_id']}",
            json={"role": "member"},
        )
        assert resp.status_code == 409
        assert _error(resp)["code"] == "invalid_operation"

    def test_audit_is_owner_or_admin(self, as_user, seed_data):
        ws = seed_data["workspace_id"]
        events = as_user(seed_data["alice_id"]).get(f"/api/workspaces/{ws}/audit").get_json()
        assert {e["action"] for e in events} >= {"workspace.created", "member.invited"}

        resp = as_user(seed_data["bob_id"]).get(f"/api/workspaces/{ws}/audit")
        assert resp.status_code == 403

    def test_delete_workspace(self, as_user, seed_data):
        ws = seed_data["workspace_id"]
        resp = as_user(seed_data["alice_id"]).delete(f"/api/workspaces/{ws}")
        assert resp.status_code == 200
        assert resp.get_json()["deleted"]["memberships"] == 2

        resp = as_user(seed_data["alice_id"]).get(f"/api/workspaces/{ws}")
        assert resp.status_code == 404


# ─── Locations ─────────────────────────────────────────────

class TestLocationRoutes:

    def test_tree_lifecycle(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]

        garage = bob.post(f"/api/workspaces/{ws}/locations", json={"name": "Garaż"})
        assert garage.status_code == 201
        garage = garage.get_json()
        assert garage["path"] == "garaz"
        assert garage["depth"] == 1

        shelf = bob.post(f"/api/workspaces/{ws}/locations",
                         json={"name": "Półka", "parent_id": garage["id"]}).get_json()
        assert shelf["path"] == "garaz.polka"

        resp = bob.post(f"/api/workspaces/{ws}/locations",
                        json={"name": "polka", "parent_id": garage["id"]})
        assert resp.status_code == 409
        assert _error(resp)["code"] == "sibling_name_conflict"

        children = bob.get(f"/api/workspaces/{ws}/locations?parent_id={garage['id']}")
        assert [c["name"] for c in children.get_json()] == ["Półka"]

        crumbs = bob.get(f"/api/locations/{shelf['id']}/breadcrumbs").get_json()
        assert [c["name"] for c in crumbs] == ["Garaż", "Półka"]

        renamed = bob.patch(f"/api/locations/{shelf['id']}", json={"name": "Regał"})
        assert renamed.get_json()["path"] == "garaz.regal"

        resp = bob.delete(f"/api/locations/{garage['id']}")
        assert resp.get_json() == {"success": True, "boxes_unassigned": 0}
        assert bob.get(f"/api/locations/{shelf['id']}").status_code == 404

    def test_depth_limit_is_422(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]
        parent_id = None
        for name in ["a", "b", "c", "d", "e"]:
            parent_id = bob.post(f"/api/workspaces/{ws}/locations",
                                 json={"name": name, "parent_id": parent_id}).get_json()["id"]

        resp = bob.post(f"/api/workspaces/{ws}/locations",
                        json={"name": "f", "parent_id": parent_id})
        assert resp.status_code == 422
        assert _error(resp)["code"] == "max_depth_exceeded"
        assert _error(resp)["details"] == {"limit": 5, "depth": 6}


# ─── QR codes / boxes ──────────────────────────────────────

class TestQrAndBoxRoutes:

    def test_batch_validation(self, as_user, seed_data):
        resp = as_user(seed_data["bob_id"]).post(
            f"/api/workspaces/{seed_data['workspace_id']}/qr-codes/batch",
            json={"quantity": 101},
        )
        assert resp.status_code == 422
        assert _error(resp)["details"] == {"field": "quantity", "min": 1, "max": 100}

    def test_non_string_ids_are_422(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]

        resp = bob.post(f"/api/workspaces/{ws}/qr-codes/printed",
                        json={"qr_code_ids": [{"a": 1}]})
        assert resp.status_code == 422
        assert _error(resp)["details"] == {"field": "qr_code_ids"}

        resp = bob.post(f"/api/workspaces/{ws}/boxes",
                        json={"name": "Tools", "location_id": {"a": 1}})
        assert resp.status_code == 422
        assert _error(resp)["details"] == {"field": "location_id"}

        resp = bob.post(f"/api/workspaces/{ws}/locations",
                        json={"name": "Garage", "parent_id": 12})
        assert resp.status_code == 422
        assert _error(resp)["details"] == {"field": "parent_id"}

        resp = as_user(seed_data["alice_id"]).post(
            f"/api/workspaces/{ws}/members", json={"email": 5}
        )
        assert resp.status_code == 422
        assert _error(resp)["details"] == {"field": "email"}

    def test_scan_unbound_code(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]
        code = bob.post(f"/api/workspaces/{ws}/qr-codes/batch",
                        json={"quantity": 1}).get_json()[0]

        scanned = bob.get(f"/api/qr-codes/{code['short_id']}")
        assert scanned.status_code == 200
        assert scanned.get_json()["box"] is None

    def test_box_lifecycle(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]

        codes = bob.post(f"/api/workspaces/{ws}/qr-codes/batch", json={"quantity": 2})
        assert codes.status_code == 201
        code = codes.get_json()[0]

        box = bob.post(f"/api/workspaces/{ws}/boxes", json={
            "name": "Winter clothes",
            "tags": ["winter"],
            "qr_code_id": code["id"],
        })
        assert box.status_code == 201
        box = box.get_json()
        assert box["qr_code_id"] == code["id"]

        resp = bob.post(f"/api/workspaces/{ws}/boxes",
                        json={"name": "Other", "qr_code_id": code["id"]})
        assert resp.status_code == 409
        assert _error(resp)["code"] == "conflict"

        scanned = bob.get(f"/api/qr-codes/{code['short_id']}").get_json()
        assert scanned["status"] == "assigned"
        assert scanned["box"]["id"] == box["id"]

        printed = bob.post(f"/api/workspaces/{ws}/qr-codes/printed",
                           json={"qr_code_ids": [code["id"]]}).get_json()
        assert printed[0]["status"] == "printed"

        listed = bob.get(f"/api/workspaces/{ws}/qr-codes?status=printed").get_json()
        assert [c["id"] for c in listed] == [code["id"]]

        resp = bob.patch(f"/api/boxes/{box['id']}", json={"qr_code_id": None})
        assert resp.status_code == 422

        resp = bob.patch(f"/api/boxes/{box['id']}", json={"box_id": "x"})
        assert resp.status_code == 422

        resp = bob.patch(f"/api/boxes/{box['id']}", json={"name": "Ski gear"})
        assert resp.get_json()["name"] == "Ski gear"

        dup = bob.post(f"/api/workspaces/{ws}/boxes/check-duplicate",
                       json={"name": "ski GEAR"}).get_json()
        assert dup == {"is_duplicate": True, "count": 1}

        resp = bob.delete(f"/api/boxes/{box['id']}")
        assert resp.status_code == 200

        db.session.expire_all()
        released = db.session.get(QrCode, code["id"])
        assert released.status == "generated"
        assert released.box_id is None

    def test_box_search_params(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]
        garage = bob.post(f"/api/workspaces/{ws}/locations", json={"name": "Garage"}).get_json()
        bob.post(f"/api/workspaces/{ws}/boxes", json={"name": "Drill", "location_id": garage["id"]})
        bob.post(f"/api/workspaces/{ws}/boxes", json={"name": "Drill bits"})

        body = bob.get(f"/api/workspaces/{ws}/boxes?q=drill&is_assigned=false").get_json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Drill bits"

        body = bob.get(f"/api/workspaces/{ws}/boxes?location_id={garage['id']}").get_json()
        assert body["items"][0]["location"]["path"] == "garage"

        resp = bob.get(f"/api/workspaces/{ws}/boxes?limit=abc")
        assert resp.status_code == 422
        resp = bob.get(f"/api/workspaces/{ws}/boxes?limit=500")
        assert resp.status_code == 422
        resp = bob.get(f"/api/workspaces/{ws}/boxes?is_assigned=maybe")
        assert resp.status_code == 422

    def test_cross_workspace_location_is_422(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        other = bob.post("/api/workspaces", json={"name": "Other"}).get_json()
        foreign = bob.post(f"/api/workspaces/{other['id']}/locations",
                           json={"name": "Garage"}).get_json()

        resp = bob.post(f"/api/workspaces/{seed_data['workspace_id']}/boxes",
                        json={"name": "Tools", "location_id": foreign["id"]})
        assert resp.status_code == 422
        assert _error(resp)["code"] == "workspace_mismatch"

    def test_outsider_sees_404(self, as_user, seed_data):
        bob = as_user(seed_data["bob_id"])
        ws = seed_data["workspace_id"]
        box = bob.post(f"/api/workspaces/{ws}/boxes", json={"name": "Tools"}).get_json()

        carol = as_user(seed_data["carol_id"])
        assert carol.get(f"/api/workspaces/{ws}/boxes").status_code == 404
        assert carol.get(f"/api/boxes/{box['id']}").status_code == 404
        assert carol.delete(f"/api/boxes/{box['id']}").status_code == 404
