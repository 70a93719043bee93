"""Tests for the CLI commands and the integrity checker."""

from organizer.extensions import db
from organizer.models.box import Box
from organizer.models.location import Location
from organizer.models.qr_code import QrCode
from organizer.models.user import User
from organizer.models.workspace import Workspace, WorkspaceMember
from organizer.services import box_service, qr_code_service
from organizer.services.integrity_service import find_problems


class TestSeedDemo:

    def test_seed_demo_creates_consistent_data(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-demo"])

        assert result.exit_code == 0, result.output
        assert "Demo data created successfully!" in result.output
        assert User.query.count() == 2
        assert Workspace.query.count() == 1
        assert WorkspaceMember.query.count() == 2
        assert Location.query.count() == 2
        assert QrCode.query.count() == 5
        assert Box.query.one().location.path == "garaz.polka"
        assert find_problems() == []


class TestCheckIntegrity:

    def test_clean_database(self, app, seed_data):
        result = app.test_cli_runner().invoke(args=["check-integrity"])
        assert result.exit_code == 0
        assert "no integrity problems" in result.output

    def test_reports_broken_pairing(self, app, seed_data):
        ws = seed_data["workspace_id"]
        code = qr_code_service.generate_batch(seed_data["bob_id"], ws, 1)[0]
        box = box_service.create_box(seed_data["bob_id"], ws, "Tools", qr_code_id=code.id)

        # Corrupt the back-reference behind the service layer's back.
        db.session.get(QrCode, code.id).box_id = None
        db.session.commit()

        problems = find_problems()
        assert any("without box" in p for p in problems)
        assert any(box.short_id in p for p in problems)

        result = app.test_cli_runner().invoke(args=["check-integrity"])
        assert result.exit_code == 1
        assert "problem(s)" in result.output

    def test_reports_workspace_without_owner(self, seed_data):
        owner = WorkspaceMember.query.filter_by(
            workspace_id=seed_data["workspace_id"], user_id=seed_data["alice_id"]
        ).one()
        owner.role = "admin"
        db.session.commit()

        assert find_problems() == [f"Workspace {seed_data['workspace_id']}: no owner"]
