import os
import logging

import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from organizer.config import config_by_name
from organizer.errors import OrganizerError
from organizer.extensions import db, migrate, login_manager, limiter

logger = logging.getLogger(__name__)

# Domain error code -> HTTP status. The service layer never sees these.
STATUS_BY_CODE = {
    "not_found": 404,
    "forbidden": 403,
    "insufficient_permissions": 403,
    "invalid_operation": 409,
    "duplicate_member": 409,
    "sibling_name_conflict": 409,
    "conflict": 409,
    "max_depth_exceeded": 422,
    "validation_error": 422,
    "workspace_mismatch": 422,
}


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from organizer import models  # noqa: F401

    # --- Register blueprints ---
    from organizer.blueprints.workspaces import workspaces_bp
    from organizer.blueprints.locations import locations_bp
    from organizer.blueprints.qr_codes import qr_codes_bp
    from organizer.blueprints.boxes import boxes_bp

    app.register_blueprint(workspaces_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(qr_codes_bp)
    app.register_blueprint(boxes_bp)

    # --- Health check ---
    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    # --- Error handlers ---
    register_error_handlers(app)

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def _error_response(code, message, status, details=None):
    return jsonify({
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }), status


def register_error_handlers(app):
    """Render every error as the JSON error envelope."""

    @app.errorhandler(OrganizerError)
    def organizer_error(e):
        status = STATUS_BY_CODE.get(e.code, 400)
        return jsonify({"error": e.to_dict()}), status

    @app.errorhandler(HTTPException)
    def http_error(e):
        code = (e.name or "error").lower().replace(" ", "_")
        return _error_response(code, e.description, e.code or 500)

    @app.errorhandler(500)
    def server_error(e):
        logger.exception("Unhandled error")
        return _error_response(
            "internal_error", "An unexpected error occurred.", 500
        )


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-demo")
    @click.option("--owner-email", default="owner@organizer.local", help="Owner email")
    @click.option("--member-email", default="member@organizer.local", help="Member email")
    def seed_demo(owner_email, member_email):
        """Create two users, a workspace, a small location tree, QR codes and a box.

        Usage:
            flask seed-demo
            flask seed-demo --owner-email me@example.com
        """
        from organizer.models.user import User
        from organizer.services import (
            box_service,
            location_service,
            membership_service,
            qr_code_service,
            workspace_service,
        )

        users = {}
        for email, full_name in ((owner_email, "Demo Owner"), (member_email, "Demo Member")):
            user = User.query.filter_by(email=email.lower()).first()
            if user is None:
                user = User(email=email.lower(), full_name=full_name)
                db.session.add(user)
                db.session.commit()
                click.echo(f"Created user: {user.email}")
            users[email] = user
        owner, member = users[owner_email], users[member_email]

        workspace = workspace_service.create_workspace(owner.id, "Demo Home")
        membership_service.invite(owner.id, workspace.id, "member", user_id=member.id)

        garage = location_service.create_location(member.id, workspace.id, "Garaż")
        shelf = location_service.create_location(
            member.id, workspace.id, "Półka", parent_id=garage.id
        )
        codes = qr_code_service.generate_batch(owner.id, workspace.id, 5)
        box = box_service.create_box(
            member.id,
            workspace.id,
            "Winter clothes",
            tags=["clothes", "winter"],
            location_id=shelf.id,
            qr_code_id=codes[0].id,
        )

        click.echo("")
        click.echo("=" * 60)
        click.echo("Demo data created successfully!")
        click.echo("=" * 60)
        click.echo(f"  Owner:     {owner.email} (id: {owner.id})")
        click.echo(f"  Member:    {member.email} (id: {member.id})")
        click.echo(f"  Workspace: {workspace.name} (id: {workspace.id})")
        click.echo(f"  Location:  {shelf.path} (id: {shelf.id})")
        click.echo(f"  Box:       {box.name} [{box.short_id}] -> {codes[0].short_id}")
        click.echo(f"  QR codes:  {', '.join(c.short_id for c in codes)}")
        click.echo("=" * 60)

    @app.cli.command("check-integrity")
    def check_integrity():
        """Report QR/box pairing, owner and location invariant violations.

        Exits with status 1 when anything is found.
        """
        from organizer.services.integrity_service import find_problems

        problems = find_problems()
        if not problems:
            click.echo("OK: no integrity problems found.")
            return

        click.echo(f"Found {len(problems)} problem(s):")
        for problem in problems:
            click.echo(f"  - {problem}")
        raise SystemExit(1)
