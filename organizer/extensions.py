"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask import jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit — we apply per-route
    storage_uri="memory://",
)


@login_manager.request_loader
def load_principal(request):
    """Resolve the principal from the identity provider's header.

    Credentials are verified upstream; this only maps the supplied id to a
    known user profile. Imports lazily to avoid circular deps.
    """
    from flask import current_app

    from organizer.models.user import User

    header = current_app.config.get("PRINCIPAL_HEADER", "X-Principal-Id")
    principal_id = (request.headers.get(header) or "").strip()
    if not principal_id:
        return None
    return db.session.get(User, principal_id)


@login_manager.unauthorized_handler
def unauthorized():
    """JSON 401 instead of a login redirect."""
    return jsonify({
        "error": {
            "code": "unauthorized",
            "message": "Authentication required.",
            "details": {},
        }
    }), 401
