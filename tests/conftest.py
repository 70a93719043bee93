"""Shared test fixtures for the storage box organizer test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, rate limits off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: three users and a workspace where alice is owner and bob a
  member; carol belongs to nothing
- auth_headers: helper building the principal header for API calls
"""

import pytest
from flask import g, has_app_context
from flask.testing import FlaskClient

from organizer import create_app
from organizer.extensions import db as _db
from organizer.models.user import User
from organizer.services import membership_service, workspace_service


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


class _PerRequestPrincipalClient(FlaskClient):
    """Test client that resolves the principal afresh on every request.

    The autouse db_session fixture keeps one app context pushed for the
    whole test, so requests reuse its ``g`` and Flask-Login would keep the
    user cached from the first request. Drop that cache before each call,
    as a real per-request app context would.
    """

    def open(self, *args, **kwargs):
        if has_app_context():
            g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def client(app):
    """Flask test client."""
    app.test_client_class = _PerRequestPrincipalClient
    return app.test_client()


def _create_user(db_session, email, full_name=None):
    user = User(email=email, full_name=full_name or email.split("@")[0].title())
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def seed_data(db_session):
    """Seed users and one workspace.

    Returns a dict of plain ids so tests can use them after the session
    expires objects on commit.
    """
    alice = _create_user(db_session, "alice@example.com", "Alice Owner")
    bob = _create_user(db_session, "bob@example.com", "Bob Member")
    carol = _create_user(db_session, "carol@example.com", "Carol Outsider")

    workspace = workspace_service.create_workspace(alice.id, "Home")
    membership_service.invite(alice.id, workspace.id, "member", user_id=bob.id)

    return {
        "alice_id": alice.id,
        "bob_id": bob.id,
        "carol_id": carol.id,
        "workspace_id": workspace.id,
    }


@pytest.fixture
def auth_headers(app):
    """Return a function building the principal header for a user id."""

    def _headers(user_id):
        return {app.config["PRINCIPAL_HEADER"]: user_id}

    return _headers


@pytest.fixture
def make_user(db_session):
    """Return a function creating and committing a user profile."""

    def _make(email, full_name=None):
        return _create_user(db_session, email, full_name)

    return _make
