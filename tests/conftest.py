"""
Pytest configuration and shared fixtures.

Provides a test application backed by an in-memory SQLite database, the
default roles, one user per role, and helpers for bearer-token headers.
The schema is created and dropped around every test function so tests
never share rows.
"""

import pytest
from flask import g

from assettrack import create_app
from assettrack.context import RequestContext
from assettrack.extensions import db as _db
from assettrack.models.asset import Asset
from assettrack.models.user import ADMIN_ROLE, AUDITOR_ROLE, FIELD_AGENT_ROLE, Role, User
from assettrack.services import auth_service, role_service

PASSWORD = "secret123"


@pytest.fixture(scope="function")
def app(tmp_path):
    """
    Create a Flask application configured for testing.

    Photo uploads go to a per-test temporary directory.
    """
    app = create_app("testing")
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")

    # Establish an application context for the whole test.
    with app.app_context():
        _db.create_all()
        role_service.ensure_default_roles()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="function")
def client(app):  # pylint: disable=redefined-outer-name
    """
    Provide a Flask test client for making HTTP requests.

    Usage in tests::

        def test_health(client):
            response = client.get("/api/health")
            assert response.status_code == 200
    """
    # The ``app`` fixture keeps one application context open for the whole
    # test, so Flask reuses its ``g`` across requests. Drop Flask-Login's
    # cached user before each request, as a fresh app context would.
    @app.before_request
    def _reset_login_cache():
        g.pop("_login_user", None)

    with app.test_client() as test_client:
        yield test_client


def make_user(username: str, role_name: str, **overrides) -> User:
    """Insert a user with ``PASSWORD`` and the named role."""
    role = Role.query.filter_by(name=role_name).one()
    user = User(
        username=username,
        email=overrides.pop("email", f"{username}@example.com"),
        first_name=overrides.pop("first_name", username.capitalize()),
        last_name=overrides.pop("last_name", "Tester"),
        role_id=role.id,
        **overrides,
    )
    user.set_password(PASSWORD)
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture
def admin(app):  # pylint: disable=redefined-outer-name,unused-argument
    return make_user("admin", ADMIN_ROLE)


@pytest.fixture
def auditor(app):  # pylint: disable=redefined-outer-name,unused-argument
    return make_user("auditor", AUDITOR_ROLE)


@pytest.fixture
def agent(app):  # pylint: disable=redefined-outer-name,unused-argument
    return make_user("agent", FIELD_AGENT_ROLE)


@pytest.fixture
def other_agent(app):  # pylint: disable=redefined-outer-name,unused-argument
    return make_user("agent2", FIELD_AGENT_ROLE)


@pytest.fixture
def auth_header(app):  # pylint: disable=redefined-outer-name,unused-argument
    """Return a callable building an ``Authorization`` header for a user."""

    def build(user: User) -> dict:
        return {"Authorization": f"Bearer {auth_service.issue_token(user)}"}

    return build


@pytest.fixture
def ctx_for(app):  # pylint: disable=redefined-outer-name,unused-argument
    """Return a callable building a ``RequestContext`` for direct service calls."""
    return RequestContext.system


@pytest.fixture
def asset(app, admin):  # pylint: disable=redefined-outer-name,unused-argument
    """An asset in Room 101 held by Alice."""
    row = Asset(
        asset_tag="TAG-001",
        serial_number="SN-001",
        name="Laptop",
        category="IT",
        location="Room 101",
        custodian="Alice",
        condition="Good",
        created_by=admin.id,
    )
    _db.session.add(row)
    _db.session.commit()
    return row
