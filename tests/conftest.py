"""
Shared fixtures.

``app`` builds a fresh application on an in-memory SQLite database per
test. Service tests use ``ctx`` (an active app context) and ``make_user``;
API tests use ``signed_in`` to get a test client logged in as a new user.
"""
import itertools

import pytest

from studysheets import create_app
from studysheets.extensions import db
from studysheets.models.user import User

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture
def make_user(ctx):
    counter = itertools.count(1)

    def _make(name: str = None) -> User:
        n = next(counter)
        user = User(
            name=name or f"Student {n}",
            email=f"student{n}@campus.edu",
            college_name="Campus University",
            sheet_count=0,
        )
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signed_in(app):
    """Factory: a new test client registered and signed in as a fresh user."""
    counter = itertools.count(1)

    def _signed_in(name: str = None):
        n = next(counter)
        c = app.test_client()
        resp = c.post("/auth/register", json={
            "name":         name or f"Viewer {n}",
            "email":        f"user{n}@campus.edu",
            "college_name": "Campus University",
            "password":     PASSWORD,
        })
        assert resp.status_code == 201, resp.get_json()
        c.user_id = resp.get_json()["user"]["id"]
        return c

    return _signed_in
