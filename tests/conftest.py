"""Shared fixtures: an app on a temporary SQLite file and media root."""

import pytest

from api import create_app
from models.user import User


@pytest.fixture
def app(tmp_path):
    app = create_app(
        "testing",
        overrides={
            "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
            "MEDIA_ROOT": str(tmp_path / "media"),
        },
    )
    yield app
    app.extensions["storage"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return app.extensions["storage"]


@pytest.fixture
def codec(app):
    return app.extensions["token_codec"]


@pytest.fixture
def manager(app):
    return app.extensions["session_manager"]


@pytest.fixture
def make_user(storage):
    """Insert a user directly through the store."""

    def _make(username="alice", email="alice@x.com", password="Secret1", **extra):
        user = User(
            username=username,
            email=email,
            password=password,
            full_name=extra.pop("full_name", username.title()),
            avatar=extra.pop("avatar", "/media/seed-avatar.png"),
            **extra,
        )
        storage.new(user)
        storage.save()
        return user

    return _make


@pytest.fixture
def alice(make_user):
    return make_user()
