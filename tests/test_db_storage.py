"""Credential store queries and the conditional refresh-token update."""

import pytest

from helpers import reload_user
from models.schemas.user import UserOutSchema


def test_lookup_matches_username_or_email(storage, make_user):
    alice = make_user()
    make_user(username="bob", email="bob@x.com")

    assert storage.find_user_by_username_or_email("alice", "nobody@x.com").id == alice.id
    assert storage.find_user_by_username_or_email("nobody", "alice@x.com").id == alice.id
    assert storage.find_user_by_username_or_email("nobody", "nobody@x.com") is None


def test_lookup_is_case_sensitive(storage, alice):
    assert storage.find_user_by_username_or_email("ALICE", "ALICE@X.COM") is None


def test_get_user_handles_missing_ids(storage):
    assert storage.get_user(None) is None
    assert storage.get_user("does-not-exist") is None


def test_set_refresh_token_overwrites(storage, alice):
    assert storage.set_refresh_token(alice.id, "first")
    assert storage.set_refresh_token(alice.id, "second")
    assert reload_user(storage, alice.id).refresh_token == "second"


def test_rotate_only_when_expected_matches(storage, alice):
    storage.set_refresh_token(alice.id, "current")

    assert not storage.rotate_refresh_token(alice.id, "stale", "next")
    assert reload_user(storage, alice.id).refresh_token == "current"

    assert storage.rotate_refresh_token(alice.id, "current", "next")
    assert reload_user(storage, alice.id).refresh_token == "next"


def test_second_rotation_with_same_token_loses(storage, alice):
    storage.set_refresh_token(alice.id, "current")
    assert storage.rotate_refresh_token(alice.id, "current", "winner")
    assert not storage.rotate_refresh_token(alice.id, "current", "loser")
    assert reload_user(storage, alice.id).refresh_token == "winner"


def test_unset_refresh_token_stores_null(storage, alice):
    storage.set_refresh_token(alice.id, "current")
    assert storage.unset_refresh_token(alice.id)
    assert reload_user(storage, alice.id).refresh_token is None


def test_email_taken_by_other(storage, make_user):
    alice = make_user()
    make_user(username="bob", email="bob@x.com")
    assert storage.email_taken_by_other("bob@x.com", alice.id)
    assert not storage.email_taken_by_other("alice@x.com", alice.id)


def test_password_is_write_only(alice):
    with pytest.raises(AttributeError):
        alice.password
    assert alice.is_password_correct("Secret1")
    assert not alice.is_password_correct("secret1")


def test_public_view_drops_secrets(storage, alice):
    storage.set_refresh_token(alice.id, "current")
    user = reload_user(storage, alice.id)
    assert user.refresh_token == "current"
    d = UserOutSchema().dump(user)
    assert d["username"] == "alice"
    assert d["fullName"] == "Alice"
    for key in ("password", "password_hash", "passwordHash", "refresh_token", "refreshToken"):
        assert key not in d
