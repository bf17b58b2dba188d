"""HTTP tests for login, logout, refresh-token and change-password."""

import pytest

from helpers import bearer, image, login, reload_user

BASE = "/api/v1/users"


def set_cookies(response):
    return response.headers.getlist("Set-Cookie")


def cookie_for(response, name):
    matches = [c for c in set_cookies(response) if c.startswith(f"{name}=")]
    assert len(matches) == 1, set_cookies(response)
    return matches[0]


class TestLogin:

    def test_success_envelope_tokens_and_cookies(self, client, storage, alice):
        response = login(client)
        assert response.status_code == 200

        body = response.get_json()
        assert body["success"] is True
        assert body["message"] == "User logged in successfully"
        data = body["data"]
        assert data["user"]["username"] == "alice"
        assert "password" not in data["user"]
        assert "refreshToken" not in data["user"]
        assert data["accessToken"] and data["refreshToken"]

        for name, value in (("accessToken", data["accessToken"]), ("refreshToken", data["refreshToken"])):
            cookie = cookie_for(response, name)
            assert cookie.startswith(f"{name}={value};")
            assert "HttpOnly" in cookie
            assert "Secure" in cookie
            assert "Expires=" in cookie

        assert reload_user(storage, alice.id).refresh_token == data["refreshToken"]

    def test_missing_fields(self, client, alice):
        response = client.post(f"{BASE}/login", json={"email": "alice@x.com", "password": "Secret1"})
        assert response.status_code == 400
        assert response.get_json() == {"success": False, "message": "All fields required"}

    def test_unknown_user(self, client):
        response = login(client, username="ghost", email="ghost@x.com")
        assert response.status_code == 404
        assert response.get_json()["message"] == "User does not exist"

    def test_wrong_password(self, client, storage, alice):
        response = login(client, password="wrong")
        assert response.status_code == 401
        assert response.get_json() == {"success": False, "message": "Invalid user credentials"}
        assert set_cookies(response) == []
        assert reload_user(storage, alice.id).refresh_token is None


class TestLogout:

    def test_logout_clears_cookies_and_stored_token(self, client, storage, alice):
        tokens = login(client).get_json()["data"]

        response = client.get(f"{BASE}/logout", headers=bearer(tokens["accessToken"]))
        assert response.status_code == 200
        assert response.get_json()["message"] == "User logged out successfully"
        for name in ("accessToken", "refreshToken"):
            cookie = cookie_for(response, name)
            assert cookie.startswith(f"{name}=;")
            assert "Max-Age=0" in cookie
            assert "HttpOnly" in cookie and "Secure" in cookie

        assert reload_user(storage, alice.id).refresh_token is None

        refresh = client.post(f"{BASE}/refresh-token", json={"refreshToken": tokens["refreshToken"]})
        assert refresh.status_code == 401

    def test_requires_access_token(self, client):
        response = client.get(f"{BASE}/logout")
        assert response.status_code == 401
        assert response.get_json()["success"] is False


class TestRefreshToken:

    def test_body_token_rotates(self, client, storage, alice):
        old = login(client).get_json()["data"]["refreshToken"]
        client.delete_cookie("refreshToken")
        client.delete_cookie("accessToken")

        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": old})
        assert response.status_code == 200
        body = response.get_json()
        assert body["message"] == "accessToken refreshed successfully"
        new = body["data"]["refreshToken"]
        assert new != old
        assert body["data"]["accessToken"]
        assert cookie_for(response, "refreshToken").startswith(f"refreshToken={new};")
        assert reload_user(storage, alice.id).refresh_token == new

    def test_cookie_wins_over_body(self, client, alice):
        old = login(client).get_json()["data"]["refreshToken"]
        client.set_cookie("refreshToken", old)
        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": "garbage"})
        assert response.status_code == 200

    def test_stale_token_rejected(self, client, alice):
        old = login(client).get_json()["data"]["refreshToken"]
        client.delete_cookie("refreshToken")
        assert client.post(f"{BASE}/refresh-token", json={"refreshToken": old}).status_code == 200
        client.delete_cookie("refreshToken")

        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": old})
        assert response.status_code == 401
        assert response.get_json() == {"success": False, "message": "Invalid user"}

    def test_missing_token(self, client):
        response = client.post(f"{BASE}/refresh-token", json={})
        assert response.status_code == 401
        assert response.get_json()["message"] == "Unauthorized request"

    def test_malformed_token(self, client):
        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": "not-a-jwt"})
        assert response.status_code == 401
        assert response.get_json()["message"] == "Malformed token"

    @pytest.mark.parametrize("value", [123, ["token"], {"token": "x"}, True])
    def test_non_string_token_is_unauthorized(self, client, value):
        response = client.post(f"{BASE}/refresh-token", json={"refreshToken": value})
        assert response.status_code == 401
        assert response.get_json() == {"success": False, "message": "Malformed token"}

    def test_non_object_body_is_unauthorized(self, client):
        response = client.post(f"{BASE}/refresh-token", json=["refreshToken"])
        assert response.status_code == 401
        assert response.get_json()["message"] == "Unauthorized request"


class TestChangePassword:

    def test_change_password(self, client, alice):
        access = login(client).get_json()["data"]["accessToken"]
        response = client.post(
            f"{BASE}/change-password",
            json={"oldPassword": "Secret1", "newPassword": "Secret2"},
            headers=bearer(access),
        )
        assert response.status_code == 200
        assert response.get_json()["message"] == "Password updated successfully"
        assert login(client, password="Secret2").status_code == 200

    def test_wrong_old_password(self, client, alice):
        access = login(client).get_json()["data"]["accessToken"]
        response = client.post(
            f"{BASE}/change-password",
            json={"oldPassword": "nope", "newPassword": "Secret2"},
            headers=bearer(access),
        )
        assert response.status_code == 400
        assert response.get_json()["message"] == "Incorrect user credentials"

    def test_missing_fields(self, client, alice):
        access = login(client).get_json()["data"]["accessToken"]
        response = client.post(f"{BASE}/change-password", json={"oldPassword": "Secret1"}, headers=bearer(access))
        assert response.status_code == 400

    def test_requires_access_token(self, client):
        response = client.post(f"{BASE}/change-password", json={"oldPassword": "a", "newPassword": "b"})
        assert response.status_code == 401


def test_register_login_logout_scenario(client):
    """Register alice, log in, log out; the cleared cookie and the refresh token no longer work."""
    registered = client.post(
        f"{BASE}/register",
        data={
            "fullName": "Alice",
            "username": "alice",
            "email": "alice@x.com",
            "password": "Secret1",
            "avatar": image(),
        },
        content_type="multipart/form-data",
    )
    assert registered.status_code == 200

    response = login(client)
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["accessToken"] and data["refreshToken"]
    assert data["user"]["username"] == "alice"
    assert "password" not in data["user"]

    logout = client.get(f"{BASE}/logout")
    assert logout.status_code == 200
    assert cookie_for(logout, "accessToken").startswith("accessToken=;")
    assert cookie_for(logout, "refreshToken").startswith("refreshToken=;")

    assert client.get_cookie("accessToken") is None
    protected = client.get(f"{BASE}/get-user")
    assert protected.status_code == 401

    # Logout retires the refresh token for good
    refreshed = client.post(f"{BASE}/refresh-token", json={"refreshToken": data["refreshToken"]})
    assert refreshed.status_code == 401

    # Access tokens are stateless: a bearer client that kept one is admitted until it expires
    still_valid = client.get(f"{BASE}/get-user", headers=bearer(data["accessToken"]))
    assert still_valid.status_code == 200
