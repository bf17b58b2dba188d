"""
Session blueprint:
- POST /login
- GET  /logout
- POST /refresh-token
- POST /change-password

Tokens are delivered twice on login and refresh: as http-only cookies for
browser clients and in the response body for bearer-token clients.
"""
from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, request, g, current_app

from models.schemas.user import UserLoginSchema, UserOutSchema, ChangePasswordSchema
from utils.decorators import jwt_required, ACCESS_COOKIE, REFRESH_COOKIE
from .errors import success_response, unwrap

bp = Blueprint("auth", __name__)

user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
change_password_schema = ChangePasswordSchema()


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("AUTH_COOKIE_SECURE", True),
    }


def set_token_cookies(response, access_token: str, refresh_token: str):
    # Both cookies expire together after AUTH_COOKIE_EXPIRES, whatever the tokens' own expiry
    expires = datetime.now(timezone.utc) + current_app.config["AUTH_COOKIE_EXPIRES"]
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, access_token, expires=expires, **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token, expires=expires, **options)
    return response


def clear_token_cookies(response):
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response


@bp.post("/login")
def login():
    """
    Login: return the user, access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (sets accessToken and refreshToken cookies)
      400:
        description: Missing fields
      401:
        description: Invalid credentials
      404:
        description: No such user
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    manager = current_app.extensions["session_manager"]
    session = unwrap(manager.login(payload.get("username"), payload.get("email"), payload.get("password")))

    response, status = success_response(
        {
            "user": user_out_schema.dump(session.user),
            "accessToken": session.access_token,
            "refreshToken": session.refresh_token,
        },
        "User logged in successfully",
    )
    set_token_cookies(response, session.access_token, session.refresh_token)
    return response, status


@bp.get("/logout")
@jwt_required()
def logout():
    """
    Logout: forget the stored refresh token and clear both cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    manager = current_app.extensions["session_manager"]
    unwrap(manager.logout(g.current_user.id))

    response, status = success_response({}, "User logged out successfully")
    clear_token_cookies(response)
    return response, status


@bp.post("/refresh-token")
def refresh_token():
    """
    Use the refresh token to obtain new access and refresh tokens (rotation).
    The refreshToken cookie wins over a refreshToken in the body.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (sets new cookies)
      401:
        description: Missing, expired, invalid or superseded refresh token
    """
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented:
        body = request.get_json(silent=True)
        presented = body.get("refreshToken") if isinstance(body, dict) else None

    manager = current_app.extensions["session_manager"]
    pair = unwrap(manager.refresh(presented))

    response, status = success_response(
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "accessToken refreshed successfully",
    )
    set_token_cookies(response, pair.access_token, pair.refresh_token)
    return response, status


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password updated
      400:
        description: Missing fields or wrong old password
    """
    payload = change_password_schema.load(request.get_json(silent=True) or {})
    manager = current_app.extensions["session_manager"]
    unwrap(manager.change_password(g.current_user.id, payload.get("old_password"), payload.get("new_password")))
    return success_response({}, "Password updated successfully")
