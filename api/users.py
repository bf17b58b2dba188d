"""
Account blueprint:
- POST  /register            (multipart: fullName, email, username, password, avatar, coverImage)
- GET   /get-user            (also POST)
- PATCH /update-account
- PATCH /update-avatar       (multipart: avatar)
- PATCH /update-cover-image  (multipart: coverImage)
"""
from __future__ import annotations

from flask import Blueprint, request, g, current_app

from models.schemas.user import UserRegisterSchema, UserUpdateSchema, UserOutSchema
from utils.decorators import jwt_required
from .errors import success_response, unwrap, require_fields

bp = Blueprint("users", __name__)

user_register_schema = UserRegisterSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()


@bp.post("/register")
def register():
    """
    register a new user.
    ---
    tags:
      - Users
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      200:
        description: Registered
      400:
        description: Missing fields or avatar
      409:
        description: Username or email already registered
      422:
        description: Validation error
    """
    payload = request.form.to_dict()
    require_fields(payload, ("fullName", "email", "username", "password"), "All fields are required")
    data = user_register_schema.load(payload)

    accounts = current_app.extensions["accounts"]
    user = unwrap(
        accounts.register(
            full_name=data["full_name"],
            email=data["email"],
            username=data["username"],
            password=data["password"],
            avatar=request.files.get("avatar"),
            cover_image=request.files.get("coverImage"),
        )
    )
    return success_response(user_out_schema.dump(user), "User registered Successfully")


@bp.route("/get-user", methods=["GET", "POST"])
@jwt_required()
def get_current_user():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return success_response({"user": user_out_schema.dump(g.current_user)}, "Fetched current user")


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update full name and email; the current password is required.
    ---
    tags:
      - Users
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
             fullName: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: Updated
      400:
        description: Missing fields or wrong password
      409:
        description: Email already in use
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("fullName", "email", "password"))
    data = user_update_schema.load(payload)

    accounts = current_app.extensions["accounts"]
    user = unwrap(accounts.update_account(g.current_user.id, data["full_name"], data["email"], data["password"]))
    return success_response({"user": user_out_schema.dump(user)}, "Account details updated successfully")


@bp.patch("/update-avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200:
        description: Updated
      400:
        description: No file or upload failed
    """
    accounts = current_app.extensions["accounts"]
    user = unwrap(accounts.update_avatar(g.current_user.id, request.files.get("avatar")))
    return success_response({"user": user_out_schema.dump(user)}, "Updated avatar image successfully")


@bp.patch("/update-cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200:
        description: Updated
      400:
        description: No file or upload failed
    """
    accounts = current_app.extensions["accounts"]
    user = unwrap(accounts.update_cover_image(g.current_user.id, request.files.get("coverImage")))
    return success_response({"user": user_out_schema.dump(user)}, "Updated cover image successfully")
