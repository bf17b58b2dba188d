"""
SessionManager: login, logout, refresh-token rotation and password change.

Session states for a user record:
    anonymous  --login-->          active (refresh token stored)
    active     --refresh-->        active (refresh token rotated)
    active     --stale refresh-->  active, unchanged (request rejected)
    active     --logout-->         anonymous (refresh token cleared)

A refresh token is only honoured while it verifies AND equals the value
stored on the user record, so re-login, rotation and logout each retire the
previous token before its own expiry.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.user import User
from services.result import Ok, Err, ErrorKind, Result
from utils.security import TokenCodec, TokenError, TokenExpired, TokenConfigError

logger = logging.getLogger(__name__)

TOKEN_GENERATION_FAILED = "Something went wrong while generating refresh and access token"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


def _blank(*values) -> bool:
    return any(not isinstance(v, str) or not v.strip() for v in values)


class SessionManager:

    def __init__(self, storage: DBStorage, codec: TokenCodec, revoke_on_password_change: bool = False):
        self.storage = storage
        self.codec = codec
        self.revoke_on_password_change = revoke_on_password_change

    def _mint(self, user_id: str) -> TokenPair:
        return TokenPair(
            access_token=self.codec.issue_access_token(user_id),
            refresh_token=self.codec.issue_refresh_token(user_id),
        )

    def login(self, username: str | None, email: str | None, password: str | None) -> Result[LoginResult]:
        if _blank(username, email, password):
            return Err(ErrorKind.BAD_REQUEST, "All fields required")

        user = self.storage.find_user_by_username_or_email(username, email)
        if user is None:
            return Err(ErrorKind.NOT_FOUND, "User does not exist")

        if not user.is_password_correct(password):
            logger.info("Login rejected for user %s: bad credentials", user.id)
            return Err(ErrorKind.UNAUTHORIZED, "Invalid user credentials")

        try:
            pair = self._mint(user.id)
            self.storage.set_refresh_token(user.id, pair.refresh_token)
        except (TokenConfigError, SQLAlchemyError):
            logger.exception("Token issue failed during login for user %s", user.id)
            return Err(ErrorKind.INTERNAL, TOKEN_GENERATION_FAILED)

        logger.info("User %s logged in", user.id)
        return Ok(LoginResult(user=user, access_token=pair.access_token, refresh_token=pair.refresh_token))

    def logout(self, user_id: str) -> Result[None]:
        try:
            self.storage.unset_refresh_token(user_id)
        except SQLAlchemyError:
            logger.exception("Logout failed for user %s", user_id)
            return Err(ErrorKind.INTERNAL, "Something went wrong while logging out")
        logger.info("User %s logged out", user_id)
        return Ok(None)

    def refresh(self, presented: str | None) -> Result[TokenPair]:
        if not presented:
            return Err(ErrorKind.UNAUTHORIZED, "Unauthorized request")
        if not isinstance(presented, str):
            return Err(ErrorKind.UNAUTHORIZED, "Malformed token")

        try:
            claims = self.codec.verify_refresh(presented)
        except TokenExpired:
            return Err(ErrorKind.UNAUTHORIZED, "Refresh token expired or used")
        except TokenError as exc:
            return Err(ErrorKind.UNAUTHORIZED, str(exc))
        except TokenConfigError:
            logger.exception("Refresh token secret missing")
            return Err(ErrorKind.INTERNAL, TOKEN_GENERATION_FAILED)

        user = self.storage.get_user(claims.get("sub"))
        if user is None:
            return Err(ErrorKind.UNAUTHORIZED, "User not found")

        stored = user.refresh_token
        if not stored or not hmac.compare_digest(stored.encode(), presented.encode()):
            logger.warning("Refresh rejected for user %s: token is not the live one", user.id)
            return Err(ErrorKind.UNAUTHORIZED, "Invalid user")

        try:
            pair = self._mint(user.id)
            rotated = self.storage.rotate_refresh_token(user.id, presented, pair.refresh_token)
        except (TokenConfigError, SQLAlchemyError):
            logger.exception("Token rotation failed for user %s", user.id)
            return Err(ErrorKind.INTERNAL, TOKEN_GENERATION_FAILED)
        if not rotated:
            return Err(ErrorKind.UNAUTHORIZED, "Invalid user")

        logger.info("Rotated refresh token for user %s", user.id)
        return Ok(pair)

    def change_password(self, user_id: str, old_password: str | None, new_password: str | None) -> Result[None]:
        if _blank(old_password, new_password):
            return Err(ErrorKind.BAD_REQUEST, "All fields required")

        user = self.storage.get_user(user_id)
        if user is None:
            return Err(ErrorKind.BAD_REQUEST, "Invalid user")

        if not user.is_password_correct(old_password):
            return Err(ErrorKind.BAD_REQUEST, "Incorrect user credentials")

        user.password = new_password
        if self.revoke_on_password_change:
            user.refresh_token = None
        try:
            self.storage.new(user)
            self.storage.save()
        except SQLAlchemyError:
            logger.exception("Password change failed for user %s", user_id)
            return Err(ErrorKind.INTERNAL, "Something went wrong while updating password")
        logger.info("Password changed for user %s", user_id)
        return Ok(None)
