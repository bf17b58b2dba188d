"""
AccountService: registration and profile/media updates.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.datastructures import FileStorage

from models.db_storage import DBStorage
from models.media_storage import MediaStorage
from models.user import User
from services.result import Ok, Err, ErrorKind, Result

logger = logging.getLogger(__name__)


def _blank(*values) -> bool:
    return any(not isinstance(v, str) or not v.strip() for v in values)


class AccountService:

    def __init__(self, storage: DBStorage, media: MediaStorage):
        self.storage = storage
        self.media = media

    def _commit(self, user: User, failure: str) -> Result[User]:
        try:
            self.storage.new(user)
            self.storage.save()
        except IntegrityError:
            return Err(ErrorKind.CONFLICT, "user with email or username already exists")
        except SQLAlchemyError:
            logger.exception("Saving user %s failed", user.id)
            return Err(ErrorKind.INTERNAL, failure)
        return Ok(user)

    def register(
        self,
        full_name: str,
        email: str,
        username: str,
        password: str,
        avatar: FileStorage | None,
        cover_image: FileStorage | None = None,
    ) -> Result[User]:
        if _blank(full_name, email, username, password):
            return Err(ErrorKind.BAD_REQUEST, "All fields are required")

        if self.storage.find_user_by_username_or_email(username, email) is not None:
            return Err(ErrorKind.CONFLICT, "user with email or username already exists")

        if avatar is None or not avatar.filename:
            return Err(ErrorKind.BAD_REQUEST, "Avatar file required")

        avatar_asset = self.media.upload(avatar)
        if avatar_asset is None:
            return Err(ErrorKind.BAD_REQUEST, "Avatar file not uploaded")
        cover_asset = self.media.upload(cover_image) if cover_image and cover_image.filename else None

        user = User(
            full_name=full_name,
            email=email,
            username=username,
            password=password,
            avatar=avatar_asset.url,
            cover_image=cover_asset.url if cover_asset else "",
        )
        result = self._commit(user, "Something went wrong while registering user")
        if isinstance(result, Ok):
            logger.info("Registered user %s", user.id)
        else:
            for asset in (avatar_asset, cover_asset):
                if asset is not None and not self.media.delete(asset.public_id):
                    logger.warning("Could not remove orphaned upload %s", asset.public_id)
        return result

    def update_account(self, user_id: str, full_name: str, email: str, password: str) -> Result[User]:
        if _blank(full_name, email, password):
            return Err(ErrorKind.BAD_REQUEST, "All fields required")

        # Stored emails are lower-cased; compare and store the same form
        email = email.strip().lower()
        user = self.storage.get_user(user_id)
        if user is None:
            return Err(ErrorKind.BAD_REQUEST, "Invalid user")
        if not user.is_password_correct(password):
            return Err(ErrorKind.BAD_REQUEST, "Incorrect user credentials")
        if self.storage.email_taken_by_other(email, user.id):
            return Err(ErrorKind.CONFLICT, "Email already in use")

        user.full_name = full_name
        user.email = email
        return self._commit(user, "Could not update account details")

    def update_avatar(self, user_id: str, file: FileStorage | None) -> Result[User]:
        if file is None or not file.filename:
            return Err(ErrorKind.BAD_REQUEST, "Avatar image file not found")

        user = self.storage.get_user(user_id)
        if user is None:
            return Err(ErrorKind.INTERNAL, "Error while fetching previous avatar")

        if not self.media.delete(self.media.public_id_from_url(user.avatar)):
            return Err(ErrorKind.INTERNAL, "Previous avatar image deletion failed")

        asset = self.media.upload(file)
        if asset is None:
            return Err(ErrorKind.BAD_REQUEST, "Could not upload avatar image")

        user.avatar = asset.url
        return self._commit(user, "Could not update avatar url in database")

    def update_cover_image(self, user_id: str, file: FileStorage | None) -> Result[User]:
        if file is None or not file.filename:
            return Err(ErrorKind.BAD_REQUEST, "Cover image file not found")

        user = self.storage.get_user(user_id)
        if user is None:
            return Err(ErrorKind.INTERNAL, "Error while fetching previous cover image")

        # A user may have no cover image yet; a failed delete is not fatal here
        self.media.delete(self.media.public_id_from_url(user.cover_image))

        asset = self.media.upload(file)
        if asset is None:
            return Err(ErrorKind.BAD_REQUEST, "Could not upload cover image")

        user.cover_image = asset.url
        return self._commit(user, "Could not update cover image url in database")
