from __future__ import annotations
from functools import wraps
from flask import Request, request, g, abort, current_app

from models.db_storage import DBStorage
from models.user import User
from services.result import Ok, Err, ErrorKind, Result
from utils.security import TokenCodec, TokenError, TokenConfigError

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class AuthGate:
    """
    Admission check for protected views: access token from the
    `accessToken` cookie, else from `Authorization: Bearer <token>`.
    """

    def __init__(self, storage: DBStorage, codec: TokenCodec):
        self.storage = storage
        self.codec = codec

    @staticmethod
    def extract_token(req: Request) -> str | None:
        token = req.cookies.get(ACCESS_COOKIE)
        if token:
            return token
        auth = req.headers.get("Authorization", "")
        scheme, _, value = auth.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
        return None

    def admit(self, token: str | None) -> Result[User]:
        if not token:
            return Err(ErrorKind.UNAUTHORIZED, "Unauthorized request")
        try:
            decoded = self.codec.verify_access(token)
        except TokenError as e:
            return Err(ErrorKind.UNAUTHORIZED, str(e))
        except TokenConfigError:
            return Err(ErrorKind.UNAUTHORIZED, "Invalid access token")

        user = self.storage.get_user(decoded.get("sub"))
        if user is None:
            return Err(ErrorKind.UNAUTHORIZED, "Invalid Access Token")
        return Ok(user)


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            gate: AuthGate = current_app.extensions["auth_gate"]
            result = gate.admit(gate.extract_token(request))
            if isinstance(result, Err):
                abort(result.status, description=result.message)
            g.current_user = result.value
            return fn(*args, **kwargs)

        return wrapper

    return decorator
