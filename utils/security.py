"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access/refresh JWT issuing and verification via PyJWT (TokenCodec)
- Duration parsing for token expiry settings ("15m", "10d", ...)
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

logger = logging.getLogger(__name__)

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        logger.warning("Stored password hash could not be verified")
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def parse_duration(value) -> timedelta:
    """
    Turn an expiry setting into a timedelta.
    Accepts a timedelta, a number of seconds, or strings like "900", "15m", "1h", "10d", "2w".
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(str(value or ""))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNITS[unit.lower()])


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


class TokenMalformed(TokenError):
    pass


class TokenConfigError(Exception):
    """Raised when a signing secret is missing."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Signs and verifies the two bearer token classes.
    Access and refresh tokens carry the same claims but use independent
    secrets and expiries, so one class can never be used as the other.
    """

    def __init__(
        self,
        access_secret: str | None,
        access_expires: timedelta,
        refresh_secret: str | None,
        refresh_expires: timedelta,
        algorithm: str = "HS256",
        issuer: str | None = None,
    ):
        self.access_secret = access_secret
        self.access_expires = access_expires
        self.refresh_secret = refresh_secret
        self.refresh_expires = refresh_expires
        self.algorithm = algorithm
        self.issuer = issuer
        if not access_secret or not refresh_secret:
            logger.warning("Token secrets are not configured; login and refresh will fail")
        if access_secret and access_secret == refresh_secret:
            logger.warning("Access and refresh tokens share one secret; configure independent secrets")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenCodec":
        return cls(
            access_secret=config.get("ACCESS_TOKEN_SECRET"),
            access_expires=parse_duration(config.get("ACCESS_TOKEN_EXPIRY", "15m")),
            refresh_secret=config.get("REFRESH_TOKEN_SECRET"),
            refresh_expires=parse_duration(config.get("REFRESH_TOKEN_EXPIRY", "10d")),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER"),
        )

    def _issue(self, subject: str, secret: str | None, expires: timedelta, token_type: str) -> str:
        if not secret:
            raise TokenConfigError(f"{token_type} token secret is not configured")
        now = _now()
        payload = {
            "sub": str(subject),
            "iat": now,
            "exp": now + expires,
            "jti": generate_jti(),
            "type": token_type,
        }
        if self.issuer:
            payload["iss"] = self.issuer
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_access_token(self, subject: str) -> str:
        return self._issue(subject, self.access_secret, self.access_expires, ACCESS)

    def issue_refresh_token(self, subject: str) -> str:
        return self._issue(subject, self.refresh_secret, self.refresh_expires, REFRESH)

    def verify(self, token: str, secret: str | None, expected_type: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenExpired, TokenInvalid or
        TokenMalformed; returns the claims otherwise.
        """
        if not secret:
            raise TokenConfigError(f"{expected_type} token secret is not configured")
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token expired")
        except jwt.InvalidSignatureError:
            raise TokenInvalid("Invalid token signature")
        except jwt.DecodeError:
            raise TokenMalformed("Malformed token")
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"Invalid token: {exc}")

        if decoded.get("type") != expected_type:
            raise TokenInvalid("Wrong token type")
        return decoded

    def verify_access(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self.access_secret, ACCESS)

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self.refresh_secret, REFRESH)
