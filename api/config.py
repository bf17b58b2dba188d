"""
Environment-aware configuration.
Token secrets have no defaults: set ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET
per deployment (see .env.example).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY")
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///user-accounts.db")
    SQL_ECHO = _env_bool("SQL_ECHO", False)

    # Access and refresh tokens are signed with independent secrets
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
    ACCESS_TOKEN_EXPIRY = os.getenv("ACCESS_TOKEN_EXPIRY", "15m")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
    REFRESH_TOKEN_EXPIRY = os.getenv("REFRESH_TOKEN_EXPIRY", "10d")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "user-accounts-api")

    # Both cookies share one window, independent of the tokens' own expiry
    AUTH_COOKIE_EXPIRES = timedelta(seconds=int(os.getenv("AUTH_COOKIE_EXPIRES_SECONDS", "86400")))
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", True)
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE = _env_bool("REVOKE_SESSIONS_ON_PASSWORD_CHANGE", False)

    MEDIA_ROOT = os.getenv("MEDIA_ROOT", os.path.join(os.getcwd(), "public", "media"))
    MEDIA_URL = os.getenv("MEDIA_URL", "/media/")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "testing-secret-key"
    DATABASE_URL = "sqlite://"
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef"
    ACCESS_TOKEN_EXPIRY = "1m"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef"
    REFRESH_TOKEN_EXPIRY = "5m"
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/testing).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
