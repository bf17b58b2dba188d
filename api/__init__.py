from flask import Flask, send_from_directory
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import get_config
from .errors import register_error_handlers
from models.db_storage import DBStorage
from models.media_storage import MediaStorage
from services.accounts import AccountService
from services.session_manager import SessionManager
from utils.decorators import AuthGate
from utils.security import TokenCodec

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "User Accounts API",
        "version": "1.0.0",
        "description": "Registration, login, JWT access/refresh token rotation, logout and profile updates.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Storage, token codec, session manager and auth gate are built once here
    and kept in app.extensions for the lifetime of the app.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger().setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Cookies carry the tokens; credentials are only allowed for an explicit origin list
    origins = app.config.get("CORS_ORIGINS", "*")
    if origins != "*":
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=origins != "*")

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Uniform error envelope for every failure
    register_error_handlers(app)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()
    media = MediaStorage(app.config["MEDIA_ROOT"], app.config.get("MEDIA_URL", "/media/"))
    media.reload()
    codec = TokenCodec.from_config(app.config)

    app.extensions["storage"] = storage
    app.extensions["media"] = media
    app.extensions["token_codec"] = codec
    app.extensions["session_manager"] = SessionManager(
        storage, codec, revoke_on_password_change=app.config.get("REVOKE_SESSIONS_ON_PASSWORD_CHANGE", False)
    )
    app.extensions["accounts"] = AccountService(storage, media)
    app.extensions["auth_gate"] = AuthGate(storage, codec)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/users")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/media/<path:filename>")
    def media_file(filename):
        return send_from_directory(media.root, filename)

    @app.route("/")
    def root():
        return {
            "message": "Welcome to User Accounts API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
