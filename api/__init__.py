from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import get_config
from .errors import register_error_handlers
from models import storage
from services.auth_service import AuthService
from services.refresh_token_store import RefreshTokenStore
from services.sap import SapService, UserProvisioningService
from services.user_directory import UserDirectory
from utils.security import TokenSigner

# Exposes /swagger.json and UI at /docs/
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "SAP API",
        "version": "1.0.0",
        "description": "SAP user API: registration, authentication and SAP user provisioning.",
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
    "specs_route": "/docs/",
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


def build_auth_service(config) -> AuthService:
    """Wire the authentication core from config.
    Raises InvalidConfiguration on malformed token lifetimes.
    """
    signer = TokenSigner(algorithm=config["JWT_ALGORITHM"], issuer=config.get("JWT_ISSUER"))
    return AuthService(
        directory=UserDirectory(storage),
        signer=signer,
        store=RefreshTokenStore(storage),
        access_secret=config["JWT_SECRET"],
        refresh_secret=config["JWT_REFRESH_SECRET"],
        access_expires_in=config["JWT_EXPIRES_IN"],
        refresh_expires_in=config["JWT_REFRESH_EXPIRES_IN"],
    )


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (used by tests).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    # Services are built first so a bad configuration aborts startup
    app.extensions["auth_service"] = build_auth_service(app.config)
    app.extensions["sap_service"] = SapService()
    app.extensions["user_provisioning"] = UserProvisioningService(
        base_url=app.config.get("USER_API_BASE"),
        timeout=app.config["USER_API_TIMEOUT"],
    )

    storage.reload(app.config["DATABASE_URL"])

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .sap import bp as sap_bp

    prefix = app.config["API_PREFIX"].rstrip("/")
    app.register_blueprint(health_bp, url_prefix=prefix)
    app.register_blueprint(auth_bp, url_prefix=f"{prefix}/auth")
    app.register_blueprint(users_bp, url_prefix=prefix)
    app.register_blueprint(sap_bp, url_prefix=f"{prefix}/integration/sap")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to SAP API",
            "docs": "/docs/",
            "health": f"{prefix}/health",
        }, 200

    return app
