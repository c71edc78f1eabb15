import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models.db_storage import DBStorage
from services.auth_service import AuthService
from utils.password_hasher import PasswordHasher
from utils.security import ConfigurationError, TokenIssuer

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Sea Battle Backend API",
        "version": "1.0.0",
        "description": "Player accounts, sign-in and session tokens for the Sea Battle game.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
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

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("api").setLevel(level)


def build_auth_service(config) -> AuthService:
    """
    Build the token issuer, password hasher and auth service from config.
    Any security misconfiguration raises ConfigurationError here, at startup.
    """
    issuer = TokenIssuer.from_config(config)
    try:
        hasher = PasswordHasher(int(config.get("PASSWORD_HASH_ITERATIONS", 10000)))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid PASSWORD_HASH_ITERATIONS: {exc}") from exc
    return AuthService(hasher, issuer)


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (tests use it).
    Raises ConfigurationError when the JWT or database settings are unusable.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    auth_service = build_auth_service(app.config)
    database_url = app.config.get("DATABASE_URL")
    if not database_url:
        raise ConfigurationError("DATABASE_URL is not configured")
    storage = DBStorage(database_url, echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    app.extensions["storage"] = storage
    app.extensions["token_issuer"] = auth_service.issuer
    app.extensions["auth_service"] = auth_service

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to the Sea Battle API",
            "docs": "/apidocs/",
            "health": "/api/v1/health/live",
            "ready": "/api/v1/health/ready",
        }, 200

    return app
