"""
Environment-aware configuration.
Values come from the environment (a local .env is read first). Security
settings are validated when the app is created, see TokenIssuer.from_config.
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def _bool(value: str) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///sea-battle.db")
    SQL_ECHO = _bool(os.getenv("SQL_ECHO", "false"))

    # JWT / token lifetimes
    JWT_SECRET = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "sea-battle-backend")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "sea-battle-clients")
    ACCESS_TOKEN_EXPIRATION_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRATION_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRATION_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRATION_DAYS", "7"))

    PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "10000"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    # Set JWT_SECRET in .env; this fallback only exists for local runs
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-secret-change-me-0123456789abcdef")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    JWT_SECRET = "test-secret-key-for-automated-tests-only-0123456789"
    JWT_ISSUER = "sea-battle-test"
    JWT_AUDIENCE = "sea-battle-test-clients"
    ACCESS_TOKEN_EXPIRATION_MINUTES = 15
    REFRESH_TOKEN_EXPIRATION_DAYS = 7
    PASSWORD_HASH_ITERATIONS = 10000
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG = False
    # no fallback: a missing DATABASE_URL or JWT_SECRET must stop startup
    DATABASE_URL = os.getenv("DATABASE_URL", "")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
