"""
Environment-aware configuration.
Secrets, token lifetimes, database URL and the SAP integration settings all
come from the environment (.env is read if present).
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///sap-api.db")
    # Access and refresh tokens are signed with distinct secrets
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER") or None
    # Compact durations: <integer><s|m|h|d>
    JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "15m")
    JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")
    # SAP integration
    SAP_INTEGRATION_API_KEY = os.getenv("SAP_INTEGRATION_API_KEY", "sap-simulated-key")
    USER_API_BASE = os.getenv("USER_API_BASE") or None
    USER_API_TIMEOUT = float(os.getenv("USER_API_TIMEOUT", "10"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET = "test-jwt-secret-0123456789abcdef0123"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    SAP_INTEGRATION_API_KEY = "test-sap-key"
    USER_API_BASE = None


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
