"""
Environment-aware configuration.
Secrets, token lifetimes, cookie flags, database URL and blob storage settings
are read from the environment (a local .env is loaded first).
"""
import os
import tempfile
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///user-accounts.db")
    SQLALCHEMY_ECHO = _env_bool("SQLALCHEMY_ECHO", "false")

    # Access and refresh tokens are signed with different secrets so one can never
    # be replayed as the other.
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret-change-me-0123456789abcdef")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "86400")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret-change-me-0123456789abcdef")
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "864000")))
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "user-account-api")

    COOKIE_SECURE = _env_bool("COOKIE_SECURE", "true")
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE = _env_bool("REVOKE_SESSIONS_ON_PASSWORD_CHANGE", "false")

    # Multipart uploads land here before being pushed to blob storage
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(".", "public", "temp"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

    S3_MEDIA_BUCKET = os.getenv("S3_MEDIA_BUCKET")
    S3_MEDIA_PREFIX = os.getenv("S3_MEDIA_PREFIX", "user_media")
    S3_MEDIA_BASE_URL = os.getenv("S3_MEDIA_BASE_URL")  # Optional CDN in front of the bucket
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
    BLOB_STORAGE_TIMEOUT_SECONDS = float(os.getenv("BLOB_STORAGE_TIMEOUT_SECONDS", "10"))
    BLOB_STORAGE_MAX_ATTEMPTS = int(os.getenv("BLOB_STORAGE_MAX_ATTEMPTS", "2"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQLALCHEMY_ECHO = False
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef0123456789"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef0123456789"
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    REFRESH_TOKEN_EXPIRES = timedelta(days=1)
    COOKIE_SECURE = True
    REVOKE_SESSIONS_ON_PASSWORD_CHANGE = False
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), "user-account-api-tests")
    S3_MEDIA_BUCKET = "test-bucket"
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
