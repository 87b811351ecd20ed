"""
Complaint Workflow Server
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
_instance_dir = os.path.join(basedir, "instance")

# SQLite file for session snapshots in local dev
_SQLITE_DEV = f"sqlite:///{os.path.join(_instance_dir, 'complaint_flow_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)


def _env_bool(name, default):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # Server
    PORT = int(os.getenv("PORT", "8080"))

    # Storage locations
    SAVE_DIR = os.getenv("SAVED_DOCUMENTS_DIR", os.path.join(_instance_dir, "saved_documents"))
    CLOUD_DRIVE_ROOT = os.getenv("CLOUD_DRIVE_ROOT", os.path.join(_instance_dir, "cloud_drive"))
    TEMPLATES_DIR = os.getenv("COMPLAINT_TEMPLATES_DIR", os.path.join(basedir, "complaint_templates"))

    # Saved-document lookup
    LEGACY_DOCUMENT_TIMESTAMP = os.getenv("LEGACY_DOCUMENT_TIMESTAMP", "20250605_010420")
    DEFAULT_CLIENT_NAME = os.getenv("DEFAULT_CLIENT_NAME", "Eman Youssef")

    # Workflow sessions
    SESSION_COOKIE_NAME_TOKEN = "session_token"
    SESSION_TOKEN_MAX_AGE = 3600
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
    SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "0"))  # 0 → ttl/10
    SESSION_SWEEPER_ENABLED = _env_bool("SESSION_SWEEPER_ENABLED", "true")
    SESSION_PERSISTENCE_ENABLED = _env_bool("SESSION_PERSISTENCE_ENABLED", "false")

    # SQLAlchemy (session snapshots)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
    }

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Rate limiting (Flask-Limiter)
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Editor payloads
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2 MB


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", _SQLITE_DEV)


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SESSION_SWEEPER_ENABLED = False
    SESSION_PERSISTENCE_ENABLED = False
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    # Railway/Heroku use postgres:// but SQLAlchemy 2.0 requires postgresql://
    _raw_db_url = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = (
        _raw_db_url.replace("postgres://", "postgresql://", 1) if _raw_db_url else _SQLITE_DEV
    )

    def __init__(self):
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
