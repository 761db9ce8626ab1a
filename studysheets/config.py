"""
Configuration classes, selected by name in create_app().

Values come from the environment (a local .env file is loaded if present).
"""
import os

from dotenv import load_dotenv

_BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
load_dotenv(os.path.join(_BASE_DIR, ".env"))

_DEFAULT_DB = "sqlite:///" + os.path.join(_BASE_DIR, "instance", "studysheets.db")


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", _DEFAULT_DB)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Registration only accepts addresses ending in "@<domain>"; blank disables the check
    INSTITUTION_DOMAIN = os.environ.get("INSTITUTION_DOMAIN", "").strip().lower()

    MAX_SHEETS_PER_USER = _int_env("MAX_SHEETS_PER_USER", 3)
    SHEET_CODE_ATTEMPTS = _int_env("SHEET_CODE_ATTEMPTS", 5)

    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    CODE_LOOKUP_RATE_LIMIT = os.environ.get("CODE_LOOKUP_RATE_LIMIT", "60 per minute")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    TALISMAN_ENABLED = False


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    INSTITUTION_DOMAIN = "campus.edu"
    MAX_SHEETS_PER_USER = 3
    SHEET_CODE_ATTEMPTS = 5


class ProductionConfig(Config):
    SESSION_COOKIE_SECURE = True
    # Fail fast instead of queueing behind a saturated pool
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_timeout": _int_env("DB_POOL_TIMEOUT", 5),
    }
    TALISMAN_ENABLED = os.environ.get("TALISMAN_ENABLED", "true").lower() == "true"
    TALISMAN_CONFIG = {"content_security_policy": None, "force_https": True}


config = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
    "default":     DevelopmentConfig,
}
