"""Settings for the iBarangay API, read from the environment (and ``.env`` via python-dotenv)."""
import logging
import os
from datetime import timedelta

log = logging.getLogger(__name__)

# Secrets that may never fall back to a baked-in value when deployed
_PRODUCTION_SECRETS = ('SECRET_KEY', 'JWT_SECRET_KEY')

SQLITE_FALLBACK_URL = 'sqlite:///ibarangay.db'


def _is_production() -> bool:
    return os.getenv('FLASK_ENV', 'development') == 'production'


def _require_env(name: str, default: str = None) -> str:
    """Value of ``name``; ``default`` is accepted locally, refused for secrets in production."""
    value = os.getenv(name)
    if value:
        return value
    if default is None:
        raise RuntimeError(f"{name} must be set")
    if _is_production():
        if name in _PRODUCTION_SECRETS:
            raise RuntimeError(f"{name} must be set when FLASK_ENV=production")
        log.warning("%s not set; falling back to built-in default", name)
    return default


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r (default %s)", name, raw, default)
        return default


def _flag_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def get_database_url() -> str:
    url = os.getenv('DATABASE_URL')
    if not url:
        log.warning("DATABASE_URL not set; storing barangay data in %s", SQLITE_FALLBACK_URL)
        return SQLITE_FALLBACK_URL
    # Heroku-style URLs still use the scheme SQLAlchemy dropped
    if url.startswith('postgres://'):
        return 'postgresql://' + url[len('postgres://'):]
    return url


def get_engine_options(url: str) -> dict:
    if url.startswith('sqlite'):
        return {}
    return {'pool_pre_ping': True, 'pool_recycle': 300}


class Config:
    """Shared by every environment; subclasses only flip a handful of switches."""

    SECRET_KEY = _require_env('SECRET_KEY', 'ibarangay-local-secret')
    DEBUG = _flag_env('DEBUG', False)
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    APP_NAME = os.getenv('APP_NAME', 'iBarangay')

    SQLALCHEMY_DATABASE_URI = get_database_url()
    SQLALCHEMY_ENGINE_OPTIONS = get_engine_options(SQLALCHEMY_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Tokens live 30 days unless overridden (seconds)
    JWT_SECRET_KEY = _require_env('JWT_SECRET_KEY', 'ibarangay-local-jwt-secret')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=_int_env('JWT_ACCESS_TOKEN_EXPIRES', 30 * 24 * 3600))
    JWT_TOKEN_LOCATION = ['headers']

    RATELIMIT_ENABLED = _flag_env('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True

    # Avatars arrive base64-encoded inside JSON bodies
    MAX_CONTENT_LENGTH = _int_env('MAX_CONTENT_LENGTH', 5 * 1024 * 1024)
    MAX_AVATAR_BYTES = _int_env('MAX_AVATAR_BYTES', 4 * 1024 * 1024)

    LOGIN_MAX_ATTEMPTS = _int_env('LOGIN_MAX_ATTEMPTS', 5)
    LOGIN_LOCKOUT_DURATION_MS = _int_env('LOGIN_LOCKOUT_DURATION_MS', 5 * 60 * 1000)

    CACHE_TTL_SECONDS = _int_env('CACHE_TTL_SECONDS', 60)
    # Query strings are part of the key, so the entry count is capped
    CACHE_MAX_ENTRIES = _int_env('CACHE_MAX_ENTRIES', 1024)

    # Handed to gunicorn --timeout; Flask cannot abort a running request itself
    REQUEST_TIMEOUT_SECONDS = _int_env('REQUEST_TIMEOUT_SECONDS', 30)

    # UTC hour of the daily overdue/due-soon reminder run
    REMINDER_HOUR = _int_env('REMINDER_HOUR', 8)

    CLIENT_URL = os.getenv('CLIENT_URL', 'http://localhost:5173')

    @staticmethod
    def init_app(app):
        app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False


config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}
