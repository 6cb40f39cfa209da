"""iBarangay: resident services API for a barangay hall.

Extension singletons live here so models and blueprints can import them
before ``create_app`` binds them to an application.
"""
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from ibarangay.utils.security import get_client_ip

__version__ = '1.0.0'


def _rate_limit_key():
    return get_client_ip() or get_remote_address()


db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()

# Storage comes from RATELIMIT_STORAGE_URI once bound to the app
limiter = Limiter(
    key_func=_rate_limit_key,
    default_limits=["2000 per day", "500 per hour"],
    strategy="fixed-window",
)

__all__ = ['db', 'migrate', 'jwt', 'limiter', '__version__']
