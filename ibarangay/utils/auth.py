"""Authentication helpers: current-user lookup and role decorators."""
from functools import wraps

from flask import jsonify, current_app
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ibarangay import db
from ibarangay.models.user import User, STAFF_ROLES


def get_current_user():
    """Return the authenticated User, or None if the account is gone."""
    identity = get_jwt_identity()
    if identity is None:
        return None
    try:
        return db.session.get(User, int(identity))
    except (TypeError, ValueError):
        return None


def roles_required(*roles):
    """Require a valid token whose user currently holds one of ``roles``.

    An empty ``roles`` accepts any authenticated user. The role is read from
    the database so demotions take effect before the token expires.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = get_current_user()
            if user is None:
                return jsonify({'error': 'User not found', 'code': 'NO_USER'}), 401
            if roles and user.role not in roles:
                current_app.logger.warning(
                    "Access denied: user=%s role=%s required=%s", user.id, user.role, roles
                )
                return jsonify({'error': 'Forbidden', 'code': 'ROLE_MISMATCH'}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def login_required(fn):
    return roles_required()(fn)


def staff_required(fn):
    return roles_required(*STAFF_ROLES)(fn)


def admin_required(fn):
    return roles_required('admin')(fn)


def resident_required(fn):
    return roles_required('resident')(fn)
