"""
iBarangay - Authentication Routes
Registration, login with account lockout, and profile management
"""
import math

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token

from ibarangay import db, limiter
from ibarangay.models.audit import AuditAction
from ibarangay.models.user import User
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import login_required, get_current_user
from ibarangay.utils.lockout import (
    LockoutPolicy,
    check_lock_status,
    record_failed_attempt,
    record_successful_login,
    remaining_attempts,
)
from ibarangay.utils.security import error_404, error_409, error_500
from ibarangay.utils.time import utc_now
from ibarangay.utils.validators import (
    ValidationError,
    validate_email,
    validate_length,
    validate_name,
    validate_password,
    validate_phone,
    validate_required_fields,
    validation_error_response,
)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

INVALID_CREDENTIALS = 'Invalid email or password'


def _issue_token(user: User) -> str:
    # Subject must be a string; role travels as a claim for the client
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role})


def _locked_response(status):
    minutes = max(1, math.ceil(status.remaining_seconds / 60))
    return jsonify({
        'error': f'Account is temporarily locked due to too many failed login attempts. '
                 f'Try again in {minutes} minute(s).',
        'code': 'ACCOUNT_LOCKED',
        'lockout_until': status.lockout_until.isoformat(),
        'remaining_seconds': status.remaining_seconds,
    }), 423


def _avatar_size(avatar: str) -> int:
    payload = avatar.split(',', 1)[1] if ',' in avatar else avatar
    return math.ceil(len(payload) * 3 / 4)


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute")
def register():
    """Register a new resident account."""
    try:
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['first_name', 'last_name', 'email', 'password'])

        email = validate_email(data['email'])
        password = validate_password(data['password'])
        first_name = validate_name(data['first_name'], 'first_name')
        last_name = validate_name(data['last_name'], 'last_name')
        phone_number = validate_phone(data.get('phone_number'))
        address = validate_length(data['address'], 'address', 0, 200) if data.get('address') else None

        if User.query.filter_by(email=email).first():
            return error_409('User already exists with this email', code='EMAIL_EXISTS')

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            role='resident',
            address=address,
            phone_number=phone_number,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        log_action(user.id, AuditAction.USER_REGISTER, 'Auth System')

        return jsonify({
            'message': 'Registration successful',
            'token': _issue_token(user),
            'user': user.to_dict(include_private=True),
        }), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Registration failed', e)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")  # per client IP, on top of the per-account lockout
def login():
    """Log in, enforcing the failed-attempt lockout.

    A locked account is rejected before the password is checked, and that
    rejected attempt is not counted.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = validate_email(data.get('email'))
        password = data.get('password')
        if not password or not isinstance(password, str):
            raise ValidationError('password', 'Password is required')

        user = User.query.filter_by(email=email).first()
        if not user:
            log_action(None, AuditAction.USER_LOGIN, f'Auth System ({email})', status='failure')
            return jsonify({'error': INVALID_CREDENTIALS}), 401

        policy = LockoutPolicy.from_config(current_app.config)
        now = utc_now()

        status = check_lock_status(user, now)
        if status.locked:
            current_app.logger.warning(f"Login attempt on locked account {user.id}")
            return _locked_response(status)

        if not user.check_password(password):
            record_failed_attempt(user, now, policy)
            log_action(user.id, AuditAction.USER_LOGIN, 'Auth System', status='failure')
            status = check_lock_status(user, now)
            if status.locked:
                return _locked_response(status)
            return jsonify({
                'error': INVALID_CREDENTIALS,
                'remaining_attempts': remaining_attempts(user, policy),
            }), 401

        record_successful_login(user)
        log_action(user.id, AuditAction.USER_LOGIN, 'Auth System')

        return jsonify({
            'message': 'Login successful',
            'token': _issue_token(user),
            'user': user.to_dict(include_private=True),
        }), 200

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Login failed', e)


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    user = get_current_user()
    return jsonify(user.to_dict(include_private=True)), 200


@auth_bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    """Update the caller's own name, contact details or avatar."""
    try:
        data = request.get_json(silent=True) or {}
        user = get_current_user()
        if not user:
            return error_404('User not found')

        avatar = data.get('avatar')
        if avatar:
            if not isinstance(avatar, str):
                raise ValidationError('avatar', 'Avatar must be a data URL or base64 string')
            max_bytes = current_app.config.get('MAX_AVATAR_BYTES', 4 * 1024 * 1024)
            if _avatar_size(avatar) > max_bytes:
                return jsonify({'error': 'Avatar image too large. Maximum size is 4MB.'}), 413

        if data.get('first_name'):
            user.first_name = validate_name(data['first_name'], 'first_name')
        if data.get('last_name'):
            user.last_name = validate_name(data['last_name'], 'last_name')
        if 'address' in data:
            user.address = validate_length(data['address'], 'address', 0, 200) or None
        if 'phone_number' in data:
            user.phone_number = validate_phone(data['phone_number'])
        if avatar:
            user.avatar = avatar

        db.session.commit()
        log_action(user.id, AuditAction.USER_PROFILE_UPDATE, 'Profile')

        return jsonify({
            'message': 'Profile updated successfully',
            'user': user.to_dict(include_private=True),
        }), 200

    except ValidationError as e:
        db.session.rollback()
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to update profile', e)
