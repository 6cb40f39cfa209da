"""
iBarangay - Admin Routes
User management, audit log review and site settings
"""
from flask import Blueprint, request, jsonify

from ibarangay import db
from ibarangay.models.audit import AuditLog, AuditAction
from ibarangay.models.content import SiteSettings
from ibarangay.models.user import User
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import admin_required, get_current_user
from ibarangay.utils.cache import clear_cache
from ibarangay.utils.security import error_400, error_404, error_500

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

PUBLIC_SETTINGS_PATH = '/api/public/settings'
AUDIT_LOG_LIMIT = 100


# ---------------------------------------------
# Users
# ---------------------------------------------
@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify([u.to_dict(include_private=True) for u in users]), 200


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id: int):
    try:
        admin = get_current_user()
        user = db.session.get(User, user_id)
        if not user:
            return error_404('User not found')
        if user.id == admin.id:
            return error_400('Cannot delete your own account', code='SELF_DELETE')

        db.session.delete(user)
        db.session.commit()

        log_action(admin.id, AuditAction.DELETE_USER, f'User #{user_id}')
        return jsonify({'message': 'User removed'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to delete user', e)


# ---------------------------------------------
# Audit logs
# ---------------------------------------------
@admin_bp.route('/audit-logs', methods=['GET'])
@admin_required
def list_audit_logs():
    logs = (
        AuditLog.query
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(AUDIT_LOG_LIMIT)
        .all()
    )
    return jsonify([log.to_dict() for log in logs]), 200


# ---------------------------------------------
# Site settings
# ---------------------------------------------
@admin_bp.route('/settings', methods=['GET'])
def get_settings():
    try:
        return jsonify(SiteSettings.get_or_create().to_dict()), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to load settings', e)


@admin_bp.route('/settings', methods=['PUT'])
@admin_required
def update_settings():
    try:
        admin = get_current_user()
        data = request.get_json(silent=True) or {}
        settings = SiteSettings.get_or_create()

        changed = []
        for field in SiteSettings.EDITABLE_FIELDS:
            value = data.get(field)
            # Empty values keep the current setting
            if value and value != getattr(settings, field):
                setattr(settings, field, str(value).strip())
                changed.append(field)
        db.session.commit()

        log_action(admin.id, AuditAction.UPDATE_SETTINGS, f"Site settings: {', '.join(changed) or 'no changes'}")
        clear_cache(PUBLIC_SETTINGS_PATH)

        return jsonify(settings.to_dict()), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to update settings', e)
