"""
iBarangay - Notification Routes
The caller's own in-app notifications
"""
from flask import Blueprint, jsonify

from ibarangay import db
from ibarangay.models.notification import Notification
from ibarangay.utils.auth import get_current_user, login_required
from ibarangay.utils.security import error_404, error_500

notifications_bp = Blueprint('notifications', __name__, url_prefix='/api/notifications')


def _own_notification(notification_id: int):
    user = get_current_user()
    return Notification.query.filter_by(id=notification_id, user_id=user.id).first()


@notifications_bp.route('', methods=['GET'])
@login_required
def list_notifications():
    user = get_current_user()
    notifications = (
        Notification.query
        .filter_by(user_id=user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )
    unread = sum(1 for n in notifications if not n.is_read)
    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'unread_count': unread,
    }), 200


@notifications_bp.route('/read-all', methods=['PUT'])
@notifications_bp.route('/mark-all-read', methods=['PUT'])
@login_required
def mark_all_read():
    try:
        user = get_current_user()
        updated = (
            Notification.query
            .filter_by(user_id=user.id, is_read=False)
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.session.commit()
        return jsonify({'message': 'All notifications marked as read', 'updated': updated}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to mark notifications as read', e)


@notifications_bp.route('/<int:notification_id>/read', methods=['PUT'])
@login_required
def mark_read(notification_id: int):
    try:
        notification = _own_notification(notification_id)
        if not notification:
            return error_404('Notification not found')
        notification.is_read = True
        db.session.commit()
        return jsonify(notification.to_dict()), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to update notification', e)


@notifications_bp.route('/<int:notification_id>', methods=['DELETE'])
@login_required
def delete_notification(notification_id: int):
    try:
        notification = _own_notification(notification_id)
        if not notification:
            return error_404('Notification not found')
        db.session.delete(notification)
        db.session.commit()
        return jsonify({'message': 'Notification deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to delete notification', e)
