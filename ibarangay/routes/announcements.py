"""
iBarangay - Announcement Routes
Published announcements, pinned first
"""
from flask import Blueprint, request, jsonify

from ibarangay import db
from ibarangay.models.announcement import Announcement, ANNOUNCEMENT_CATEGORIES, ANNOUNCEMENT_PRIORITIES
from ibarangay.models.audit import AuditAction
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import get_current_user, login_required, staff_required
from ibarangay.utils.cache import clear_cache
from ibarangay.utils.security import error_404, error_500
from ibarangay.utils.time import utc_now
from ibarangay.utils.validators import (
    ValidationError,
    validate_choice,
    validate_length,
    validate_required_fields,
    validation_error_response,
)

announcements_bp = Blueprint('announcements', __name__, url_prefix='/api/announcements')

PUBLIC_ANNOUNCEMENTS_PATH = '/api/public/announcements'


def _parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def published_announcements():
    return (
        Announcement.query
        .filter(Announcement.is_published.is_(True))
        .order_by(Announcement.is_pinned.desc(), Announcement.created_at.desc(), Announcement.id.desc())
        .all()
    )


@announcements_bp.route('', methods=['GET'])
@login_required
def list_announcements():
    return jsonify([a.to_dict() for a in published_announcements()]), 200


@announcements_bp.route('', methods=['POST'])
@staff_required
def create_announcement():
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['title', 'content'])

        is_published = _parse_bool(data.get('is_published'), default=True)
        announcement = Announcement(
            title=validate_length(data['title'], 'title', 1, 200),
            content=validate_length(data['content'], 'content', 1, 10000),
            category=validate_choice(data.get('category') or 'general', ANNOUNCEMENT_CATEGORIES, 'category'),
            priority=validate_choice(data.get('priority') or 'medium', ANNOUNCEMENT_PRIORITIES, 'priority'),
            author_id=user.id,
            image_url=data.get('image_url') or None,
            is_published=is_published,
            is_pinned=_parse_bool(data.get('is_pinned')),
            published_at=utc_now() if is_published else None,
        )
        db.session.add(announcement)
        db.session.commit()

        log_action(user.id, AuditAction.CREATE_ANNOUNCEMENT, f'Announcement #{announcement.id}')
        clear_cache(PUBLIC_ANNOUNCEMENTS_PATH)

        return jsonify(announcement.to_dict()), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create announcement', e)


@announcements_bp.route('/<int:announcement_id>/pin', methods=['PUT'])
@staff_required
def toggle_pin(announcement_id: int):
    try:
        announcement = db.session.get(Announcement, announcement_id)
        if not announcement:
            return error_404('Announcement not found')
        announcement.is_pinned = not announcement.is_pinned
        db.session.commit()
        clear_cache(PUBLIC_ANNOUNCEMENTS_PATH)
        return jsonify(announcement.to_dict()), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to update announcement', e)


@announcements_bp.route('/<int:announcement_id>', methods=['DELETE'])
@staff_required
def delete_announcement(announcement_id: int):
    try:
        user = get_current_user()
        announcement = db.session.get(Announcement, announcement_id)
        if not announcement:
            return error_404('Announcement not found')
        db.session.delete(announcement)
        db.session.commit()

        log_action(user.id, AuditAction.DELETE_ANNOUNCEMENT, f'Announcement #{announcement_id}')
        clear_cache(PUBLIC_ANNOUNCEMENTS_PATH)

        return jsonify({'message': 'Announcement removed'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to delete announcement', e)
