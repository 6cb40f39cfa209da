"""
iBarangay - Event Routes
Community events and attendee registration
"""
from flask import Blueprint, request, jsonify

from ibarangay import db
from ibarangay.models.audit import AuditAction
from ibarangay.models.event import Event
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import get_current_user, login_required, staff_required
from ibarangay.utils.cache import clear_cache
from ibarangay.utils.notifications import notify_admins_and_staff
from ibarangay.utils.security import error_400, error_404, error_500
from ibarangay.utils.validators import (
    ValidationError,
    validate_datetime,
    validate_length,
    validate_positive_int,
    validate_required_fields,
    validation_error_response,
)

events_bp = Blueprint('events', __name__, url_prefix='/api/events')

PUBLIC_EVENTS_PATH = '/api/public/events'


@events_bp.route('', methods=['GET'])
@login_required
def list_events():
    """All events by date, each flagged with whether the caller is registered."""
    user = get_current_user()
    events = Event.query.order_by(Event.event_date.asc()).all()
    return jsonify([event.to_dict(viewer_id=user.id) for event in events]), 200


@events_bp.route('/<int:event_id>/registered', methods=['GET'])
@staff_required
def registered_users(event_id: int):
    event = db.session.get(Event, event_id)
    if not event:
        return error_404('Event not found')
    return jsonify([user.to_dict(include_private=True) for user in event.attendees]), 200


@events_bp.route('', methods=['POST'])
@staff_required
def create_event():
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['title', 'description', 'event_date', 'location'])

        event = Event(
            title=validate_length(data['title'], 'title', 1, 200),
            description=validate_length(data['description'], 'description', 1, 5000),
            event_date=validate_datetime(data['event_date'], 'event_date'),
            location=validate_length(data['location'], 'location', 1, 255),
            organizer_id=user.id,
            max_attendees=validate_positive_int(data.get('max_attendees'), 'max_attendees'),
            category=data.get('category') or None,
            image_url=data.get('image_url') or None,
        )
        db.session.add(event)
        db.session.commit()

        log_action(user.id, AuditAction.CREATE_EVENT, f'Event #{event.id}')
        clear_cache(PUBLIC_EVENTS_PATH)

        return jsonify(event.to_dict(viewer_id=user.id)), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create event', e)


@events_bp.route('/<int:event_id>', methods=['DELETE'])
@staff_required
def delete_event(event_id: int):
    try:
        user = get_current_user()
        event = db.session.get(Event, event_id)
        if not event:
            return error_404('Event not found')

        db.session.delete(event)
        db.session.commit()

        log_action(user.id, AuditAction.DELETE_EVENT, f'Event #{event_id}')
        clear_cache(PUBLIC_EVENTS_PATH)

        return jsonify({'message': 'Event removed'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to delete event', e)


@events_bp.route('/<int:event_id>/register', methods=['POST'])
@login_required
def register_for_event(event_id: int):
    try:
        user = get_current_user()
        event = db.session.get(Event, event_id)
        if not event:
            return error_404('Event not found')
        if event.is_registered(user.id):
            return error_400('Already registered for this event', code='ALREADY_REGISTERED')
        if event.is_full:
            return error_400('Event is full', code='EVENT_FULL')

        event.attendees.append(user)
        db.session.commit()

        notify_admins_and_staff(
            'New Event Registration',
            f'{user.full_name} registered for the event: "{event.title}"',
            'info',
            related_type='event',
            related_id=event.id,
            exclude=[user.id],
        )
        clear_cache(PUBLIC_EVENTS_PATH)

        return jsonify({'message': 'Successfully registered for event'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to register for event', e)
