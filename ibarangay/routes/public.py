"""
iBarangay - Public Routes
Unauthenticated read-only views for the landing page, served from the response cache.
"""
from flask import Blueprint, jsonify

from ibarangay.models.content import SiteSettings
from ibarangay.models.event import Event
from ibarangay.routes.announcements import published_announcements
from ibarangay.routes.content import ordered_officials
from ibarangay.routes.news import latest_news
from ibarangay.utils.cache import cached_response

public_bp = Blueprint('public', __name__, url_prefix='/api/public')

SHORT_TTL = 60
LONG_TTL = 300


@public_bp.route('/events', methods=['GET'])
@cached_response(ttl=SHORT_TTL)
def public_events():
    events = Event.query.order_by(Event.event_date.asc()).all()
    payload = []
    for event in events:
        data = event.to_dict()
        data['is_registered'] = False
        payload.append(data)
    return jsonify(payload), 200


@public_bp.route('/announcements', methods=['GET'])
@cached_response(ttl=SHORT_TTL)
def public_announcements():
    return jsonify([a.to_dict() for a in published_announcements()]), 200


@public_bp.route('/news', methods=['GET'])
@cached_response(ttl=SHORT_TTL)
def public_news():
    return jsonify([item.to_dict() for item in latest_news()]), 200


@public_bp.route('/officials', methods=['GET'])
@cached_response(ttl=LONG_TTL)
def public_officials():
    return jsonify([o.to_dict() for o in ordered_officials()]), 200


@public_bp.route('/settings', methods=['GET'])
@cached_response(ttl=LONG_TTL)
def public_settings():
    return jsonify(SiteSettings.get_or_create().to_dict()), 200
