"""
iBarangay - Dashboard Statistics
Staff see system-wide counts, residents see their own.
"""
from flask import Blueprint, jsonify
from sqlalchemy import func

from ibarangay import db
from ibarangay.models.complaint import Complaint, COMPLAINT_STATUSES
from ibarangay.models.event import Event, EVENT_STATUSES
from ibarangay.models.service_request import ServiceRequest, SERVICE_STATUSES, ACTIVE_SERVICE_STATUSES
from ibarangay.models.user import User, ROLES
from ibarangay.utils.auth import get_current_user, login_required, staff_required
from ibarangay.utils.security import error_500

stats_bp = Blueprint('stats', __name__, url_prefix='/api/stats')


def _count_by(column, choices):
    """Count rows grouped by ``column``, with a zero for every missing choice."""
    rows = db.session.query(column, func.count()).group_by(column).all()
    counts = {choice: 0 for choice in choices}
    counts.update({value: total for value, total in rows})
    return counts


def _upcoming_events() -> int:
    return Event.query.filter_by(status='upcoming').count()


def staff_stats() -> dict:
    return {
        'total_residents': User.query.filter_by(role='resident').count(),
        'pending_complaints': Complaint.query.filter_by(status='pending').count(),
        'active_services': ServiceRequest.query.filter(
            ServiceRequest.status.in_(ACTIVE_SERVICE_STATUSES)
        ).count(),
        'upcoming_events': _upcoming_events(),
        'resolved_complaints': Complaint.query.filter_by(status='resolved').count(),
    }


def resident_stats(user_id: int) -> dict:
    return {
        'my_pending_complaints': Complaint.query.filter_by(user_id=user_id, status='pending').count(),
        'my_active_services': ServiceRequest.query.filter(
            ServiceRequest.user_id == user_id,
            ServiceRequest.status.in_(ACTIVE_SERVICE_STATUSES),
        ).count(),
        'upcoming_events': _upcoming_events(),
        'my_total_complaints': Complaint.query.filter_by(user_id=user_id).count(),
    }


@stats_bp.route('', methods=['GET'])
@login_required
def dashboard_stats():
    try:
        user = get_current_user()
        if user.is_staff:
            return jsonify(staff_stats()), 200
        return jsonify(resident_stats(user.id)), 200
    except Exception as e:
        return error_500('Failed to load statistics', e)


@stats_bp.route('/breakdown', methods=['GET'])
@staff_required
def status_breakdown():
    """Per-status counts for users, complaints, services and events."""
    try:
        return jsonify({
            'users': _count_by(User.role, ROLES),
            'complaints': _count_by(Complaint.status, COMPLAINT_STATUSES),
            'services': _count_by(ServiceRequest.status, SERVICE_STATUSES),
            'events': _count_by(Event.status, EVENT_STATUSES),
        }), 200
    except Exception as e:
        return error_500('Failed to load statistics', e)
