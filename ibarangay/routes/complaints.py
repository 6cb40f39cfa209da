"""
iBarangay - Complaint Routes
Residents file and follow their complaints; staff triage them
"""
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from ibarangay import db
from ibarangay.models.audit import AuditAction
from ibarangay.models.complaint import Complaint, COMPLAINT_CATEGORIES, COMPLAINT_PRIORITIES
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import get_current_user, login_required, staff_required
from ibarangay.utils.notifications import notify_admins_and_staff
from ibarangay.utils.query_scope import ListFilters, build_list_scope, run_list_query
from ibarangay.utils.security import error_403, error_404, error_500, get_client_ip
from ibarangay.utils.status_updates import (
    COMPLAINT_WORKFLOW,
    StatusTargetNotFound,
    apply_bulk_status,
    update_status,
)
from ibarangay.utils.validators import (
    ValidationError,
    validate_choice,
    validate_id_list,
    validate_length,
    validate_required_fields,
    validation_error_response,
)

complaints_bp = Blueprint('complaints', __name__, url_prefix='/api/complaints')


def _can_view(user, complaint: Complaint) -> bool:
    return user.is_staff or complaint.user_id == user.id


@complaints_bp.route('', methods=['GET'])
@login_required
def list_complaints():
    """List complaints. Residents only ever see their own."""
    try:
        user = get_current_user()
        filters = ListFilters.from_args(request.args)
        scope = build_list_scope(user.role, user.id, filters, search_fields=('title', 'description'))
        return jsonify(run_list_query(Complaint.query, Complaint, scope)), 200
    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        return error_500('Failed to get complaints', e)


@complaints_bp.route('', methods=['POST'])
@login_required
def create_complaint():
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['title', 'description', 'category'])

        title = validate_length(data['title'], 'title', 5, 150)
        description = validate_length(data['description'], 'description', 10, 1000)
        category = validate_choice(data['category'], COMPLAINT_CATEGORIES, 'category')
        priority = validate_choice(data.get('priority') or 'medium', COMPLAINT_PRIORITIES, 'priority')
        attachments = data.get('attachments') or []
        if not isinstance(attachments, list):
            raise ValidationError('attachments', 'Attachments must be an array')
        location = validate_length(data['location'], 'location', 0, 255) if data.get('location') else None

        complaint = Complaint.file(
            user_id=user.id,
            title=title,
            description=description,
            category=category,
            priority=priority,
            location=location,
            attachments=attachments,
        )
        db.session.add(complaint)
        db.session.commit()

        log_action(user.id, AuditAction.CREATE_COMPLAINT, f'Complaint #{complaint.id}')
        notify_admins_and_staff(
            'New Complaint Submitted',
            f'{user.full_name} submitted a new {category} complaint: "{title}"',
            'info',
            related_type='complaint',
            related_id=complaint.id,
            exclude=[user.id],
        )

        return jsonify(complaint.to_dict()), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create complaint', e)


@complaints_bp.route('/<int:complaint_id>', methods=['GET'])
@login_required
def get_complaint(complaint_id: int):
    user = get_current_user()
    complaint = db.session.get(Complaint, complaint_id)
    if not complaint:
        return error_404('Complaint not found')
    if not _can_view(user, complaint):
        return error_403('Not authorized to view this complaint')
    return jsonify(complaint.to_dict()), 200


@complaints_bp.route('/<int:complaint_id>/status', methods=['PUT'])
@staff_required
def update_complaint_status(complaint_id: int):
    """Change one complaint's status and notify its owner."""
    try:
        data = request.get_json(silent=True) or {}
        complaint = update_status(
            COMPLAINT_WORKFLOW,
            complaint_id,
            data.get('status'),
            get_current_user(),
            note=data.get('note'),
            source_ip=get_client_ip(),
        )
        return jsonify(complaint.to_dict()), 200
    except ValidationError as e:
        return validation_error_response(e)
    except StatusTargetNotFound:
        return error_404('Complaint not found')
    except SQLAlchemyError as e:
        return error_500('Failed to update complaint status', e)


@complaints_bp.route('/bulk-status', methods=['POST'])
@staff_required
def bulk_update_complaint_status():
    """Apply one status to many complaints; per-item failures do not abort the batch."""
    try:
        data = request.get_json(silent=True) or {}
        ids = validate_id_list(data.get('ids'))
        outcome = apply_bulk_status(
            COMPLAINT_WORKFLOW,
            ids,
            data.get('status'),
            get_current_user(),
            note=data.get('note'),
            source_ip=get_client_ip(),
        )
        current_app.logger.info(
            f"Bulk complaint update to {outcome.status}: {outcome.updated} updated, {outcome.failed} failed"
        )
        return jsonify(outcome.to_dict()), 200
    except ValidationError as e:
        return validation_error_response(e)


@complaints_bp.route('/<int:complaint_id>/comments', methods=['POST'])
@login_required
def add_comment(complaint_id: int):
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['message'])
        message = validate_length(data['message'], 'message', 1, 500)

        complaint = db.session.get(Complaint, complaint_id)
        if not complaint:
            return error_404('Complaint not found')
        if not _can_view(user, complaint):
            return error_403('Not authorized to comment on this complaint')

        comment = complaint.add_comment(user, message)
        db.session.commit()
        return jsonify(comment), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to add comment', e)
