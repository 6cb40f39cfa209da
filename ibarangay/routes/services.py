"""
iBarangay - Service Request Routes
Equipment borrowing and facility reservations
"""
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from ibarangay import db
from ibarangay.models.audit import AuditAction
from ibarangay.models.service_request import ServiceRequest, SERVICE_REQUEST_TYPES
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import get_current_user, login_required, resident_required, staff_required
from ibarangay.utils.notifications import notify_admins_and_staff
from ibarangay.utils.query_scope import ListFilters, build_list_scope, run_list_query
from ibarangay.utils.security import error_403, error_404, error_500, get_client_ip
from ibarangay.utils.status_updates import (
    SERVICE_WORKFLOW,
    StatusTargetNotFound,
    apply_bulk_status,
    update_status,
)
from ibarangay.utils.time import start_of_day
from ibarangay.utils.validators import (
    ValidationError,
    validate_choice,
    validate_datetime,
    validate_id_list,
    validate_length,
    validate_positive_int,
    validate_required_fields,
    validation_error_response,
)

services_bp = Blueprint('services', __name__, url_prefix='/api/services')


def _validate_dates(data):
    """Start may not be before today; end may not be before start."""
    borrow_date = validate_datetime(data.get('borrow_date'), 'borrow_date')
    expected_return_date = validate_datetime(data.get('expected_return_date'), 'expected_return_date')
    if borrow_date < start_of_day():
        raise ValidationError('borrow_date', 'Start date cannot be in the past')
    if expected_return_date < borrow_date:
        raise ValidationError('expected_return_date', 'End date must be on or after start date')
    return borrow_date, expected_return_date


@services_bp.route('', methods=['GET'])
@login_required
def list_services():
    """List service requests. Residents only ever see their own."""
    try:
        user = get_current_user()
        filters = ListFilters.from_args(request.args)
        scope = build_list_scope(
            user.role, user.id, filters,
            search_fields=('item_name', 'purpose'),
            category_field='request_type',
        )
        return jsonify(run_list_query(ServiceRequest.query, ServiceRequest, scope)), 200
    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        return error_500('Failed to get service requests', e)


@services_bp.route('', methods=['POST'])
@resident_required
def create_service_request():
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}
        validate_required_fields(
            data, ['request_type', 'item_name', 'item_type', 'borrow_date', 'expected_return_date', 'purpose']
        )

        request_type = validate_choice(data['request_type'], SERVICE_REQUEST_TYPES, 'request_type')
        item_name = validate_length(data['item_name'], 'item_name', 2, 100)
        item_type = validate_length(data['item_type'], 'item_type', 2, 100)
        borrow_date, expected_return_date = _validate_dates(data)
        purpose = validate_length(data['purpose'], 'purpose', 10, 500)
        notes = validate_length(data['notes'], 'notes', 0, 500) if data.get('notes') else None

        time_slot = number_of_people = None
        if request_type == 'Facility':
            if data.get('time_slot'):
                time_slot = validate_length(data['time_slot'], 'time_slot', 1, 100)
            number_of_people = validate_positive_int(data.get('number_of_people'), 'number_of_people')
            if number_of_people is not None and number_of_people > 10000:
                raise ValidationError('number_of_people', 'Number of people must be between 1 and 10000')

        service = ServiceRequest.submit(
            user_id=user.id,
            request_type=request_type,
            item_name=item_name,
            item_type=item_type,
            borrow_date=borrow_date,
            expected_return_date=expected_return_date,
            purpose=purpose,
            time_slot=time_slot,
            number_of_people=number_of_people,
            notes=notes,
        )
        db.session.add(service)
        db.session.commit()

        log_action(user.id, AuditAction.CREATE_SERVICE_REQUEST, f'Service #{service.id}')
        notify_admins_and_staff(
            'New Service Request',
            f'{user.full_name} submitted a new {request_type} request: "{item_name}"',
            'info',
            related_type='service',
            related_id=service.id,
        )

        return jsonify(service.to_dict()), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create service request', e)


@services_bp.route('/<int:service_id>', methods=['GET'])
@login_required
def get_service_request(service_id: int):
    user = get_current_user()
    service = db.session.get(ServiceRequest, service_id)
    if not service:
        return error_404('Service request not found')
    if not (user.is_staff or service.user_id == user.id):
        return error_403('Not authorized to view this service request')
    return jsonify(service.to_dict()), 200


@services_bp.route('/<int:service_id>/status', methods=['PUT'])
@staff_required
def update_service_status(service_id: int):
    """Change one request's status; rejecting requires a reason in ``note``."""
    try:
        data = request.get_json(silent=True) or {}
        service = update_status(
            SERVICE_WORKFLOW,
            service_id,
            data.get('status'),
            get_current_user(),
            note=data.get('note'),
            source_ip=get_client_ip(),
        )
        return jsonify(service.to_dict()), 200
    except ValidationError as e:
        return validation_error_response(e)
    except StatusTargetNotFound:
        return error_404('Service request not found')
    except SQLAlchemyError as e:
        return error_500('Failed to update service status', e)


@services_bp.route('/bulk-status', methods=['POST'])
@staff_required
def bulk_update_service_status():
    """Apply one status to many requests; per-item failures do not abort the batch."""
    try:
        data = request.get_json(silent=True) or {}
        ids = validate_id_list(data.get('ids'))
        outcome = apply_bulk_status(
            SERVICE_WORKFLOW,
            ids,
            data.get('status'),
            get_current_user(),
            note=data.get('note'),
            source_ip=get_client_ip(),
        )
        current_app.logger.info(
            f"Bulk service update to {outcome.status}: {outcome.updated} updated, {outcome.failed} failed"
        )
        return jsonify(outcome.to_dict()), 200
    except ValidationError as e:
        return validation_error_response(e)
