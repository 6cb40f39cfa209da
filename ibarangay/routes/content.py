"""
iBarangay - Site Content Routes
Hotlines, officials and FAQs. Reads are public, writes are staff only.
"""
from flask import Blueprint, request, jsonify

from ibarangay import db
from ibarangay.models.content import Hotline, Official, FAQ, HOTLINE_CATEGORIES
from ibarangay.utils.auth import staff_required
from ibarangay.utils.cache import clear_cache
from ibarangay.utils.security import error_404, error_500
from ibarangay.utils.validators import (
    ValidationError,
    validate_choice,
    validate_length,
    validate_required_fields,
    validation_error_response,
)

content_bp = Blueprint('content', __name__, url_prefix='/api/content')

PUBLIC_OFFICIALS_PATH = '/api/public/officials'


def _delete(model, item_id, label):
    try:
        item = db.session.get(model, item_id)
        if not item:
            return error_404(f'{label} not found')
        db.session.delete(item)
        db.session.commit()
        return jsonify({'message': f'{label} removed'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500(f'Failed to delete {label.lower()}', e)


# ---------------------------------------------
# Hotlines
# ---------------------------------------------
@content_bp.route('/hotlines', methods=['GET'])
def list_hotlines():
    hotlines = Hotline.query.order_by(Hotline.category.asc(), Hotline.id.asc()).all()
    return jsonify([h.to_dict() for h in hotlines]), 200


@content_bp.route('/hotlines', methods=['POST'])
@staff_required
def create_hotline():
    try:
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['name', 'number'])
        hotline = Hotline(
            name=validate_length(data['name'], 'name', 1, 100),
            number=validate_length(data['number'], 'number', 1, 50),
            category=validate_choice(data.get('category') or 'emergency', HOTLINE_CATEGORIES, 'category'),
            description=data.get('description') or None,
        )
        db.session.add(hotline)
        db.session.commit()
        return jsonify(hotline.to_dict()), 201
    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create hotline', e)


@content_bp.route('/hotlines/<int:hotline_id>', methods=['DELETE'])
@staff_required
def delete_hotline(hotline_id: int):
    return _delete(Hotline, hotline_id, 'Hotline')


# ---------------------------------------------
# Officials
# ---------------------------------------------
def ordered_officials():
    return Official.query.order_by(Official.display_order.asc(), Official.created_at.asc()).all()


@content_bp.route('/officials', methods=['GET'])
def list_officials():
    return jsonify([o.to_dict() for o in ordered_officials()]), 200


@content_bp.route('/officials', methods=['POST'])
@staff_required
def create_official():
    try:
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['name', 'position'])
        try:
            display_order = int(data.get('display_order') or 0)
        except (TypeError, ValueError):
            raise ValidationError('display_order', 'display_order must be an integer')

        official = Official(
            name=validate_length(data['name'], 'name', 1, 100),
            position=validate_length(data['position'], 'position', 1, 100),
            image_url=data.get('image_url') or None,
            contact=data.get('contact') or None,
            display_order=display_order,
        )
        db.session.add(official)
        db.session.commit()
        clear_cache(PUBLIC_OFFICIALS_PATH)
        return jsonify(official.to_dict()), 201
    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create official', e)


@content_bp.route('/officials/<int:official_id>', methods=['DELETE'])
@staff_required
def delete_official(official_id: int):
    response = _delete(Official, official_id, 'Official')
    clear_cache(PUBLIC_OFFICIALS_PATH)
    return response


# ---------------------------------------------
# FAQs
# ---------------------------------------------
@content_bp.route('/faqs', methods=['GET'])
def list_faqs():
    faqs = FAQ.query.order_by(FAQ.category.asc(), FAQ.id.asc()).all()
    return jsonify([f.to_dict() for f in faqs]), 200


@content_bp.route('/faqs', methods=['POST'])
@staff_required
def create_faq():
    try:
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['question', 'answer'])
        faq = FAQ(
            question=validate_length(data['question'], 'question', 1, 500),
            answer=validate_length(data['answer'], 'answer', 1, 5000),
            category=data.get('category') or None,
        )
        db.session.add(faq)
        db.session.commit()
        return jsonify(faq.to_dict()), 201
    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create FAQ', e)


@content_bp.route('/faqs/<int:faq_id>', methods=['DELETE'])
@staff_required
def delete_faq(faq_id: int):
    return _delete(FAQ, faq_id, 'FAQ')
