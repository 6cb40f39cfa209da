"""
iBarangay - News Routes
"""
from flask import Blueprint, request, jsonify

from ibarangay import db
from ibarangay.models.audit import AuditAction
from ibarangay.models.news import NewsItem
from ibarangay.utils.audit import log_action
from ibarangay.utils.auth import get_current_user, staff_required
from ibarangay.utils.cache import clear_cache
from ibarangay.utils.security import error_404, error_500
from ibarangay.utils.validators import (
    ValidationError,
    validate_length,
    validate_required_fields,
    validation_error_response,
)

news_bp = Blueprint('news', __name__, url_prefix='/api/news')

PUBLIC_NEWS_PATH = '/api/public/news'


def latest_news():
    return NewsItem.query.order_by(NewsItem.published_date.desc(), NewsItem.id.desc()).all()


@news_bp.route('', methods=['GET'])
def list_news():
    return jsonify([item.to_dict() for item in latest_news()]), 200


@news_bp.route('', methods=['POST'])
@staff_required
def create_news():
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}
        validate_required_fields(data, ['title', 'summary', 'content'])

        item = NewsItem(
            title=validate_length(data['title'], 'title', 1, 200),
            summary=validate_length(data['summary'], 'summary', 1, 500),
            content=validate_length(data['content'], 'content', 1, 20000),
            image_url=data.get('image_url') or None,
            author_id=user.id,
        )
        db.session.add(item)
        db.session.commit()

        log_action(user.id, AuditAction.CREATE_NEWS, f'News #{item.id}')
        clear_cache(PUBLIC_NEWS_PATH)

        return jsonify(item.to_dict()), 201

    except ValidationError as e:
        return validation_error_response(e)
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to create news item', e)


@news_bp.route('/<int:news_id>', methods=['DELETE'])
@staff_required
def delete_news(news_id: int):
    try:
        user = get_current_user()
        item = db.session.get(NewsItem, news_id)
        if not item:
            return error_404('News item not found')
        db.session.delete(item)
        db.session.commit()

        log_action(user.id, AuditAction.DELETE_NEWS, f'News #{news_id}')
        clear_cache(PUBLIC_NEWS_PATH)

        return jsonify({'message': 'News item removed'}), 200
    except Exception as e:
        db.session.rollback()
        return error_500('Failed to delete news item', e)
