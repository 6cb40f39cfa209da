"""Role-scoped filters for list endpoints.

``build_list_scope`` decides what a caller may see: residents are always
pinned to their own rows, whatever they send; staff and admins see everything
unless they filter by owner themselves. The resulting ``ListScope`` is plain
data and is only turned into SQL by ``ListScope.apply``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence, Tuple

from sqlalchemy import or_

from ibarangay.models.user import STAFF_ROLES
from ibarangay.utils.time import parse_iso_datetime
from ibarangay.utils.validators import ValidationError


ALL = 'all'
MAX_PAGE_SIZE = 100


def _present(value) -> Optional[str]:
    """Blank and the 'all' sentinel both mean no filter."""
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.lower() == ALL:
        return None
    return value


def _positive_int(value) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _parse_bound(value, field: str, end_of_day: bool = False) -> Optional[datetime]:
    value = _present(value)
    if value is None:
        return None
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(field, f'{field} must be a valid ISO-8601 date')
    # A bare date as the upper bound covers that whole day
    if end_of_day and len(value) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed


def escape_like(term: str) -> str:
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


@dataclass(frozen=True)
class ListFilters:
    status: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    user_id: Optional[int] = None
    page: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def from_args(cls, args) -> 'ListFilters':
        """Parse query-string arguments (a dict or werkzeug MultiDict)."""
        raw_user = _present(args.get('user_id') or args.get('userId'))
        user_id = None
        if raw_user is not None:
            user_id = _positive_int(raw_user)
            if user_id is None:
                raise ValidationError('user_id', 'user_id must be a positive integer')

        return cls(
            status=_present(args.get('status')),
            category=_present(args.get('category') or args.get('type')),
            priority=_present(args.get('priority')),
            search=_present(args.get('search')),
            created_from=_parse_bound(args.get('startDate') or args.get('start_date'), 'startDate'),
            created_to=_parse_bound(args.get('endDate') or args.get('end_date'), 'endDate', end_of_day=True),
            user_id=user_id,
            page=_positive_int(args.get('page')),
            limit=_positive_int(args.get('limit')),
        )


@dataclass(frozen=True)
class ListScope:
    owner_id: Optional[int] = None
    status: Optional[str] = None
    category: Optional[str] = None
    category_field: str = 'category'
    priority: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    search: Optional[str] = None
    search_fields: Tuple[str, ...] = ()
    page: Optional[int] = None
    skip: Optional[int] = None
    limit: Optional[int] = None

    @property
    def paginated(self) -> bool:
        return self.limit is not None

    def apply(self, query, model):
        """Add this scope's predicates to ``query``. Pagination is left to the caller."""
        if self.owner_id is not None:
            query = query.filter(model.user_id == self.owner_id)
        if self.status:
            query = query.filter(model.status == self.status)
        if self.category:
            query = query.filter(getattr(model, self.category_field) == self.category)
        if self.priority and hasattr(model, 'priority'):
            query = query.filter(model.priority == self.priority)
        if self.created_from is not None:
            query = query.filter(model.created_at >= self.created_from)
        if self.created_to is not None:
            query = query.filter(model.created_at <= self.created_to)
        if self.search and self.search_fields:
            pattern = f"%{escape_like(self.search)}%"
            query = query.filter(or_(*[
                getattr(model, name).ilike(pattern, escape='\\') for name in self.search_fields
            ]))
        return query


def build_list_scope(role: str, user_id: int, filters: ListFilters,
                     search_fields: Sequence[str] = ('title', 'description'),
                     category_field: str = 'category') -> ListScope:
    if role in STAFF_ROLES:
        owner_id = filters.user_id
    else:
        owner_id = user_id

    page = skip = limit = None
    if filters.page and filters.limit:
        limit = min(filters.limit, MAX_PAGE_SIZE)
        page = filters.page
        skip = (page - 1) * limit

    return ListScope(
        owner_id=owner_id,
        status=filters.status,
        category=filters.category,
        category_field=category_field,
        priority=filters.priority,
        created_from=filters.created_from,
        created_to=filters.created_to,
        search=filters.search,
        search_fields=tuple(search_fields),
        page=page,
        skip=skip,
        limit=limit,
    )


def run_list_query(query, model, scope: ListScope, order_by=None):
    """Execute a scoped listing.

    Returns a flat list, or ``{data, pagination}`` when the scope is paginated.
    """
    query = scope.apply(query, model)
    order_by = order_by if order_by is not None else model.created_at.desc()

    if not scope.paginated:
        return [row.to_dict() for row in query.order_by(order_by).all()]

    total = query.order_by(None).count()
    rows = query.order_by(order_by).offset(scope.skip).limit(scope.limit).all()
    total_pages = math.ceil(total / scope.limit) if total else 0
    return {
        'data': [row.to_dict() for row in rows],
        'pagination': {
            'current_page': scope.page,
            'total_pages': total_pages,
            'total_items': total,
            'page_size': scope.limit,
            'has_next': scope.page < total_pages,
            'has_prev': scope.page > 1,
        },
    }
