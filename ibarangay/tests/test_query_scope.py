from datetime import datetime

import pytest

from ibarangay.utils.query_scope import (
    MAX_PAGE_SIZE,
    ListFilters,
    build_list_scope,
    escape_like,
)
from ibarangay.utils.validators import ValidationError


def test_resident_is_pinned_to_own_rows_even_when_filtering_other_user():
    filters = ListFilters.from_args({'user_id': '42', 'status': 'pending'})
    scope = build_list_scope('resident', 7, filters)
    assert scope.owner_id == 7
    assert scope.status == 'pending'


def test_staff_sees_everything_unless_filtering_by_owner():
    assert build_list_scope('staff', 1, ListFilters.from_args({})).owner_id is None
    assert build_list_scope('admin', 1, ListFilters.from_args({'userId': '9'})).owner_id == 9


def test_all_sentinel_and_blank_values_mean_no_filter():
    filters = ListFilters.from_args({'status': 'all', 'category': 'ALL', 'priority': '  ', 'search': ''})
    assert filters.status is None
    assert filters.category is None
    assert filters.priority is None
    assert filters.search is None


def test_type_is_accepted_as_category_alias():
    assert ListFilters.from_args({'type': 'Facility'}).category == 'Facility'


def test_bare_end_date_covers_whole_day():
    filters = ListFilters.from_args({'startDate': '2026-01-05', 'endDate': '2026-01-10'})
    assert filters.created_from == datetime(2026, 1, 5)
    assert filters.created_to == datetime(2026, 1, 10, 23, 59, 59, 999999)


def test_end_datetime_is_used_as_given():
    filters = ListFilters.from_args({'end_date': '2026-01-10T12:00:00Z'})
    assert filters.created_to == datetime(2026, 1, 10, 12, 0, 0)


def test_invalid_date_and_user_id_raise():
    with pytest.raises(ValidationError):
        ListFilters.from_args({'startDate': 'yesterday'})
    with pytest.raises(ValidationError):
        ListFilters.from_args({'user_id': 'abc'})


def test_pagination_needs_page_and_limit_and_caps_page_size():
    assert not build_list_scope('staff', 1, ListFilters.from_args({'page': '2'})).paginated

    scope = build_list_scope('staff', 1, ListFilters.from_args({'page': '3', 'limit': '1000'}))
    assert scope.paginated
    assert scope.limit == MAX_PAGE_SIZE
    assert scope.skip == 2 * MAX_PAGE_SIZE


def test_escape_like_escapes_wildcards():
    assert escape_like('50%_off\\') == '50\\%\\_off\\\\'
