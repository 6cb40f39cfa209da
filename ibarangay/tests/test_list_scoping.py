"""
Role scoping for complaint and service request listings.

Residents only ever see their own rows; staff see everything and may narrow
by owner, status, category, date or search term.
"""
from datetime import datetime, timedelta

from flask_jwt_extended import create_access_token

from ibarangay import db
from ibarangay.app import create_app
from ibarangay.config import Config
from ibarangay.models.complaint import Complaint
from ibarangay.models.service_request import ServiceRequest
from ibarangay.models.user import User
from ibarangay.utils.time import utc_now


class ListScopeTestConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False


def _complaint(user_id, title, category='Road', created=None):
    return Complaint.file(
        user_id=user_id,
        title=title,
        description='Details about the reported problem',
        category=category,
        now=created,
    )


def build_app_with_complaints():
    app = create_app(ListScopeTestConfig)
    with app.app_context():
        db.create_all()
        alice = User(first_name='Alice', last_name='One', email='alice@example.com', password_hash='x', role='resident')
        bob = User(first_name='Bob', last_name='Two', email='bob@example.com', password_hash='x', role='resident')
        staff = User(first_name='Sam', last_name='Staff', email='sam@example.com', password_hash='x', role='staff')
        db.session.add_all([alice, bob, staff])
        db.session.commit()

        db.session.add_all([
            _complaint(alice.id, 'Pothole on Rizal St', created=datetime(2026, 1, 5, 8, 0)),
            _complaint(alice.id, 'Flooded canal', category='Drainage', created=datetime(2026, 1, 10, 18, 30)),
            _complaint(bob.id, 'Loud karaoke at night', category='Noise', created=datetime(2026, 1, 12, 22, 0)),
            _complaint(bob.id, '100% blocked drain', category='Drainage', created=datetime(2026, 1, 20, 7, 0)),
        ])
        db.session.commit()

        tokens = {
            'alice': create_access_token(identity=str(alice.id), additional_claims={'role': 'resident'}),
            'bob': create_access_token(identity=str(bob.id), additional_claims={'role': 'resident'}),
            'staff': create_access_token(identity=str(staff.id), additional_claims={'role': 'staff'}),
        }
        user_ids = {'alice': alice.id, 'bob': bob.id}
    return app, app.test_client(), tokens, user_ids


def _get(client, token, query=''):
    return client.get(f'/api/complaints{query}', headers={'Authorization': f'Bearer {token}'})


def test_resident_only_sees_own_complaints_even_when_asking_for_others():
    app, client, tokens, user_ids = build_app_with_complaints()

    resp = _get(client, tokens['alice'])
    assert resp.status_code == 200
    titles = [c['title'] for c in resp.get_json()]
    assert titles == ['Flooded canal', 'Pothole on Rizal St']

    resp = _get(client, tokens['alice'], f"?user_id={user_ids['bob']}")
    assert {c['user_id'] for c in resp.get_json()} == {user_ids['alice']}


def test_staff_sees_all_and_can_filter_by_owner():
    app, client, tokens, user_ids = build_app_with_complaints()

    assert len(_get(client, tokens['staff']).get_json()) == 4

    resp = _get(client, tokens['staff'], f"?userId={user_ids['bob']}")
    assert {c['user_id'] for c in resp.get_json()} == {user_ids['bob']}


def test_category_and_date_filters_combine():
    app, client, tokens, _ = build_app_with_complaints()

    resp = _get(client, tokens['staff'], '?category=Drainage&startDate=2026-01-01&endDate=2026-01-10')
    assert [c['title'] for c in resp.get_json()] == ['Flooded canal']

    resp = _get(client, tokens['staff'], '?category=all&endDate=not-a-date')
    assert resp.status_code == 400


def test_search_treats_wildcards_literally():
    app, client, tokens, _ = build_app_with_complaints()

    resp = _get(client, tokens['staff'], '?search=100%25')
    assert [c['title'] for c in resp.get_json()] == ['100% blocked drain']

    resp = _get(client, tokens['staff'], '?search=karaoke')
    assert [c['title'] for c in resp.get_json()] == ['Loud karaoke at night']


def test_paginated_listing_wraps_data():
    app, client, tokens, _ = build_app_with_complaints()

    resp = _get(client, tokens['staff'], '?page=2&limit=3')
    body = resp.get_json()
    assert len(body['data']) == 1
    assert body['pagination'] == {
        'current_page': 2,
        'total_pages': 2,
        'total_items': 4,
        'page_size': 3,
        'has_next': False,
        'has_prev': True,
    }


def test_resident_service_listing_filters_by_request_type():
    app, client, tokens, user_ids = build_app_with_complaints()
    with app.app_context():
        start = utc_now() + timedelta(days=1)
        for owner, request_type in (('alice', 'Equipment'), ('alice', 'Facility'), ('bob', 'Facility')):
            db.session.add(ServiceRequest.submit(
                user_id=user_ids[owner],
                item_name='Covered court' if request_type == 'Facility' else 'Tent',
                item_type='Venue' if request_type == 'Facility' else 'Shelter',
                borrow_date=start,
                expected_return_date=start,
                purpose='Community basketball league',
                request_type=request_type,
            ))
        db.session.commit()

    resp = client.get('/api/services?type=Facility', headers={'Authorization': f"Bearer {tokens['alice']}"})
    assert resp.status_code == 200
    rows = resp.get_json()
    assert len(rows) == 1
    assert rows[0]['request_type'] == 'Facility'
    assert rows[0]['user_id'] == user_ids['alice']


def test_resident_cannot_open_another_residents_complaint():
    app, client, tokens, user_ids = build_app_with_complaints()
    with app.app_context():
        bob_complaint = Complaint.query.filter_by(user_id=user_ids['bob']).first().id

    resp = client.get(f'/api/complaints/{bob_complaint}', headers={'Authorization': f"Bearer {tokens['alice']}"})
    assert resp.status_code == 403

    resp = client.get(f'/api/complaints/{bob_complaint}', headers={'Authorization': f"Bearer {tokens['staff']}"})
    assert resp.status_code == 200
