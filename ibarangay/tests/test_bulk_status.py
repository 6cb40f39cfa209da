"""
Bulk status updates for complaints and service requests.

Each id is handled on its own: a missing id or a failed write is reported
against that id and the rest of the batch still goes through.
"""
from datetime import timedelta

from flask_jwt_extended import create_access_token
from sqlalchemy.exc import SQLAlchemyError

from ibarangay import db
from ibarangay.app import create_app
from ibarangay.config import Config
from ibarangay.models.audit import AuditLog, AuditAction
from ibarangay.models.complaint import Complaint
from ibarangay.models.notification import Notification
from ibarangay.models.service_request import ServiceRequest
from ibarangay.models.user import User
from ibarangay.utils import status_updates
from ibarangay.utils.time import utc_now


class BulkStatusTestConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False


def _bootstrap(service_count=3):
    app = create_app(BulkStatusTestConfig)
    client = app.test_client()
    with app.app_context():
        db.create_all()
        resident = User(first_name='Ana', last_name='Lopez', email='ana@example.com', password_hash='x', role='resident')
        staff = User(first_name='Sam', last_name='Staff', email='staff@example.com', password_hash='x', role='staff')
        db.session.add_all([resident, staff])
        db.session.commit()

        start = utc_now() + timedelta(days=1)
        services = [
            ServiceRequest.submit(
                user_id=resident.id,
                item_name=f'Chair set {i}',
                item_type='Furniture',
                borrow_date=start,
                expected_return_date=start + timedelta(days=2),
                purpose='Birthday party for the family',
            )
            for i in range(service_count)
        ]
        db.session.add_all(services)
        db.session.commit()

        ids = {
            'resident': resident.id,
            'staff': staff.id,
            'services': [s.id for s in services],
            'token': create_access_token(identity=str(staff.id), additional_claims={'role': 'staff'}),
            'resident_token': create_access_token(identity=str(resident.id), additional_claims={'role': 'resident'}),
        }
    return app, client, ids


def _auth(token):
    return {'Authorization': f'Bearer {token}'}


def test_bulk_reject_with_missing_id_reports_partial_failure():
    app, client, ids = _bootstrap(service_count=2)
    a, c = ids['services']
    missing = c + 100

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': [a, missing, c], 'status': 'rejected', 'note': 'bad request'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is False
    assert body['updated'] == 2
    assert body['failed'] == 1
    assert body['results'] == [
        {'id': a, 'success': True},
        {'id': missing, 'success': False, 'error': 'not found'},
        {'id': c, 'success': True},
    ]

    with app.app_context():
        for service_id in (a, c):
            service = db.session.get(ServiceRequest, service_id)
            assert service.status == 'rejected'
            assert service.rejection_reason == 'bad request'
            last = service.status_history[-1]
            assert last['action'] == 'Status updated to rejected'
            assert last['by'] == 'Sam Staff'
            assert last['note'] == 'bad request'

        notices = Notification.query.filter_by(user_id=ids['resident']).all()
        assert len(notices) == 2
        assert all(n.type == 'error' for n in notices)

        audit = AuditLog.query.filter_by(action=AuditAction.BULK_UPDATE_SERVICE_STATUS).one()
        assert audit.status == 'success'
        assert audit.user_id == ids['staff']


def test_reject_without_note_fails_fast_without_changes():
    app, client, ids = _bootstrap()

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': ids['services'], 'status': 'rejected'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 400
    assert resp.get_json()['errors'][0]['field'] == 'note'

    with app.app_context():
        assert ServiceRequest.query.filter_by(status='pending').count() == 3
        assert Notification.query.count() == 0
        assert AuditLog.query.count() == 0


def test_invalid_status_and_ids_are_rejected_up_front():
    app, client, ids = _bootstrap()

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': ids['services'], 'status': 'lost'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 400

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': [], 'status': 'approved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 400

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': ['abc'], 'status': 'approved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 400


def test_commit_failure_is_recorded_per_item(monkeypatch):
    app, client, ids = _bootstrap()
    first, second, third = ids['services']
    real_commit = status_updates._commit
    calls = {'n': 0}

    def flaky_commit():
        calls['n'] += 1
        if calls['n'] == 2:
            raise SQLAlchemyError('write conflict')
        real_commit()

    monkeypatch.setattr(status_updates, '_commit', flaky_commit)

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': [first, second, third], 'status': 'approved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['updated'] == 2
    assert body['failed'] == 1
    assert body['results'][1]['id'] == second
    assert body['results'][1]['success'] is False
    assert 'write conflict' in body['results'][1]['error']

    with app.app_context():
        assert db.session.get(ServiceRequest, first).status == 'approved'
        assert db.session.get(ServiceRequest, second).status == 'pending'
        assert db.session.get(ServiceRequest, third).status == 'approved'


def test_all_missing_ids_audited_as_failure():
    app, client, ids = _bootstrap(service_count=1)

    resp = client.post(
        '/api/complaints/bulk-status',
        json={'ids': [9001, 9002], 'status': 'resolved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body == {
        'success': False,
        'updated': 0,
        'failed': 2,
        'results': [
            {'id': 9001, 'success': False, 'error': 'not found'},
            {'id': 9002, 'success': False, 'error': 'not found'},
        ],
    }

    with app.app_context():
        audit = AuditLog.query.filter_by(action=AuditAction.BULK_UPDATE_COMPLAINT_STATUS).one()
        assert audit.status == 'failure'


def test_single_complaint_status_update_notifies_owner():
    app, client, ids = _bootstrap(service_count=0)
    with app.app_context():
        complaint = Complaint.file(
            user_id=ids['resident'],
            title='Broken streetlight',
            description='The streetlight on Mabini St has been out for a week',
            category='Lighting',
        )
        db.session.add(complaint)
        db.session.commit()
        complaint_id = complaint.id

    resp = client.put(
        f'/api/complaints/{complaint_id}/status',
        json={'status': 'resolved', 'note': 'Bulb replaced'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'resolved'
    assert [h['action'] for h in body['status_history']] == ['Complaint Filed', 'Status updated to resolved']

    with app.app_context():
        notice = Notification.query.filter_by(user_id=ids['resident']).one()
        assert notice.type == 'success'
        assert notice.related_type == 'complaint'
        assert notice.related_id == complaint_id
        assert 'from pending to resolved' in notice.message
        assert 'Bulb replaced' in notice.message

    resp = client.put(
        '/api/complaints/999/status',
        json={'status': 'resolved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 404


def test_resident_cannot_change_status():
    app, client, ids = _bootstrap(service_count=1)
    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': ids['services'], 'status': 'approved'},
        headers=_auth(ids['resident_token']),
    )
    assert resp.status_code == 403
    assert resp.get_json()['code'] == 'ROLE_MISMATCH'


def test_out_of_range_id_fails_alone_and_batch_is_audited():
    app, client, ids = _bootstrap(service_count=2)
    a, c = ids['services']
    too_big = 10 ** 20

    resp = client.post(
        '/api/services/bulk-status',
        json={'ids': [a, too_big, c], 'status': 'approved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['updated'] == 2
    assert body['failed'] == 1
    assert [r['id'] for r in body['results']] == [a, too_big, c]
    assert body['results'][1]['success'] is False
    assert body['results'][1]['error']
    assert body['results'][2] == {'id': c, 'success': True}

    with app.app_context():
        assert db.session.get(ServiceRequest, a).status == 'approved'
        assert db.session.get(ServiceRequest, c).status == 'approved'
        audit = AuditLog.query.filter_by(action=AuditAction.BULK_UPDATE_SERVICE_STATUS).one()
        assert audit.status == 'success'


def _broken_notifier(*args, **kwargs):
    raise RuntimeError('notification store unavailable')


def test_notification_failure_keeps_status_and_reports_success():
    app, client, ids = _bootstrap()

    with app.app_context():
        staff = db.session.get(User, ids['staff'])
        outcome = status_updates.apply_bulk_status(
            status_updates.SERVICE_WORKFLOW,
            ids['services'],
            'approved',
            staff,
            notifier=_broken_notifier,
        )
        assert outcome.updated == len(ids['services'])
        assert outcome.failed == 0
        assert all(r.success for r in outcome.results)

    with app.app_context():
        assert ServiceRequest.query.filter_by(status='approved').count() == len(ids['services'])
        assert Notification.query.count() == 0
        assert AuditLog.query.filter_by(action=AuditAction.BULK_UPDATE_SERVICE_STATUS).count() == 1


def test_single_update_survives_notification_failure():
    app, client, ids = _bootstrap(service_count=1)
    service_id = ids['services'][0]

    with app.app_context():
        staff = db.session.get(User, ids['staff'])
        service = status_updates.update_status(
            status_updates.SERVICE_WORKFLOW,
            service_id,
            'approved',
            staff,
            note='Pick up at the hall',
            notifier=_broken_notifier,
        )
        assert service.status == 'approved'

    with app.app_context():
        service = db.session.get(ServiceRequest, service_id)
        assert service.status == 'approved'
        assert service.approval_note == 'Pick up at the hall'
        assert Notification.query.count() == 0


def test_staff_is_not_notified_about_own_complaint():
    app, client, ids = _bootstrap(service_count=0)
    with app.app_context():
        complaint = Complaint.file(
            user_id=ids['staff'],
            title='Clogged drainage',
            description='Drainage beside the barangay hall overflows when it rains',
            category='Sanitation',
        )
        db.session.add(complaint)
        db.session.commit()
        complaint_id = complaint.id

    resp = client.post(
        '/api/complaints/bulk-status',
        json={'ids': [complaint_id], 'status': 'in-progress'},
        headers=_auth(ids['token']),
    )
    assert resp.get_json()['updated'] == 1

    resp = client.put(
        f'/api/complaints/{complaint_id}/status',
        json={'status': 'resolved'},
        headers=_auth(ids['token']),
    )
    assert resp.status_code == 200

    with app.app_context():
        assert db.session.get(Complaint, complaint_id).status == 'resolved'
        assert Notification.query.count() == 0
