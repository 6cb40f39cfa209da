from datetime import timedelta

from flask_jwt_extended import create_access_token

from ibarangay import db
from ibarangay.app import create_app
from ibarangay.config import Config
from ibarangay.models.audit import AuditLog, AuditAction
from ibarangay.models.user import User
from ibarangay.utils.time import utc_now


class AuthLoginTestConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False


PASSWORD = 'StrongPass123'


def _app_with_resident():
    app = create_app(AuthLoginTestConfig)
    client = app.test_client()
    with app.app_context():
        db.create_all()
        user = User(first_name='Maria', last_name='Santos', email='maria@example.com', role='resident')
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        user_id = user.id
    return app, client, user_id


def _login(client, password, email='maria@example.com'):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


def test_register_returns_token_and_rejects_duplicate_email():
    app = create_app(AuthLoginTestConfig)
    client = app.test_client()
    with app.app_context():
        db.create_all()

    payload = {
        'first_name': 'Pedro',
        'last_name': 'Reyes',
        'email': 'Pedro@Example.com',
        'password': PASSWORD,
        'phone_number': '09171234567',
    }
    resp = client.post('/api/auth/register', json=payload)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['token']
    assert body['user']['email'] == 'pedro@example.com'
    assert body['user']['role'] == 'resident'

    dup = client.post('/api/auth/register', json=payload)
    assert dup.status_code == 409

    with app.app_context():
        assert AuditLog.query.filter_by(action=AuditAction.USER_REGISTER).count() == 1


def test_register_rejects_weak_password():
    app = create_app(AuthLoginTestConfig)
    client = app.test_client()
    with app.app_context():
        db.create_all()

    resp = client.post('/api/auth/register', json={
        'first_name': 'Pedro',
        'last_name': 'Reyes',
        'email': 'pedro@example.com',
        'password': 'weakpass',
    })
    assert resp.status_code == 400
    assert resp.get_json()['errors'][0]['field'] == 'password'


def test_failed_logins_count_down_then_lock():
    app, client, user_id = _app_with_resident()

    for expected_left in (4, 3, 2, 1):
        resp = _login(client, 'WrongPass999')
        assert resp.status_code == 401
        assert resp.get_json()['remaining_attempts'] == expected_left

    resp = _login(client, 'WrongPass999')
    assert resp.status_code == 423
    body = resp.get_json()
    assert body['code'] == 'ACCOUNT_LOCKED'
    assert 0 < body['remaining_seconds'] <= 300

    # Correct password is refused while locked and the attempt is not counted
    resp = _login(client, PASSWORD)
    assert resp.status_code == 423
    with app.app_context():
        user = db.session.get(User, user_id)
        assert user.failed_login_attempts == 5


def test_login_succeeds_after_lock_expires_and_resets_counters():
    app, client, user_id = _app_with_resident()
    with app.app_context():
        user = db.session.get(User, user_id)
        user.failed_login_attempts = 5
        user.lockout_until = utc_now() - timedelta(seconds=1)
        user.last_failed_login = utc_now() - timedelta(minutes=6)
        db.session.commit()

    resp = _login(client, PASSWORD)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['message'] == 'Login successful'
    assert body['token']

    with app.app_context():
        user = db.session.get(User, user_id)
        assert user.failed_login_attempts == 0
        assert user.lockout_until is None


def test_unknown_email_is_audited_without_user():
    app, client, _ = _app_with_resident()

    resp = _login(client, PASSWORD, email='nobody@example.com')
    assert resp.status_code == 401
    assert 'remaining_attempts' not in resp.get_json()

    with app.app_context():
        entry = AuditLog.query.filter_by(action=AuditAction.USER_LOGIN).one()
        assert entry.user_id is None
        assert entry.status == 'failure'


def test_me_and_profile_update():
    app, client, user_id = _app_with_resident()
    with app.app_context():
        token = create_access_token(identity=str(user_id), additional_claims={'role': 'resident'})
    headers = {'Authorization': f'Bearer {token}'}

    resp = client.get('/api/auth/me', headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['email'] == 'maria@example.com'

    resp = client.put('/api/auth/profile', json={'address': 'Purok 3', 'phone_number': '09181234567'}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['user']['address'] == 'Purok 3'

    resp = client.put('/api/auth/profile', json={'phone_number': '12345'}, headers=headers)
    assert resp.status_code == 400


def test_protected_route_requires_token():
    app, client, _ = _app_with_resident()
    resp = client.get('/api/auth/me')
    assert resp.status_code == 401
    assert resp.get_json()['code'] == 'NO_AUTH'


def test_success_after_partial_failures_resets_counter():
    app, client, user_id = _app_with_resident()

    assert _login(client, 'WrongPass999').status_code == 401
    assert _login(client, 'WrongPass999').status_code == 401
    assert _login(client, PASSWORD).status_code == 200

    with app.app_context():
        user = db.session.get(User, user_id)
        assert user.failed_login_attempts == 0
        assert user.lockout_until is None
        assert user.last_failed_login is None

    # A fresh failure starts counting from zero again
    assert _login(client, 'WrongPass999').get_json()['remaining_attempts'] == 4
