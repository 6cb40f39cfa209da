from datetime import datetime, timedelta

from ibarangay import db
from ibarangay.app import create_app
from ibarangay.config import Config
from ibarangay.models.notification import Notification
from ibarangay.models.service_request import ServiceRequest
from ibarangay.models.user import User
from ibarangay.utils.reminders import (
    DUE_SOON_TITLE,
    OVERDUE_TITLE,
    check_overdue_services,
    seconds_until_next_run,
)
from ibarangay.utils.time import start_of_day, utc_now


class ReminderTestConfig(Config):
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TESTING = True
    JWT_SECRET_KEY = 'test-secret'
    RATELIMIT_ENABLED = False


def _service(user_id, item_name, return_in_days, status, request_type='Equipment'):
    today = start_of_day()
    service = ServiceRequest.submit(
        user_id=user_id,
        item_name=item_name,
        item_type='Equipment',
        borrow_date=today - timedelta(days=10),
        expected_return_date=today + timedelta(days=return_in_days, hours=12),
        purpose='Community activity',
        request_type=request_type,
    )
    service.status = status
    return service


def test_overdue_and_due_soon_notices_sent_once_per_day():
    app = create_app(ReminderTestConfig)
    with app.app_context():
        db.create_all()
        owner = User(first_name='Lea', last_name='Bautista', email='lea@example.com', password_hash='x', role='resident')
        db.session.add(owner)
        db.session.commit()

        db.session.add_all([
            _service(owner.id, 'Sound system', -3, 'borrowed'),
            _service(owner.id, 'Folding tables', 1, 'approved'),
            _service(owner.id, 'Covered court', 0, 'approved', request_type='Facility'),
            _service(owner.id, 'Tent', 10, 'borrowed'),
            _service(owner.id, 'Chairs', -5, 'returned'),
            _service(owner.id, 'Projector', -1, 'pending'),
        ])
        db.session.commit()

        stats = check_overdue_services()
        assert stats == {'overdue': 1, 'due_soon': 2, 'notified': 3}

        overdue = Notification.query.filter_by(title=OVERDUE_TITLE).one()
        assert overdue.type == 'warning'
        assert overdue.related_type == 'service'
        assert overdue.message == (
            'Your equipment request for "Sound system" is overdue. Please return it as soon as possible.'
        )

        messages = sorted(n.message for n in Notification.query.filter_by(title=DUE_SOON_TITLE).all())
        assert messages == [
            'Your equipment request for "Folding tables" is due in 2 day(s).',
            'Your facility request for "Covered court" is due in 1 day(s).',
        ]

        again = check_overdue_services()
        assert again['notified'] == 0
        assert Notification.query.count() == 3


def test_reminders_are_per_service_not_per_user():
    app = create_app(ReminderTestConfig)
    with app.app_context():
        db.create_all()
        owner = User(first_name='Lea', last_name='Bautista', email='lea@example.com', password_hash='x', role='resident')
        db.session.add(owner)
        db.session.commit()
        db.session.add_all([
            _service(owner.id, 'Ladder', -2, 'borrowed'),
            _service(owner.id, 'Generator', -4, 'borrowed'),
        ])
        db.session.commit()

        assert check_overdue_services()['notified'] == 2


def test_due_today_wording():
    app = create_app(ReminderTestConfig)
    with app.app_context():
        db.create_all()
        owner = User(first_name='Lea', last_name='Bautista', email='lea@example.com', password_hash='x', role='resident')
        db.session.add(owner)
        db.session.commit()
        service = _service(owner.id, 'Megaphone', 0, 'borrowed')
        service.expected_return_date = start_of_day()
        db.session.add(service)
        db.session.commit()

        check_overdue_services(now=utc_now())
        notice = Notification.query.one()
        assert notice.message == 'Your equipment request for "Megaphone" is due today.'


def test_seconds_until_next_run():
    assert seconds_until_next_run(datetime(2026, 5, 1, 6, 30), 8) == 90 * 60
    assert seconds_until_next_run(datetime(2026, 5, 1, 8, 0), 8) == 24 * 3600
    assert seconds_until_next_run(datetime(2026, 5, 1, 9, 0), 8) == 23 * 3600
