"""In-app notification helpers.

Delivery is best-effort: every helper swallows and logs its own failures so
a notification problem never fails the request that triggered it.
"""
from __future__ import annotations

from typing import Iterable, List

from flask import current_app

from ibarangay import db
from ibarangay.models.notification import Notification
from ibarangay.models.user import User, STAFF_ROLES


def create_notification(
    user_id: int,
    title: str,
    message: str,
    type: str = 'info',
    related_type: str | None = None,
    related_id: int | None = None,
) -> bool:
    """Write one notification for ``user_id``. Returns False on failure."""
    try:
        db.session.add(Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            related_type=related_type,
            related_id=related_id,
        ))
        db.session.commit()
        return True
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to create notification for user {user_id}: {e}")
        return False


def _staff_ids(exclude: Iterable[int] = ()) -> List[int]:
    excluded = set(exclude)
    rows = db.session.query(User.id).filter(User.role.in_(STAFF_ROLES)).all()
    return [row.id for row in rows if row.id not in excluded]


def notify_admins_and_staff(title: str, message: str, type: str = 'info',
                            related_type: str | None = None, related_id: int | None = None,
                            exclude: Iterable[int] = ()) -> int:
    """Fan a notification out to every staff and admin account. Returns the count written."""
    try:
        recipients = _staff_ids(exclude)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to load staff recipients: {e}")
        return 0

    try:
        for user_id in recipients:
            db.session.add(Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                related_type=related_type,
                related_id=related_id,
            ))
        db.session.commit()
        return len(recipients)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to notify staff ({title}): {e}")
        return 0
