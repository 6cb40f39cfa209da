"""Daily return reminders for borrowed equipment and reserved facilities.

Owners of approved/borrowed requests get an overdue notice once the expected
return date has passed, and a reminder when it is at most two days away.
Each request produces at most one notice of each kind per day.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict

from flask import current_app

from ibarangay import db
from ibarangay.models.notification import Notification
from ibarangay.models.service_request import ServiceRequest, ACTIVE_SERVICE_STATUSES
from ibarangay.utils.notifications import create_notification
from ibarangay.utils.time import start_of_day, utc_now


OVERDUE_TITLE = '⚠️ Overdue Return Notice'
DUE_SOON_TITLE = '📅 Return Reminder'
DUE_SOON_DAYS = 2


def _already_notified(service: ServiceRequest, title: str, since: datetime) -> bool:
    return db.session.query(Notification.id).filter(
        Notification.user_id == service.user_id,
        Notification.title == title,
        Notification.related_type == 'service',
        Notification.related_id == service.id,
        Notification.created_at >= since,
    ).first() is not None


def _label(service: ServiceRequest) -> str:
    return f'Your {(service.request_type or "equipment").lower()} request for "{service.item_name}"'


def check_overdue_services(now: datetime | None = None) -> Dict[str, int]:
    """Send overdue and due-soon notices. Returns counts of what was found and sent."""
    today = start_of_day(now or utc_now())
    due_limit = today + timedelta(days=DUE_SOON_DAYS)
    stats = {'overdue': 0, 'due_soon': 0, 'notified': 0}

    overdue = ServiceRequest.query.filter(
        ServiceRequest.status.in_(ACTIVE_SERVICE_STATUSES),
        ServiceRequest.expected_return_date < today,
    ).order_by(ServiceRequest.expected_return_date).all()
    stats['overdue'] = len(overdue)
    current_app.logger.info(f"[reminders] Found {len(overdue)} overdue services")

    for service in overdue:
        if _already_notified(service, OVERDUE_TITLE, today):
            continue
        if create_notification(
            service.user_id,
            OVERDUE_TITLE,
            f"{_label(service)} is overdue. Please return it as soon as possible.",
            'warning',
            'service',
            service.id,
        ):
            stats['notified'] += 1

    due_soon = ServiceRequest.query.filter(
        ServiceRequest.status.in_(ACTIVE_SERVICE_STATUSES),
        ServiceRequest.expected_return_date >= today,
        ServiceRequest.expected_return_date <= due_limit,
    ).order_by(ServiceRequest.expected_return_date).all()
    stats['due_soon'] = len(due_soon)
    current_app.logger.info(f"[reminders] Found {len(due_soon)} due-soon services")

    for service in due_soon:
        if _already_notified(service, DUE_SOON_TITLE, today):
            continue
        days = math.ceil((service.expected_return_date - today).total_seconds() / 86400)
        when = 'today' if days == 0 else f'in {days} day(s)'
        if create_notification(
            service.user_id,
            DUE_SOON_TITLE,
            f"{_label(service)} is due {when}.",
            'info',
            'service',
            service.id,
        ):
            stats['notified'] += 1

    return stats


def seconds_until_next_run(now: datetime, hour: int) -> float:
    """Seconds from ``now`` until the next ``hour``:00 (UTC)."""
    target = start_of_day(now) + timedelta(hours=hour)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()
