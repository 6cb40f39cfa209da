"""Audit log writer.

Audit entries are a side effect: a failed write is logged and rolled back,
never surfaced to the caller.
"""
from flask import current_app

from ibarangay import db
from ibarangay.models.audit import AuditLog
from ibarangay.utils.security import get_client_ip


def log_action(user_id, action: str, resource: str, status: str = 'success', ip_address: str = None) -> bool:
    """Persist one audit entry. Returns False if it could not be written."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource=resource,
        status=status,
        ip_address=ip_address or get_client_ip(),
    )
    try:
        db.session.add(entry)
        db.session.commit()
        current_app.logger.info(f"Audit: {action} by user {user_id} ({status}): {resource}")
        return True
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to create audit log for {action}: {e}")
        return False
