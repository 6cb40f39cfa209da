"""Shared status + history columns for complaints and service requests.

Every status change goes through ``set_status`` so the status write and its
history entry land in the same flush.
"""
from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


def history_entry(action: str, by: str, timestamp=None, note: str = None) -> dict:
    entry = {
        'action': action,
        'by': by,
        'timestamp': isoformat(timestamp or utc_now()),
    }
    if note:
        entry['note'] = note
    return entry


class TrackableMixin:
    """Columns and helpers shared by owner-filed, staff-triaged requests."""

    STATUSES = ()

    status_history = db.Column(db.JSON, nullable=False, default=list)

    def append_history(self, action: str, by: str, timestamp=None, note: str = None):
        # JSON columns only detect reassignment, not in-place append
        self.status_history = list(self.status_history or []) + [
            history_entry(action, by, timestamp, note)
        ]

    def set_status(self, status: str, actor_name: str, note: str = None, now=None) -> str:
        """Set the status and record it in the history. Returns the old status."""
        old_status = self.status
        now = now or utc_now()
        self.status = status
        self.append_history(f"Status updated to {status}", actor_name, now, note)
        self.updated_at = now
        return old_status

    def _check_status(self, value):
        if value not in self.STATUSES:
            raise ValueError(f"Invalid status '{value}' for {type(self).__name__}")
        return value
