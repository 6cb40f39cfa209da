"""Audit log model.

Records who did what from where. ``resource`` is a flat human-readable
description (e.g. "Complaint 12: pending -> resolved").
"""
from sqlalchemy import Index

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


class AuditAction:
    """Action names written to the audit log."""
    USER_REGISTER = 'USER_REGISTER'
    USER_LOGIN = 'USER_LOGIN'
    USER_PROFILE_UPDATE = 'USER_PROFILE_UPDATE'
    CREATE_COMPLAINT = 'CREATE_COMPLAINT'
    UPDATE_COMPLAINT_STATUS = 'UPDATE_COMPLAINT_STATUS'
    BULK_UPDATE_COMPLAINT_STATUS = 'BULK_UPDATE_COMPLAINT_STATUS'
    CREATE_SERVICE_REQUEST = 'CREATE_SERVICE_REQUEST'
    UPDATE_SERVICE_STATUS = 'UPDATE_SERVICE_STATUS'
    BULK_UPDATE_SERVICE_STATUS = 'BULK_UPDATE_SERVICE_STATUS'
    CREATE_EVENT = 'CREATE_EVENT'
    DELETE_EVENT = 'DELETE_EVENT'
    CREATE_ANNOUNCEMENT = 'CREATE_ANNOUNCEMENT'
    DELETE_ANNOUNCEMENT = 'DELETE_ANNOUNCEMENT'
    CREATE_NEWS = 'CREATE_NEWS'
    DELETE_NEWS = 'DELETE_NEWS'
    DELETE_USER = 'DELETE_USER'
    UPDATE_SETTINGS = 'UPDATE_SETTINGS'


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    # Nullable so failed logins for unknown emails and deleted users still keep their rows
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    action = db.Column(db.String(50), nullable=False)
    resource = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(10), nullable=False, default='success')  # success | failure
    ip_address = db.Column(db.String(45), nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    user = db.relationship('User', backref='audit_logs')

    __table_args__ = (
        Index('idx_audit_created_at', 'created_at'),
        Index('idx_audit_user', 'user_id'),
        Index('idx_audit_action', 'action'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user': {
                'first_name': self.user.first_name,
                'last_name': self.user.last_name,
                'email': self.user.email,
            } if self.user else None,
            'action': self.action,
            'resource': self.resource,
            'status': self.status,
            'ip_address': self.ip_address,
            'created_at': isoformat(self.created_at),
        }
