"""iBarangay - Service Request Model
Equipment borrowing and facility reservations.
"""
from sqlalchemy import Index
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.models.trackable import TrackableMixin, history_entry
from ibarangay.utils.time import utc_now, isoformat


SERVICE_STATUSES = ('pending', 'approved', 'borrowed', 'returned', 'rejected')
SERVICE_REQUEST_TYPES = ('Equipment', 'Facility')
# Statuses where the item is out with the resident
ACTIVE_SERVICE_STATUSES = ('approved', 'borrowed')


class ServiceRequest(TrackableMixin, db.Model):
    __tablename__ = 'service_requests'

    STATUSES = SERVICE_STATUSES

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    request_type = db.Column(db.String(20), nullable=False, default='Equipment')
    item_name = db.Column(db.String(200), nullable=False)
    item_type = db.Column(db.String(100), nullable=False)
    borrow_date = db.Column(db.DateTime, nullable=False)
    expected_return_date = db.Column(db.DateTime, nullable=False)
    time_slot = db.Column(db.String(50), nullable=True)
    number_of_people = db.Column(db.Integer, nullable=True)
    purpose = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='pending')
    rejection_reason = db.Column(db.Text, nullable=True)
    approval_note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    user = db.relationship('User', backref=db.backref('service_requests', cascade='all, delete-orphan'))

    __table_args__ = (
        Index('idx_service_user', 'user_id'),
        Index('idx_service_status', 'status'),
        Index('idx_service_return', 'status', 'expected_return_date'),
        Index('idx_service_created', 'created_at'),
    )

    def __repr__(self):
        return f'<ServiceRequest {self.id} {self.status}>'

    @validates('status')
    def _validate_status(self, key, value):
        return self._check_status(value)

    @validates('request_type')
    def _validate_request_type(self, key, value):
        if value not in SERVICE_REQUEST_TYPES:
            raise ValueError(f"Invalid request type '{value}'")
        return value

    @classmethod
    def submit(cls, user_id, item_name, item_type, borrow_date, expected_return_date,
               purpose, request_type='Equipment', time_slot=None, number_of_people=None,
               notes=None, now=None):
        """Build a new pending request with its initial history entry."""
        now = now or utc_now()
        return cls(
            user_id=user_id,
            request_type=request_type or 'Equipment',
            item_name=item_name,
            item_type=item_type,
            borrow_date=borrow_date,
            expected_return_date=expected_return_date,
            time_slot=time_slot,
            number_of_people=number_of_people,
            purpose=purpose,
            notes=notes,
            status='pending',
            status_history=[history_entry('Request Submitted', 'System', now)],
            created_at=now,
            updated_at=now,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user': self.user.to_dict() if self.user else None,
            'request_type': self.request_type,
            'item_name': self.item_name,
            'item_type': self.item_type,
            'borrow_date': isoformat(self.borrow_date),
            'expected_return_date': isoformat(self.expected_return_date),
            'time_slot': self.time_slot,
            'number_of_people': self.number_of_people,
            'purpose': self.purpose,
            'notes': self.notes,
            'status': self.status,
            'rejection_reason': self.rejection_reason,
            'approval_note': self.approval_note,
            'status_history': self.status_history or [],
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
