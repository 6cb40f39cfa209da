"""iBarangay - Complaint Model
Resident-filed complaints with status history and threaded comments.
"""
from sqlalchemy import Index
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.models.trackable import TrackableMixin, history_entry
from ibarangay.utils.time import utc_now, isoformat


COMPLAINT_STATUSES = ('pending', 'in-progress', 'resolved', 'closed')
COMPLAINT_PRIORITIES = ('low', 'medium', 'high', 'urgent')
COMPLAINT_CATEGORIES = (
    'Infrastructure', 'Sanitation', 'Security', 'Noise',
    'Lighting', 'Drainage', 'Road', 'Other',
)


class Complaint(TrackableMixin, db.Model):
    __tablename__ = 'complaints'

    STATUSES = COMPLAINT_STATUSES

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(30), nullable=False)
    priority = db.Column(db.String(10), nullable=False, default='medium')
    status = db.Column(db.String(20), nullable=False, default='pending')
    location = db.Column(db.String(255), nullable=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)
    comments = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    user = db.relationship('User', backref=db.backref('complaints', cascade='all, delete-orphan'))

    __table_args__ = (
        Index('idx_complaint_user', 'user_id'),
        Index('idx_complaint_status', 'status'),
        Index('idx_complaint_created', 'created_at'),
    )

    def __repr__(self):
        return f'<Complaint {self.id} {self.status}>'

    @validates('status')
    def _validate_status(self, key, value):
        return self._check_status(value)

    @validates('priority')
    def _validate_priority(self, key, value):
        if value not in COMPLAINT_PRIORITIES:
            raise ValueError(f"Invalid priority '{value}'")
        return value

    @validates('category')
    def _validate_category(self, key, value):
        if value not in COMPLAINT_CATEGORIES:
            raise ValueError(f"Invalid category '{value}'")
        return value

    @classmethod
    def file(cls, user_id, title, description, category, priority='medium',
             location=None, attachments=None, now=None):
        """Build a new pending complaint with its initial history entry."""
        now = now or utc_now()
        return cls(
            user_id=user_id,
            title=title,
            description=description,
            category=category,
            priority=priority or 'medium',
            status='pending',
            location=location,
            attachments=list(attachments or []),
            comments=[],
            status_history=[history_entry('Complaint Filed', 'System', now)],
            created_at=now,
            updated_at=now,
        )

    def add_comment(self, user, message: str, now=None) -> dict:
        comment = {
            'user_id': user.id,
            'user_name': user.full_name,
            'user_role': user.role,
            'message': message,
            'timestamp': isoformat(now or utc_now()),
        }
        self.comments = list(self.comments or []) + [comment]
        return comment

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user': self.user.to_dict() if self.user else None,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'priority': self.priority,
            'status': self.status,
            'location': self.location,
            'attachments': self.attachments or [],
            'comments': self.comments or [],
            'status_history': self.status_history or [],
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
