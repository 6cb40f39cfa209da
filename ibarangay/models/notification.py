"""In-app notification model."""
from sqlalchemy import Index
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


NOTIFICATION_TYPES = ('info', 'warning', 'success', 'error')


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(10), nullable=False, default='info')
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    related_type = db.Column(db.String(20), nullable=True)  # complaint | service | event
    related_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    user = db.relationship('User', backref=db.backref('notifications', cascade='all, delete-orphan'))

    __table_args__ = (
        Index('idx_notification_user_read', 'user_id', 'is_read'),
        Index('idx_notification_created', 'created_at'),
    )

    @validates('type')
    def _validate_type(self, key, value):
        if value not in NOTIFICATION_TYPES:
            raise ValueError(f"Invalid notification type '{value}'")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'is_read': bool(self.is_read),
            'related_type': self.related_type,
            'related_id': self.related_id,
            'created_at': isoformat(self.created_at),
        }
