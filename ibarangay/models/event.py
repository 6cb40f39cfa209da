"""iBarangay - Event Model
Community events with attendee registration.
"""
from sqlalchemy import Index
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


EVENT_STATUSES = ('upcoming', 'ongoing', 'completed', 'cancelled')


event_registrations = db.Table(
    'event_registrations',
    db.Column('event_id', db.Integer, db.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True),
    db.Column('user_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('registered_at', db.DateTime, default=utc_now, nullable=False),
)


class Event(db.Model):
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    event_date = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(255), nullable=False)
    organizer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    max_attendees = db.Column(db.Integer, nullable=True)
    category = db.Column(db.String(50), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='upcoming')
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    organizer = db.relationship('User', foreign_keys=[organizer_id])
    attendees = db.relationship(
        'User',
        secondary=event_registrations,
        lazy='select',
        backref='registered_events',
    )

    __table_args__ = (
        Index('idx_event_date', 'event_date'),
        Index('idx_event_status', 'status'),
    )

    def __repr__(self):
        return f'<Event {self.title}>'

    @validates('status')
    def _validate_status(self, key, value):
        if value not in EVENT_STATUSES:
            raise ValueError(f"Invalid event status '{value}'")
        return value

    @property
    def attendee_count(self) -> int:
        return len(self.attendees)

    @property
    def is_full(self) -> bool:
        return self.max_attendees is not None and self.attendee_count >= self.max_attendees

    def is_registered(self, user_id) -> bool:
        return any(user.id == user_id for user in self.attendees)

    def to_dict(self, viewer_id=None):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'event_date': isoformat(self.event_date),
            'location': self.location,
            'organizer_id': self.organizer_id,
            'organizer': {
                'first_name': self.organizer.first_name,
                'last_name': self.organizer.last_name,
            } if self.organizer else None,
            'max_attendees': self.max_attendees,
            'attendee_count': self.attendee_count,
            'category': self.category,
            'image_url': self.image_url,
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }
        if viewer_id is not None:
            data['is_registered'] = self.is_registered(viewer_id)
        return data
