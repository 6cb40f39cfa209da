"""iBarangay - Announcement Model
Barangay-wide announcements; pinned items sort first.
"""
from sqlalchemy import Index
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


ANNOUNCEMENT_CATEGORIES = ('general', 'emergency', 'event', 'maintenance', 'policy')
ANNOUNCEMENT_PRIORITIES = ('low', 'medium', 'high', 'urgent')


class Announcement(db.Model):
    """Announcement posted by staff to all residents."""

    __tablename__ = 'announcements'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), nullable=False, default='general')
    priority = db.Column(db.String(10), nullable=False, default='medium')
    author_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    is_published = db.Column(db.Boolean, nullable=False, default=True)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    published_at = db.Column(db.DateTime, nullable=True)
    views = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    author = db.relationship('User', foreign_keys=[author_id])

    __table_args__ = (
        Index('idx_announcement_published', 'is_published'),
        Index('idx_announcement_pinned', 'is_pinned'),
        Index('idx_announcement_created', 'created_at'),
    )

    def __repr__(self):
        return f'<Announcement {self.title}>'

    @validates('category')
    def _validate_category(self, key, value):
        if value not in ANNOUNCEMENT_CATEGORIES:
            raise ValueError(f"Invalid category '{value}'")
        return value

    @validates('priority')
    def _validate_priority(self, key, value):
        if value not in ANNOUNCEMENT_PRIORITIES:
            raise ValueError(f"Invalid priority '{value}'")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'category': self.category,
            'priority': self.priority,
            'author_id': self.author_id,
            'author': {
                'first_name': self.author.first_name,
                'last_name': self.author.last_name,
            } if self.author else None,
            'image_url': self.image_url,
            'is_published': bool(self.is_published),
            'is_pinned': bool(self.is_pinned),
            'published_at': isoformat(self.published_at),
            'views': self.views or 0,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
