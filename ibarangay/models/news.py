"""News item model."""
from sqlalchemy import Index

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


class NewsItem(db.Model):
    __tablename__ = 'news_items'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    summary = db.Column(db.String(500), nullable=False)
    content = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    published_date = db.Column(db.DateTime, default=utc_now, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    author = db.relationship('User', foreign_keys=[author_id])

    __table_args__ = (
        Index('idx_news_published', 'published_date'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'summary': self.summary,
            'content': self.content,
            'image_url': self.image_url,
            'author_id': self.author_id,
            'author': self.author.full_name if self.author else None,
            'published_date': isoformat(self.published_date),
            'created_at': isoformat(self.created_at),
        }
