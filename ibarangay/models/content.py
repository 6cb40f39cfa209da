"""iBarangay - Site Content Models
Hotlines, officials, FAQs and the singleton site settings.
"""
from sqlalchemy.orm import validates

from ibarangay import db
from ibarangay.utils.time import utc_now, isoformat


HOTLINE_CATEGORIES = ('emergency', 'health', 'security', 'utility', 'official')

DEFAULT_SETTINGS = {
    'barangay_name': 'Barangay San Isidro',
    'logo_url': 'https://cdn-icons-png.flaticon.com/512/921/921356.png',
    'contact_email': 'help@ibarangay.com',
    'contact_phone': '(02) 8123-4567',
    'address': '123 Rizal St, Barangay San Isidro, Quezon City',
    'facebook_url': 'https://facebook.com',
    'twitter_url': 'https://twitter.com',
}


class Hotline(db.Model):
    __tablename__ = 'hotlines'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    number = db.Column(db.String(50), nullable=False)
    category = db.Column(db.String(20), nullable=False, default='emergency')
    description = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    @validates('category')
    def _validate_category(self, key, value):
        if value not in HOTLINE_CATEGORIES:
            raise ValueError(f"Invalid hotline category '{value}'")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'number': self.number,
            'category': self.category,
            'description': self.description,
        }


class Official(db.Model):
    __tablename__ = 'officials'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    position = db.Column(db.String(100), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    contact = db.Column(db.String(100), nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'position': self.position,
            'image_url': self.image_url,
            'contact': self.contact,
            'display_order': self.display_order,
        }


class FAQ(db.Model):
    __tablename__ = 'faqs'

    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.String(500), nullable=False)
    answer = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'answer': self.answer,
            'category': self.category,
        }


class SiteSettings(db.Model):
    """Single-row site configuration editable by admins."""

    __tablename__ = 'site_settings'

    id = db.Column(db.Integer, primary_key=True)
    barangay_name = db.Column(db.String(100), nullable=False, default=DEFAULT_SETTINGS['barangay_name'])
    logo_url = db.Column(db.String(500), nullable=False, default=DEFAULT_SETTINGS['logo_url'])
    contact_email = db.Column(db.String(255), nullable=False, default=DEFAULT_SETTINGS['contact_email'])
    contact_phone = db.Column(db.String(50), nullable=False, default=DEFAULT_SETTINGS['contact_phone'])
    address = db.Column(db.String(255), nullable=False, default=DEFAULT_SETTINGS['address'])
    facebook_url = db.Column(db.String(500), nullable=True)
    twitter_url = db.Column(db.String(500), nullable=True)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    EDITABLE_FIELDS = tuple(DEFAULT_SETTINGS.keys())

    @classmethod
    def get_or_create(cls):
        """Return the settings row, creating it with defaults on first access."""
        settings = cls.query.first()
        if settings is None:
            settings = cls(**DEFAULT_SETTINGS)
            db.session.add(settings)
            db.session.commit()
        return settings

    def to_dict(self):
        data = {field: getattr(self, field) for field in self.EDITABLE_FIELDS}
        data['updated_at'] = isoformat(self.updated_at)
        return data
