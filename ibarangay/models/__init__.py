"""
iBarangay - Database Models
Import all models here for Flask-Migrate to detect them
"""
from ibarangay import db

from .user import User
from .complaint import Complaint
from .service_request import ServiceRequest
from .notification import Notification
from .audit import AuditLog
from .event import Event, event_registrations
from .announcement import Announcement
from .news import NewsItem
from .content import Hotline, Official, FAQ, SiteSettings

__all__ = [
    'db',
    'User',
    'Complaint',
    'ServiceRequest',
    'Notification',
    'AuditLog',
    'Event',
    'event_registrations',
    'Announcement',
    'NewsItem',
    'Hotline',
    'Official',
    'FAQ',
    'SiteSettings',
]
