"""API Routes - Import all blueprints here."""

from .auth import auth_bp
from .complaints import complaints_bp
from .services import services_bp
from .notifications import notifications_bp
from .events import events_bp
from .announcements import announcements_bp
from .news import news_bp
from .content import content_bp
from .public import public_bp
from .admin import admin_bp
from .stats import stats_bp

__all__ = [
    'auth_bp',
    'complaints_bp',
    'services_bp',
    'notifications_bp',
    'events_bp',
    'announcements_bp',
    'news_bp',
    'content_bp',
    'public_bp',
    'admin_bp',
    'stats_bp',
]
