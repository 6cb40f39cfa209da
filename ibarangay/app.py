"""
iBarangay - Flask API Application
Application factory
"""
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file at project root
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
env_path = PROJECT_ROOT / '.env'
if env_path.exists():
    load_dotenv(env_path)

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded

from ibarangay.config import Config
from ibarangay import db, migrate, jwt, limiter, __version__
from ibarangay.utils.cache import init_response_cache
from ibarangay.utils.security import APIError, apply_security_headers
from ibarangay.utils.validators import ValidationError, validation_error_response


def _register_jwt_handlers():
    """Return 401 JSON for every token problem (the library default for a bad token is 422)."""

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'error': 'Authorization required', 'code': 'NO_AUTH'}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'error': 'Invalid token', 'code': 'INVALID_TOKEN'}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'error': 'Token has expired', 'code': 'TOKEN_EXPIRED'}), 401


def create_app(config_class=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)
    config_class.init_app(app)

    db_url = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_url.startswith('postgresql'):
        app.logger.info("Database: PostgreSQL")
    elif db_url.startswith('sqlite'):
        app.logger.info("Database: SQLite (local)")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_handlers()

    # Flask-Limiter honors RATELIMIT_ENABLED itself
    limiter.init_app(app)
    if not app.config.get('RATELIMIT_ENABLED', True):
        app.logger.warning("Rate limiting is DISABLED - not recommended for production")

    init_response_cache(app)

    app.after_request(apply_security_headers)

    CORS(app,
         origins=[app.config['CLIENT_URL']],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"],
         supports_credentials=True)

    # Register blueprints
    from ibarangay.routes import (
        auth_bp,
        complaints_bp,
        services_bp,
        notifications_bp,
        events_bp,
        announcements_bp,
        news_bp,
        content_bp,
        public_bp,
        admin_bp,
        stats_bp,
    )

    app.register_blueprint(auth_bp)
    app.register_blueprint(complaints_bp)
    app.register_blueprint(services_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(announcements_bp)
    app.register_blueprint(news_bp)
    app.register_blueprint(content_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(stats_bp)

    @app.route('/health', methods=['GET'])
    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring"""
        return jsonify({
            'status': 'ok',
            'service': f"{app.config.get('APP_NAME', 'iBarangay')} API",
            'version': __version__,
        }), 200

    # Error handlers
    @app.errorhandler(ValidationError)
    def validation_failed(error):
        return validation_error_response(error)

    @app.errorhandler(APIError)
    def api_error(error):
        return error.to_response()

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'error': 'Request body too large'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({'error': 'Unauthorized'}), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'error': 'Forbidden'}), 403

    @app.errorhandler(RateLimitExceeded)
    def ratelimit_handler(error):
        payload = {'error': 'Too many requests, please try again later', 'code': 'RATE_LIMITED'}
        if error.description:
            payload['details'] = str(error.description)
        return jsonify(payload), 429

    return app
