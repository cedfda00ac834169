"""
Mechanix backend: on-demand mechanic marketplace API.
"""
import logging
import os

from flask import Flask
from flask_cors import CORS

from .errors import register_error_handlers
from .extensions import db, limiter
from .logging_config import configure_logging
from .middleware import RequestIdMiddleware

logger = logging.getLogger(__name__)


def _init_sentry(app):
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        if not app.config.get('DEBUG') and not app.config.get('TESTING'):
            logger.warning('SENTRY_DSN is not set -- error monitoring is disabled.')
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def _register_security_headers(app):

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Content-Security-Policy'] = "default-src 'none'"
        if not app.config.get('DEBUG') and not app.config.get('TESTING'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response


def create_app(config_name=None, services=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from config import config
    app.config.from_object(config[config_name])

    configure_logging(app)
    _init_sentry(app)

    # Initialize extensions
    db.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)
    limiter.init_app(app)
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    from .services import build_services
    app.extensions['mechanix'] = services or build_services(app.config)

    register_error_handlers(app)
    _register_security_headers(app)

    # Register blueprints
    from .routes.customers import customers_bp
    from .routes.mechanics import mechanics_bp
    from .routes.service_requests import service_requests_bp
    from .routes.wallet import wallet_bp

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(mechanics_bp, url_prefix=f'{api_prefix}/mechanics')
    app.register_blueprint(service_requests_bp, url_prefix=f'{api_prefix}/service-requests')
    app.register_blueprint(wallet_bp, url_prefix=f'{api_prefix}/mechanic/wallet')
    app.register_blueprint(customers_bp, url_prefix=f'{api_prefix}/customers')

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'mechanix-backend'}, 200

    with app.app_context():
        from . import models  # noqa: F401
        db.create_all()

    logger.info('Mechanix backend started (%s)', config_name)
    return app
