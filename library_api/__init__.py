# library_api/__init__.py
import oracledb
from flask import Flask, request
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from .circuit_breaker import get_breaker_status
from .config import AppConfig
from .logger import api_logger, setup_logging


def create_app(config=None, test_config=None):
    """Create and configure an instance of the Flask application.

    ``config`` is the process configuration (read from the environment when
    omitted). ``test_config`` overrides Flask settings; a ``DB_POOL`` entry
    replaces the Oracle pool.
    """
    config = config or AppConfig.from_env()
    setup_logging(level=config.log_level)

    app = Flask(__name__)
    app.config.from_mapping(LIBRARY_CONFIG=config)
    if test_config:
        app.config.from_mapping(test_config)

    # --- Prometheus Metrics ---
    from .metrics import REGISTRY, record_request_start, record_request_end

    @app.before_request
    def before_request():
        """Record metrics before request processing."""
        record_request_start(request.endpoint or 'unknown')

    @app.after_request
    def after_request(response):
        """Record metrics after request processing."""
        record_request_end(response)
        return response

    @app.route('/metrics')
    def metrics():
        """Prometheus metrics endpoint."""
        return generate_latest(REGISTRY), 200, {'Content-Type': CONTENT_TYPE_LATEST}

    # --- Errors ---
    from .errors import register_error_handlers, StoreError
    register_error_handlers(app)

    # --- Database ---
    from . import db
    db.init_app(app)

    # --- Blueprints ---
    from . import books, users, library
    app.register_blueprint(books.bp, url_prefix='/books')
    app.register_blueprint(users.bp, url_prefix='/users')
    app.register_blueprint(library.bp)

    @app.route('/health')
    def health_check():
        """Pings the store through a pooled connection."""
        conn = db.get_db()
        try:
            conn.ping()
        except oracledb.Error as e:
            raise StoreError("Database ping failed") from e
        breaker = app.extensions['library_db']['breaker']
        api_logger.info("Health check called")
        return {"status": "ok", "database": get_breaker_status(breaker)}, 200

    return app
