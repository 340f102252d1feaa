"""
Application factory for the AssetTrack API.

Usage::

    from assettrack import create_app
    app = create_app()           # Uses FLASK_ENV to pick config.
    app = create_app("testing")  # Explicit config for tests.
"""

import logging
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import config_by_name
from .errors import ServiceError
from .extensions import db, login_manager, migrate

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: One of 'development', 'testing', or 'production'.
                     Defaults to the FLASK_ENV environment variable,
                     falling back to 'development'.

    Returns:
        A fully configured Flask application instance.
    """
    # Resolve the configuration class.
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")
    config_class = config_by_name.get(config_name)
    if config_class is None:
        raise ValueError(
            f"Unknown config '{config_name}'. "
            f"Valid options: {list(config_by_name.keys())}"
        )

    app = Flask(__name__)
    app.config.from_object(config_class)
    app.url_map.strict_slashes = False

    if config_name == "production":
        config_class.validate_production_secrets(app.config)

    # -- Configure logging -------------------------------------------------
    _configure_logging(app)

    # -- Initialize extensions ---------------------------------------------
    _register_extensions(app)

    # -- Register blueprints -----------------------------------------------
    _register_blueprints(app)

    # -- Register error handlers -------------------------------------------
    _register_error_handlers(app)

    # -- Register custom CLI commands --------------------------------------
    _register_cli_commands(app)

    return app


def _register_extensions(app: Flask) -> None:
    """Bind all Flask extensions to the application instance."""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Imported here to avoid circular imports with models.
    from .services import auth_service  # pylint: disable=import-outside-toplevel

    @login_manager.request_loader
    def load_user_from_request(req):
        """
        Resolve ``Authorization: Bearer <token>`` to a user.

        Returns None when no bearer token is present. Invalid, expired
        or inactive-account tokens raise, and the ``ServiceError``
        handler turns that into a 401/403 response.
        """
        token = auth_service.token_from_header(req.headers.get("Authorization"))
        if token is None:
            return None
        return auth_service.resolve_token(token)


def _register_blueprints(app: Flask) -> None:
    """
    Import and register each blueprint with its URL prefix.

    Blueprints are imported inside this function to avoid circular
    imports; models and services can safely import ``db`` from
    extensions at module level.
    """
    # pylint: disable=import-outside-toplevel

    # Main blueprint: health check.
    from .blueprints.main import bp as main_bp

    app.register_blueprint(main_bp, url_prefix="/api")

    # Authentication: login, registration, profile.
    from .blueprints.auth import bp as auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    # Users and roles: account administration.
    from .blueprints.users import bp as users_bp
    from .blueprints.roles import bp as roles_bp

    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(roles_bp, url_prefix="/api/roles")

    # Placement: sites and the location tree.
    from .blueprints.sites import bp as sites_bp
    from .blueprints.locations import bp as locations_bp

    app.register_blueprint(sites_bp, url_prefix="/api/sites")
    app.register_blueprint(locations_bp, url_prefix="/api/locations")

    # Assets, movements, discrepancies and photos.
    from .blueprints.assets import bp as assets_bp
    from .blueprints.movements import bp as movements_bp
    from .blueprints.discrepancies import bp as discrepancies_bp
    from .blueprints.photos import bp as photos_bp

    app.register_blueprint(assets_bp, url_prefix="/api/assets")
    app.register_blueprint(movements_bp, url_prefix="/api/movements")
    app.register_blueprint(discrepancies_bp, url_prefix="/api/discrepancies")
    app.register_blueprint(photos_bp, url_prefix="/api/photos")

    # Audit trail and report exports.
    from .blueprints.audit_logs import bp as audit_logs_bp
    from .blueprints.reports import bp as reports_bp

    app.register_blueprint(audit_logs_bp, url_prefix="/api/audit-logs")
    app.register_blueprint(reports_bp, url_prefix="/api/reports")


def _register_error_handlers(app: Flask) -> None:
    """Render every error as ``{"message": ..., "error"?: ...}`` JSON."""

    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        """Domain errors raised by the service layer."""
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        """Werkzeug errors: unmatched routes, bad methods, oversized bodies."""
        if error.code == 404:
            message = "Route not found"
        elif error.code == 413:
            message = "File too large"
        else:
            message = error.description or error.name
        return jsonify({"message": message}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        """Anything unexpected: roll back and hide details outside debug."""
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        body = {"message": "Internal server error"}
        if app.debug:
            body["error"] = str(error)
        return jsonify(body), 500


def _register_cli_commands(app: Flask) -> None:
    """Register custom Flask CLI commands (e.g., flask seed-defaults)."""
    from .cli import register_commands  # pylint: disable=import-outside-toplevel

    register_commands(app)


def _configure_logging(app: Flask) -> None:
    """Set the root log level from ``LOG_LEVEL``."""
    log_level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    # Quiet down noisy libraries in development.
    if app.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
