"""
Application configuration classes.

Each class represents a deployment environment. The factory function
``create_app`` in ``assettrack/__init__.py`` selects the appropriate
config based on the FLASK_ENV environment variable.

Secrets (``SECRET_KEY``, ``JWT_SECRET``) and the database connection
string are read from environment variables so they never appear in
source control.
"""

import logging
import os

# Module-level logger for startup warnings emitted by config classes.
_logger = logging.getLogger(__name__)

# Sentinels for detecting unset secrets in production.
_DEFAULT_SECRET_KEY = "dev-secret-change-me"
_DEFAULT_JWT_SECRET = "dev-jwt-secret-change-me"

_BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


class BaseConfig:
    """Shared configuration values inherited by all environments."""

    # -- Flask core --------------------------------------------------------
    SECRET_KEY: str = os.environ.get("SECRET_KEY", _DEFAULT_SECRET_KEY)
    JSON_SORT_KEYS: bool = False

    # -- SQLAlchemy --------------------------------------------------------
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{os.path.join(_BASE_DIR, 'assettrack-dev.db')}",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ECHO: bool = False

    # -- Bearer tokens -----------------------------------------------------
    JWT_SECRET: str = os.environ.get("JWT_SECRET", _DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES: int = int(os.environ.get("JWT_EXPIRES_MINUTES", "1440"))

    # Role given to self-registered accounts.
    DEFAULT_ROLE: str = os.environ.get("DEFAULT_ROLE", "Field Agent")

    # -- Photo uploads -----------------------------------------------------
    UPLOAD_FOLDER: str = os.environ.get(
        "UPLOAD_FOLDER", os.path.join(_BASE_DIR, "uploads")
    )
    MAX_PHOTO_SIZE: int = int(os.environ.get("MAX_PHOTO_SIZE", str(5 * 1024 * 1024)))

    # Werkzeug rejects request bodies above this size with a 413. A small
    # allowance covers the multipart envelope around the photo itself.
    MAX_CONTENT_LENGTH: int = MAX_PHOTO_SIZE + 64 * 1024

    ALLOWED_PHOTO_TYPES: tuple[str, ...] = (
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    )

    # Store each asset's photos under ``<UPLOAD_FOLDER>/<asset id>/``.
    PHOTO_SUBDIR_PER_ASSET: bool = (
        os.environ.get("PHOTO_SUBDIR_PER_ASSET", "true").lower() == "true"
    )

    # -- Pagination --------------------------------------------------------
    DEFAULT_PAGE_SIZE: int = int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
    AUDIT_PAGE_SIZE: int = int(os.environ.get("AUDIT_PAGE_SIZE", "20"))
    MAX_PAGE_SIZE: int = int(os.environ.get("MAX_PAGE_SIZE", "100"))

    # -- Audit trail -------------------------------------------------------
    # When True, audit rows are written by a background thread pool after
    # the response is produced. Tests switch this off to assert on rows.
    AUDIT_ASYNC: bool = os.environ.get("AUDIT_ASYNC", "true").lower() == "true"
    AUDIT_MAX_WORKERS: int = int(os.environ.get("AUDIT_MAX_WORKERS", "2"))

    # -- Logging -----------------------------------------------------------
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @classmethod
    def validate_production_secrets(cls, app_config: dict) -> None:
        """
        Verify that all required secrets are set for production.

        Called by ``create_app()`` when ``config_name == 'production'``.

        Raises:
            RuntimeError: If a secret is still set to its insecure default.
        """
        errors: list[str] = []

        if app_config.get("SECRET_KEY") == _DEFAULT_SECRET_KEY:
            errors.append("SECRET_KEY is still the insecure default.")
        if app_config.get("JWT_SECRET") == _DEFAULT_JWT_SECRET:
            errors.append(
                "JWT_SECRET is still the insecure default. Issued tokens "
                "could be forged by anyone who has read the source."
            )

        if errors:
            combined = "\n  - ".join(errors)
            raise RuntimeError(f"Production configuration errors:\n  - {combined}")

        if app_config.get("LOG_LEVEL", "").upper() == "DEBUG":
            _logger.warning(
                "LOG_LEVEL=DEBUG is not recommended in production; "
                "SQL statements and request data may appear in logs."
            )


class DevelopmentConfig(BaseConfig):
    """Development environment: verbose logging, SQL echo enabled."""

    DEBUG: bool = True
    SQLALCHEMY_ECHO: bool = True
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """
    Testing environment: in-memory SQLite and synchronous audit writes.

    The upload folder is overridden per test with a temporary directory.
    """

    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL", "sqlite:///:memory:"
    )
    AUDIT_ASYNC: bool = False
    JWT_EXPIRES_MINUTES: int = 30
    LOG_LEVEL: str = "DEBUG"


class ProductionConfig(BaseConfig):
    """
    Production environment: strict settings, no debug output.

    The application factory calls ``validate_production_secrets()`` at
    startup and refuses to launch with default secrets.
    """

    DEBUG: bool = False
    SQLALCHEMY_ECHO: bool = False
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "WARNING")


# Lookup dict used by the application factory.
config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
