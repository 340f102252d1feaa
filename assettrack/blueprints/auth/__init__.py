"""
Auth blueprint: login, registration, profile and password changes.
"""

from flask import Blueprint

bp = Blueprint("auth", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.auth import routes  # noqa: E402, F401
