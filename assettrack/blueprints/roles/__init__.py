"""
Roles blueprint: role and permission-map administration.
"""

from flask import Blueprint

bp = Blueprint("roles", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.roles import routes  # noqa: E402, F401
