"""
Movements blueprint: movement requests and their lifecycle.
"""

from flask import Blueprint

bp = Blueprint("movements", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.movements import routes  # noqa: E402, F401
