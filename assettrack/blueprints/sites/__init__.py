"""
Sites blueprint: physical sites.
"""

from flask import Blueprint

bp = Blueprint("sites", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.sites import routes  # noqa: E402, F401
