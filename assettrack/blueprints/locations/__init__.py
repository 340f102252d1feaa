"""
Locations blueprint: the location tree inside each site.
"""

from flask import Blueprint

bp = Blueprint("locations", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.locations import routes  # noqa: E402, F401
