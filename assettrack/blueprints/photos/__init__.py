"""
Photos blueprint: image uploads and file serving.
"""

from flask import Blueprint

bp = Blueprint("photos", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.photos import routes  # noqa: E402, F401
