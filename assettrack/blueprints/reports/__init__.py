"""
Reports blueprint: CSV and Excel exports.
"""

from flask import Blueprint

bp = Blueprint("reports", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.reports import routes  # noqa: E402, F401
