"""
Discrepancies blueprint: findings, resolution and reconciliation.
"""

from flask import Blueprint

bp = Blueprint("discrepancies", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.discrepancies import routes  # noqa: E402, F401
