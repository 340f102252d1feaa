"""
Audit logs blueprint: read-only access to the audit trail.
"""

from flask import Blueprint

bp = Blueprint("audit_logs", __name__)

# Import routes after blueprint creation to avoid circular imports.
from assettrack.blueprints.audit_logs import routes  # noqa: E402, F401
