"""
Model package: imports all models so Alembic and SQLAlchemy can
discover them automatically when ``flask db`` commands are run.
"""

from assettrack.models.user import Role, User  # noqa: F401
from assettrack.models.site import Location, Site  # noqa: F401
from assettrack.models.asset import Asset  # noqa: F401
from assettrack.models.movement import Movement  # noqa: F401
from assettrack.models.discrepancy import Discrepancy  # noqa: F401
from assettrack.models.photo import Photo  # noqa: F401
from assettrack.models.audit import AuditLog  # noqa: F401
