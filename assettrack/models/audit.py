"""
Audit log model.

``AuditLog`` is append-only: the application inserts rows and never
updates or deletes them.

``action`` values: CREATE, UPDATE, DELETE, SCAN, LOGIN, PASSWORD_CHANGE.

JSON conventions for ``previous_values`` / ``new_values``:
  - CREATE: previous_values is NULL, new_values has the full record.
  - UPDATE: previous_values has the record before, new_values after.
  - DELETE: previous_values has the full record, new_values is NULL.
"""

from assettrack.extensions import db
from assettrack.models.base import iso, utcnow


class AuditLog(db.Model):
    """One recorded state change."""

    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    action = db.Column(db.String(50), nullable=False, index=True)
    entity_type = db.Column(db.String(100), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=True, index=True)
    # No foreign key: audit rows must outlive the users they mention.
    user_id = db.Column(db.Integer, nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    previous_values = db.Column(db.JSON, nullable=True)
    new_values = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    timestamp = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "userId": self.user_id,
            "description": self.description,
            "previousValues": self.previous_values,
            "newValues": self.new_values,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "timestamp": iso(self.timestamp),
        }

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
