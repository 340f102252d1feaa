"""
Discrepancy model: a recorded difference between an expected and an
observed value on an asset or a movement.

Every discrepancy has exactly one owner. The CHECK constraint below
enforces that at the database level; ``discrepancy_service`` rejects
bad input before it gets that far.
"""

from assettrack.extensions import db
from assettrack.models.base import TimestampMixin, iso, utcnow

DISCREPANCY_TYPES = ("Location", "Custodian", "Condition", "Missing", "Duplicate", "Other")

OPEN = "Open"
IN_PROGRESS = "In Progress"
RESOLVED = "Resolved"
CLOSED = "Closed"
DISCREPANCY_STATUSES = (OPEN, IN_PROGRESS, RESOLVED, CLOSED)

# Statuses that no longer count towards an owner's flag.
SETTLED_STATUSES = (RESOLVED, CLOSED)

PRIORITIES = ("Low", "Medium", "High", "Critical")


class Discrepancy(TimestampMixin, db.Model):
    """Open or settled finding against one asset or one movement."""

    __tablename__ = "discrepancy"
    __table_args__ = (
        db.CheckConstraint(
            "(asset_id IS NULL) <> (movement_id IS NULL)",
            name="ck_discrepancy_single_owner",
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    asset_id = db.Column(db.Integer, db.ForeignKey("asset.id"), nullable=True, index=True)
    movement_id = db.Column(
        db.Integer, db.ForeignKey("movement.id"), nullable=True, index=True
    )
    type = db.Column(db.String(30), nullable=False)
    description = db.Column(db.Text, nullable=True)
    expected_value = db.Column(db.String(255), nullable=True)
    actual_value = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=OPEN, index=True)
    priority = db.Column(db.String(20), nullable=False, default="Medium")
    detected_by = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=True)
    detected_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    resolved_by = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolution = db.Column(db.Text, nullable=True)

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset", back_populates="discrepancies")
    movement = db.relationship("Movement", back_populates="discrepancies")
    detector = db.relationship("User", foreign_keys=[detected_by])
    resolver = db.relationship("User", foreign_keys=[resolved_by])

    @property
    def owner(self):
        """The Asset or Movement this discrepancy belongs to."""
        return self.asset if self.asset_id is not None else self.movement

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assetId": self.asset_id,
            "movementId": self.movement_id,
            "type": self.type,
            "description": self.description,
            "expectedValue": self.expected_value,
            "actualValue": self.actual_value,
            "status": self.status,
            "priority": self.priority,
            "detectedBy": self.detected_by,
            "detectedAt": iso(self.detected_at),
            "resolvedBy": self.resolved_by,
            "resolvedAt": iso(self.resolved_at),
            "resolution": self.resolution,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        owner = f"asset={self.asset_id}" if self.asset_id else f"movement={self.movement_id}"
        return f"<Discrepancy {self.id} {self.type} {owner} status={self.status}>"
