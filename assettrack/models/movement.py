"""
Movement model: a request to relocate or reassign an asset.

Status lifecycle::

    Pending --> Approved --> Completed
       \\
        `----> Rejected

Completion is the only place where processing a movement changes the
asset's location and custodian. Deleted movements are tombstoned
through ``deleted_at`` and drop out of every lookup.
"""

from assettrack.extensions import db
from assettrack.models.base import TimestampMixin, iso, utcnow

MOVEMENT_TYPES = ("Transfer", "Checkout", "Return", "Maintenance", "Disposal")

PENDING = "Pending"
APPROVED = "Approved"
REJECTED = "Rejected"
COMPLETED = "Completed"
MOVEMENT_STATUSES = (PENDING, APPROVED, REJECTED, COMPLETED)

# Allowed status changes; statuses missing from the map are terminal.
TRANSITIONS = {
    PENDING: (APPROVED, REJECTED),
    APPROVED: (COMPLETED,),
}


class Movement(TimestampMixin, db.Model):
    """Requested change of an asset's location and/or custodian."""

    __tablename__ = "movement"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    asset_id = db.Column(db.Integer, db.ForeignKey("asset.id"), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False, default="Transfer")
    from_location = db.Column(db.String(200), nullable=True)
    to_location = db.Column(db.String(200), nullable=True)
    from_custodian = db.Column(db.String(150), nullable=True)
    to_custodian = db.Column(db.String(150), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    requester_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False
    )
    approver_id = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=True)
    request_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    approval_date = db.Column(db.DateTime(timezone=True), nullable=True)
    completion_date = db.Column(db.DateTime(timezone=True), nullable=True)

    has_discrepancy = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset", back_populates="movements")
    requester = db.relationship("User", foreign_keys=[requester_id])
    approver = db.relationship("User", foreign_keys=[approver_id])
    discrepancies = db.relationship(
        "Discrepancy", back_populates="movement", lazy="dynamic"
    )
    photos = db.relationship("Photo", back_populates="movement", lazy="dynamic")

    @property
    def is_terminal(self) -> bool:
        return self.status not in TRANSITIONS

    def to_dict(self, detail: bool = False) -> dict:
        data = {
            "id": self.id,
            "assetId": self.asset_id,
            "type": self.type,
            "fromLocation": self.from_location,
            "toLocation": self.to_location,
            "fromCustodian": self.from_custodian,
            "toCustodian": self.to_custodian,
            "status": self.status,
            "reason": self.reason,
            "notes": self.notes,
            "requesterId": self.requester_id,
            "approverId": self.approver_id,
            "requestDate": iso(self.request_date),
            "approvalDate": iso(self.approval_date),
            "completionDate": iso(self.completion_date),
            "hasDiscrepancy": self.has_discrepancy,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if detail:
            data["asset"] = self.asset.to_dict() if self.asset else None
            data["photos"] = [p.to_dict() for p in self.photos]
            data["discrepancies"] = [d.to_dict() for d in self.discrepancies]
        return data

    def __repr__(self) -> str:
        return f"<Movement {self.id} asset={self.asset_id} status={self.status}>"
