"""
Asset model: the tracked item whose placement, custodian and condition
the discrepancy engine watches.

``location`` is free text as reported in the field; ``site_id`` and
``location_id`` optionally tie the asset to the managed placement tree.
Assets are tombstoned through ``deleted_at`` and never physically removed.
"""

from assettrack.extensions import db
from assettrack.models.base import TimestampMixin, iso, number

ASSET_STATUSES = ("Available", "In Use", "In Maintenance", "Reserved", "Retired")
ASSET_CONDITIONS = ("New", "Good", "Fair", "Poor", "Damaged", "Retired")

# Fields compared against stored values on every update.
TRACKED_FIELDS = ("location", "custodian", "condition")


class Asset(TimestampMixin, db.Model):
    """A physical item under management."""

    __tablename__ = "asset"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Uniqueness among non-deleted rows is enforced by asset_service so a
    # tombstoned tag can be reissued.
    asset_tag = db.Column(db.String(100), nullable=True, index=True)
    serial_number = db.Column(db.String(100), nullable=True, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True, index=True)
    model = db.Column(db.String(100), nullable=True)
    manufacturer = db.Column(db.String(100), nullable=True)
    purchase_date = db.Column(db.Date, nullable=True)
    purchase_price = db.Column(db.Numeric(12, 2), nullable=True)
    current_value = db.Column(db.Numeric(12, 2), nullable=True)

    # -- Placement ---------------------------------------------------------
    location = db.Column(db.String(200), nullable=True)
    site_id = db.Column(db.Integer, db.ForeignKey("site.id"), nullable=True, index=True)
    location_id = db.Column(
        db.Integer, db.ForeignKey("location.id"), nullable=True, index=True
    )
    custodian = db.Column(db.String(150), nullable=True)
    department = db.Column(db.String(100), nullable=True)

    # -- Lifecycle ---------------------------------------------------------
    status = db.Column(db.String(30), nullable=False, default="Available")
    condition = db.Column(db.String(30), nullable=False, default="Good")
    notes = db.Column(db.Text, nullable=True)

    # -- Scan metadata -----------------------------------------------------
    last_scanned_at = db.Column(db.DateTime(timezone=True), nullable=True)
    gps_latitude = db.Column(db.Numeric(10, 7), nullable=True)
    gps_longitude = db.Column(db.Numeric(10, 7), nullable=True)

    has_discrepancy = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # -- Relationships -----------------------------------------------------
    site = db.relationship("Site", back_populates="assets")
    location_ref = db.relationship("Location", back_populates="assets")
    creator = db.relationship("User", foreign_keys=[created_by])
    movements = db.relationship(
        "Movement",
        back_populates="asset",
        lazy="dynamic",
        order_by="Movement.request_date.desc()",
    )
    discrepancies = db.relationship(
        "Discrepancy",
        back_populates="asset",
        lazy="dynamic",
        order_by="Discrepancy.detected_at.desc()",
    )
    photos = db.relationship("Photo", back_populates="asset", lazy="dynamic")

    def to_dict(self, detail: bool = False) -> dict:
        data = {
            "id": self.id,
            "assetTag": self.asset_tag,
            "serialNumber": self.serial_number,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "model": self.model,
            "manufacturer": self.manufacturer,
            "purchaseDate": iso(self.purchase_date),
            "purchasePrice": number(self.purchase_price),
            "currentValue": number(self.current_value),
            "location": self.location,
            "siteId": self.site_id,
            "locationId": self.location_id,
            "custodian": self.custodian,
            "department": self.department,
            "status": self.status,
            "condition": self.condition,
            "notes": self.notes,
            "lastScannedAt": iso(self.last_scanned_at),
            "gpsLatitude": number(self.gps_latitude),
            "gpsLongitude": number(self.gps_longitude),
            "hasDiscrepancy": self.has_discrepancy,
            "createdBy": self.created_by,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if detail:
            data["movements"] = [
                m.to_dict() for m in self.movements.filter_by(deleted_at=None)
            ]
            data["photos"] = [p.to_dict() for p in self.photos]
            data["discrepancies"] = [d.to_dict() for d in self.discrepancies]
        return data

    def __repr__(self) -> str:
        return f"<Asset {self.asset_tag or self.id}>"
