"""
Placement models: sites and the location tree inside each site.

A ``Location`` may have a parent ``Location`` in the same site. The
service layer rejects parents from other sites and parent chains that
would form a cycle.
"""

from assettrack.extensions import db
from assettrack.models.base import TimestampMixin, iso, number

SITE_TYPES = ("Office", "Warehouse", "Factory", "Store", "Branch", "Data Center", "Other")

LOCATION_TYPES = (
    "Room",
    "Floor",
    "Building",
    "Zone",
    "Rack",
    "Shelf",
    "Desk",
    "Storage",
    "Other",
)


class Site(TimestampMixin, db.Model):
    """Physical site such as an office, warehouse or data center."""

    __tablename__ = "site"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(150), nullable=False)
    code = db.Column(db.String(50), unique=True, nullable=False)
    type = db.Column(db.String(30), nullable=False, default="Office")
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    latitude = db.Column(db.Numeric(10, 7), nullable=True)
    longitude = db.Column(db.Numeric(10, 7), nullable=True)
    contact_person = db.Column(db.String(150), nullable=True)
    contact_email = db.Column(db.String(200), nullable=True)
    contact_phone = db.Column(db.String(50), nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # -- Relationships -----------------------------------------------------
    locations = db.relationship("Location", back_populates="site", lazy="dynamic")
    assets = db.relationship("Asset", back_populates="site", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "type": self.type,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "postalCode": self.postal_code,
            "latitude": number(self.latitude),
            "longitude": number(self.longitude),
            "contactPerson": self.contact_person,
            "contactEmail": self.contact_email,
            "contactPhone": self.contact_phone,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Site {self.code}>"


class Location(TimestampMixin, db.Model):
    """Named place inside a site, optionally nested under another location."""

    __tablename__ = "location"
    __table_args__ = (
        db.UniqueConstraint("site_id", "code", name="uq_location_site_code"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(150), nullable=False)
    code = db.Column(db.String(50), nullable=False)
    type = db.Column(db.String(30), nullable=False, default="Room")
    site_id = db.Column(db.Integer, db.ForeignKey("site.id"), nullable=False, index=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("location.id"), nullable=True)
    floor = db.Column(db.String(20), nullable=True)
    capacity = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # -- Relationships -----------------------------------------------------
    site = db.relationship("Site", back_populates="locations")
    parent = db.relationship("Location", remote_side=[id], back_populates="children")
    children = db.relationship("Location", back_populates="parent", lazy="dynamic")
    assets = db.relationship("Asset", back_populates="location_ref", lazy="dynamic")

    def ancestor_ids(self) -> list[int]:
        """Return the ids of every ancestor, nearest first."""
        ids: list[int] = []
        node = self.parent
        while node is not None and node.id not in ids:
            ids.append(node.id)
            node = node.parent
        return ids

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "type": self.type,
            "siteId": self.site_id,
            "site": {"id": self.site.id, "name": self.site.name, "code": self.site.code}
            if self.site
            else None,
            "parentId": self.parent_id,
            "floor": self.floor,
            "capacity": self.capacity,
            "description": self.description,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Location {self.code} site={self.site_id}>"
