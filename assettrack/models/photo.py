"""
Photo model. The image bytes live on disk under ``UPLOAD_FOLDER``; the
row stores only metadata and the path relative to that folder.
"""

from assettrack.extensions import db
from assettrack.models.base import TimestampMixin, iso, number


class Photo(TimestampMixin, db.Model):
    """Image attached to exactly one asset or one movement."""

    __tablename__ = "photo"
    __table_args__ = (
        db.CheckConstraint(
            "(asset_id IS NULL) <> (movement_id IS NULL)",
            name="ck_photo_single_owner",
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    asset_id = db.Column(db.Integer, db.ForeignKey("asset.id"), nullable=True, index=True)
    movement_id = db.Column(
        db.Integer, db.ForeignKey("movement.id"), nullable=True, index=True
    )
    filename = db.Column(db.String(255), nullable=False)
    original_name = db.Column(db.String(255), nullable=True)
    mime_type = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    # Relative to UPLOAD_FOLDER, e.g. ``12/3f0c...e1.jpg``.
    path = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=True)
    latitude = db.Column(db.Numeric(10, 7), nullable=True)
    longitude = db.Column(db.Numeric(10, 7), nullable=True)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=True)

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset", back_populates="photos")
    movement = db.relationship("Movement", back_populates="photos")
    uploader = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assetId": self.asset_id,
            "movementId": self.movement_id,
            "filename": self.filename,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "size": self.size,
            "description": self.description,
            "latitude": number(self.latitude),
            "longitude": number(self.longitude),
            "uploadedBy": self.uploaded_by,
            "url": f"/api/photos/{self.id}/file",
            "createdAt": iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Photo {self.filename}>"
