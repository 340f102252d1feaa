"""
Photo service — image uploads attached to assets or movements.

Files are written to ``UPLOAD_FOLDER`` (inside a per-asset subdirectory
when ``PHOTO_SUBDIR_PER_ASSET`` is set) under a random name that keeps
the original extension. The file is written before the database row is
committed; if the commit fails the file is removed again so no orphan
is left behind.
"""

import logging
import os
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import safe_join, secure_filename

from assettrack.context import RequestContext
from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.asset import Asset
from assettrack.models.movement import Movement
from assettrack.models.photo import Photo
from assettrack.services import parse_decimal

logger = logging.getLogger(__name__)


# -- Lookup ----------------------------------------------------------------


def get_photo(photo_id: int) -> Photo:
    photo = db.session.get(Photo, photo_id)
    if photo is None:
        raise NotFoundError("Photo not found")
    return photo


def get_photos_for_asset(asset_id: int) -> list[Photo]:
    asset = db.session.get(Asset, asset_id)
    if asset is None or asset.deleted_at is not None:
        raise NotFoundError("Asset not found")
    return Photo.query.filter_by(asset_id=asset_id).order_by(Photo.created_at.desc()).all()


def get_photos_for_movement(movement_id: int) -> list[Photo]:
    _live_movement(movement_id)
    return (
        Photo.query.filter_by(movement_id=movement_id)
        .order_by(Photo.created_at.desc())
        .all()
    )


def get_photo_file(photo_id: int) -> tuple[Photo, str]:
    """Return the photo and the absolute path of its file on disk."""
    photo = get_photo(photo_id)
    path = _absolute_path(photo.path)
    if path is None or not os.path.isfile(path):
        raise NotFoundError("Photo file not found on disk")
    return photo, path


# -- Upload ----------------------------------------------------------------


def upload_photo(file: FileStorage | None, data: dict, ctx: RequestContext) -> Photo:
    """
    Validate, store and register an uploaded image.

    Args:
        file: The multipart ``photo`` field.
        data: ``asset_id`` or ``movement_id`` (exactly one), optional
              ``description``, ``latitude``, ``longitude``.
        ctx:  Acting user, recorded as ``uploaded_by``.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    asset_id = data.get("asset_id")
    movement_id = data.get("movement_id")
    if asset_id is None and movement_id is None:
        raise ValidationError("Either assetId or movementId must be provided")
    if asset_id is not None and movement_id is not None:
        raise ValidationError("Provide either assetId or movementId, not both")

    allowed = current_app.config["ALLOWED_PHOTO_TYPES"]
    if file.mimetype not in allowed:
        raise ValidationError(
            "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed."
        )

    size = _stream_size(file)
    if size > current_app.config["MAX_PHOTO_SIZE"]:
        raise ValidationError("File too large")
    if size == 0:
        raise ValidationError("Uploaded file is empty")

    if asset_id is not None:
        asset = db.session.get(Asset, asset_id)
        if asset is None or asset.deleted_at is not None:
            raise NotFoundError("Asset not found")
    else:
        _live_movement(movement_id)

    latitude = parse_decimal(data.get("latitude"), "latitude")
    longitude = parse_decimal(data.get("longitude"), "longitude")

    relative_path, absolute_path = _target_path(file.filename, asset_id)
    os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
    file.save(absolute_path)

    try:
        photo = Photo(
            asset_id=asset_id,
            movement_id=movement_id,
            filename=os.path.basename(relative_path),
            original_name=file.filename,
            mime_type=file.mimetype,
            size=size,
            path=relative_path,
            description=data.get("description"),
            latitude=latitude,
            longitude=longitude,
            uploaded_by=ctx.user_id,
        )
        db.session.add(photo)
        db.session.commit()
    except Exception:
        db.session.rollback()
        _remove_file(absolute_path)
        raise

    logger.info("Stored photo %s (%d bytes) by user %s", photo.filename, size, ctx.user_id)
    return photo


def _live_movement(movement_id: int) -> Movement:
    movement = db.session.get(Movement, movement_id)
    if movement is None or movement.deleted_at is not None:
        raise NotFoundError("Movement not found")
    return movement


def _stream_size(file: FileStorage) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _target_path(original_name: str, asset_id: int | None) -> tuple[str, str]:
    """Build ``(relative, absolute)`` paths for a new upload."""
    extension = os.path.splitext(secure_filename(original_name))[1].lower()
    filename = f"{uuid.uuid4()}{extension}"
    if asset_id is not None and current_app.config.get("PHOTO_SUBDIR_PER_ASSET", True):
        relative = f"{asset_id}/{filename}"
    else:
        relative = filename
    return relative, _absolute_path(relative)


def _absolute_path(relative: str) -> str | None:
    # safe_join returns None for paths escaping the upload folder.
    return safe_join(current_app.config["UPLOAD_FOLDER"], relative)


def _remove_file(path: str | None) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning("Photo file %s was already missing", path)
    except OSError:
        logger.exception("Could not remove photo file %s", path)


# -- Mutations -------------------------------------------------------------


def update_photo(photo_id: int, data: dict) -> Photo:
    """Only the description of a photo can change."""
    photo = get_photo(photo_id)
    if "description" in data:
        photo.description = data["description"]
    db.session.commit()
    return photo


def delete_photo(photo_id: int, ctx: RequestContext) -> None:
    """Delete the row, then the file."""
    photo = get_photo(photo_id)
    path = _absolute_path(photo.path)
    db.session.delete(photo)
    db.session.commit()
    _remove_file(path)
    logger.info("Deleted photo %s by user %s", photo_id, ctx.user_id)


def snapshot(photo_id: int, **_kwargs) -> dict | None:
    photo = db.session.get(Photo, photo_id)
    return photo.to_dict() if photo else None
