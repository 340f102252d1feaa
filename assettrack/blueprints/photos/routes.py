"""
Routes for the photos blueprint.

Uploads are multipart: the image in the ``photo`` field, the owner and
metadata as form fields.
"""

from flask import request, send_file

from assettrack.blueprints.helpers import payload
from assettrack.blueprints.photos import bp
from assettrack.decorators import audited, authenticated, permission_required
from assettrack.services import photo_service


@bp.route("", methods=["POST"])
@authenticated
@audited("Photo", "UPLOAD", key="photo")
def upload_photo(ctx):
    photo = photo_service.upload_photo(
        request.files.get("photo"), payload(request.form.to_dict()), ctx
    )
    return {"message": "Photo uploaded successfully", "photo": photo.to_dict()}, 201


@bp.route("/asset/<int:asset_id>")
@authenticated
def photos_for_asset(ctx, asset_id):  # pylint: disable=unused-argument
    photos = photo_service.get_photos_for_asset(asset_id)
    return {"photos": [photo.to_dict() for photo in photos]}


@bp.route("/movement/<int:movement_id>")
@authenticated
def photos_for_movement(ctx, movement_id):  # pylint: disable=unused-argument
    photos = photo_service.get_photos_for_movement(movement_id)
    return {"photos": [photo.to_dict() for photo in photos]}


@bp.route("/<int:photo_id>")
@authenticated
def get_photo(ctx, photo_id):  # pylint: disable=unused-argument
    return photo_service.get_photo(photo_id).to_dict()


@bp.route("/<int:photo_id>/file")
@authenticated
def photo_file(ctx, photo_id):  # pylint: disable=unused-argument
    photo, path = photo_service.get_photo_file(photo_id)
    return send_file(path, mimetype=photo.mime_type)


@bp.route("/<int:photo_id>", methods=["PUT"])
@authenticated
@audited("Photo", "UPDATE", key="photo", snapshot=photo_service.snapshot)
def update_photo(ctx, photo_id):  # pylint: disable=unused-argument
    photo = photo_service.update_photo(photo_id, payload())
    return {"message": "Photo updated successfully", "photo": photo.to_dict()}


@bp.route("/<int:photo_id>", methods=["DELETE"])
@authenticated
@permission_required("photos.delete")
@audited("Photo", "DELETE", snapshot=photo_service.snapshot)
def delete_photo(ctx, photo_id):
    photo_service.delete_photo(photo_id, ctx)
    return {"message": "Photo deleted successfully"}
