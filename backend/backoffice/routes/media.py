# Overview: Flask API routes proxying admin image uploads and deletes to Cloudflare Images.

# backend/backoffice/routes/media.py
"""
Media proxy routes.

SECURITY: Both routes require an admin bearer token.

The proxy stores nothing itself. It returns the public URL and the client
writes it onto the owning row (admin avatar, category hero_image, product
media) with a normal update call.
"""
from flask import Blueprint, request, g, current_app

from ..validation import ValidationError
from ..decorators import require_auth, require_admin
from ..responses import success, error, validation_error
from ..services.media_service import (
    IMAGE_TYPES,
    MediaStorageError,
    get_media_client,
    replace_image,
    remove_image,
)

media_bp = Blueprint("media", __name__, url_prefix="/admin")

# Form field holding the owner id for each image type
OWNER_FIELDS = {
    "avatar": "userId",
    "category_hero": "categoryId",
    "product_media": "mediaId",
}


def _owner_id(image_type: str, form) -> str | None:
    value = (form.get(OWNER_FIELDS[image_type]) or "").strip()
    if value:
        return value
    if image_type == "avatar":
        return str(g.principal.id)
    return None


@media_bp.post("/cloudflare-avatar")
@require_auth
@require_admin
def upload_image():
    """
    Upload one image (multipart field "avatar").

    Form fields:
    - imageType: avatar | category_hero | product_media (default avatar)
    - oldAvatarUrl: previous image, deleted first when it is a Cloudflare URL
    - userId / categoryId / mediaId: owner id for the image type
      (categoryId and mediaId are required for their types)
    """
    upload = request.files.get("avatar")
    if upload is None or not upload.filename:
        return error("No file uploaded", 400)

    image_type = (request.form.get("imageType") or "avatar").strip()
    if image_type not in IMAGE_TYPES:
        return error(
            "Invalid imageType",
            400,
            errors=[{"field": "imageType", "message": f"imageType must be one of: {', '.join(IMAGE_TYPES)}"}],
        )

    mimetype = upload.mimetype or ""
    if not mimetype.startswith("image/"):
        return error("Only image uploads are allowed", 400)

    max_bytes = current_app.config.get("MEDIA_MAX_UPLOAD_BYTES", 2 * 1024 * 1024)
    # One byte past the limit is enough to tell it was exceeded
    data = upload.stream.read(max_bytes + 1)
    if not data:
        return error("No file uploaded", 400)
    if len(data) > max_bytes:
        return error(f"File exceeds the {max_bytes} byte limit", 400)

    owner_id = _owner_id(image_type, request.form)
    if owner_id is None:
        field = OWNER_FIELDS[image_type]
        return error(f"{field} is required", 400, errors=[{"field": field, "message": f"{field} is required for {image_type}"}])

    try:
        client = get_media_client()
        result = replace_image(
            client,
            data,
            image_type=image_type,
            owner_id=owner_id,
            filename=upload.filename,
            content_type=mimetype,
            old_url=request.form.get("oldAvatarUrl") or None,
            uploaded_by=g.principal.id,
        )
    except MediaStorageError:
        current_app.logger.exception("Failed to upload %s image for %s", image_type, owner_id)
        return error()

    current_app.logger.info("Uploaded %s image %s", image_type, result["id"])
    return success({"publicUrl": result["public_url"]}, "Image uploaded successfully")


@media_bp.delete("/cloudflare-image")
@require_auth
@require_admin
def delete_image():
    """
    Delete one image by its delivery URL.

    Body (JSON) or query: imageUrl (required), imageType, entityId (logged only).
    Returns {"deleted": false} when Cloudflare no longer had the image.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    image_url = payload.get("imageUrl") or request.args.get("imageUrl")
    image_type = payload.get("imageType") or request.args.get("imageType")
    entity_id = payload.get("entityId") or request.args.get("entityId")

    if not isinstance(image_url, str) or not image_url.strip():
        return error("imageUrl is required", 400, errors=[{"field": "imageUrl", "message": "imageUrl is required"}])

    try:
        client = get_media_client()
        deleted = remove_image(client, image_url.strip())
    except ValidationError as e:
        return validation_error(e)
    except MediaStorageError:
        current_app.logger.exception("Failed to delete %s image for %s", image_type or "unknown", entity_id)
        return error()

    if not deleted:
        current_app.logger.warning("Image already gone: %s", image_url)
    return success({"deleted": deleted}, "Image deleted successfully")
