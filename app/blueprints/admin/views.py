"""Admin upload endpoint: store a source image and derive its variants."""
import logging
import uuid
from flask import current_app, jsonify, request
from app.blueprints.admin import admin_bp
from app.services import image_service, variant_service
from app.services.image_service import DecodeError, UnsupportedFormat, WriteError
from app.services.naming import extension
from app.services.storage_service import get_storage, join_key

logger = logging.getLogger(__name__)

# Upload "type" -> storage sub-directory
COLLECTIONS = {"product": "products", "category": "categories"}


def _error(message, status):
    return jsonify({"success": False, "error": message}), status


@admin_bp.route("/upload", methods=["POST"])
def upload():
    """Accept a multipart ``file`` plus ``type`` (product or category).

    The source is stored as ``{uuid}{ext}`` and every variant is
    generated beside it. The medium variant URL is returned as ``url``
    for the caller to persist on its product or category record.
    """
    file = request.files.get("file")
    if file is None or not file.filename:
        return _error("No file uploaded", 400)

    sub_dir = COLLECTIONS.get(request.form.get("type", "product"), "products")
    data = file.read()

    try:
        image_service.validate_upload(
            file.filename,
            file.mimetype,
            data,
            max_bytes=current_app.config["MAX_UPLOAD_BYTES"],
        )
    except (UnsupportedFormat, ValueError) as e:
        return _error(str(e), 400)

    # e.g. image/png -> .png when the file name has no extension
    ext = extension(file.filename) or "." + file.mimetype.split("/", 1)[1]
    base = uuid.uuid4().hex
    destination = join_key(current_app.config["IMAGE_NAMESPACE"], sub_dir)
    source_key = join_key(destination, f"{base}{ext}")
    storage = get_storage()

    try:
        result = variant_service.generate(data, base, destination, storage)
    except (DecodeError, UnsupportedFormat) as e:
        return _error(str(e), 400)
    except Exception:
        logger.exception("Variant generation failed for %s", source_key)
        return _error("Upload failed", 500)

    try:
        storage.write(source_key, data, content_type=file.mimetype)
    except WriteError:
        logger.exception("Failed storing upload source %s", source_key)
        return _error("Upload failed", 500)

    if result.errors:
        logger.warning("Upload %s finished with errors: %s", source_key, result.errors)

    payload = result.to_dict()
    payload["success"] = True
    payload["source_url"] = storage.public_url(source_key)
    # Fall back to the stored source if no variant could be produced
    payload["url"] = result.primary_url or payload["source_url"]
    return jsonify(payload), 200
