"""Public image serving for stored sources and variants."""
import os
from flask import abort, current_app, redirect, send_from_directory
from app.blueprints.public import public_bp
from app.services.storage_service import get_storage, join_key


@public_bp.route("/images/<path:filename>")
def image_file(filename):
    """Serve an image by its URL path.

    The local backend serves from IMAGE_ROOT (WhiteNoise takes over in
    production); the S3 backend redirects to the public bucket URL.
    """
    namespace = current_app.config["IMAGE_NAMESPACE"]
    if current_app.config["STORAGE_BACKEND"] == "s3":
        key = join_key(namespace, filename)
        return redirect(get_storage().remote_url(key), code=302)

    directory = os.path.join(current_app.config["IMAGE_ROOT"], namespace)
    if not os.path.isdir(directory):
        abort(404)
    # send_from_directory rejects paths escaping the directory
    return send_from_directory(directory, filename, max_age=31536000)
