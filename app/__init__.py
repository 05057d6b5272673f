import os
from flask import Flask
from dotenv import load_dotenv

load_dotenv()


def create_app(config_name=None, overrides=None):
    flask_app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV")
        if not config_name:
            # Default to production on managed platforms to avoid accidental
            # debug mode/weak defaults when env selection is omitted.
            if os.environ.get("RAILWAY_ENVIRONMENT") or os.environ.get("PORT"):
                config_name = "production"
            else:
                config_name = "development"

    from app.config import config_map

    config_cls = config_map.get(config_name, config_map["development"])
    flask_app.config.from_object(config_cls)
    if overrides:
        flask_app.config.update(overrides)

    if hasattr(config_cls, "init_app"):
        config_cls.init_app(flask_app)

    # Bodies far over the upload limit (incl. multipart overhead) get a 413
    flask_app.config["MAX_CONTENT_LENGTH"] = flask_app.config["MAX_UPLOAD_BYTES"] * 2

    # Initialize extensions
    from app.extensions import init_redis

    init_redis(flask_app)

    # Register blueprints
    from app.blueprints.admin import admin_bp
    from app.blueprints.public import public_bp

    flask_app.register_blueprint(public_bp)
    flask_app.register_blueprint(admin_bp, url_prefix="/api")

    # Template helpers for the rendering layer
    from app.services.resolver import register_template_helpers

    register_template_helpers(flask_app)

    # Register CLI commands
    from app.cli import register_cli

    register_cli(flask_app)

    # Serve variant files efficiently in production with WhiteNoise
    if not flask_app.debug and not flask_app.testing and (
        flask_app.config["STORAGE_BACKEND"] == "local"
    ):
        from whitenoise import WhiteNoise

        namespace = flask_app.config["IMAGE_NAMESPACE"].strip("/")
        flask_app.wsgi_app = WhiteNoise(
            flask_app.wsgi_app,
            root=os.path.join(flask_app.config["IMAGE_ROOT"], namespace),
            prefix=f"{namespace}/",
            max_age=31536000,  # variants are immutable once written
            autorefresh=True,  # new uploads appear without a restart
        )

    # Health check
    @flask_app.route("/health")
    def health():
        from app.extensions import redis_client
        from app.services.storage_service import get_storage

        checks = {"status": "ok"}
        try:
            if get_storage().ping():
                checks["storage"] = "ok"
            else:
                checks["storage"] = "missing"
                checks["status"] = "degraded"
        except Exception:
            flask_app.logger.exception("Health check storage probe failed")
            checks["storage"] = "error"
            checks["status"] = "degraded"
        try:
            if redis_client:
                redis_client.ping()
                checks["redis"] = "ok"
            else:
                checks["redis"] = "not configured"
        except Exception:
            flask_app.logger.exception("Health check Redis probe failed")
            checks["redis"] = "error"
            checks["status"] = "degraded"
        status_code = 200 if checks["status"] == "ok" else 503
        return checks, status_code

    return flask_app
