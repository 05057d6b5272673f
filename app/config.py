import os


def _split_list(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """Base configuration. All values from env vars."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

    # Image storage
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "local")  # local or s3
    IMAGE_ROOT = os.environ.get(
        "IMAGE_ROOT", os.path.join(os.getcwd(), "public")
    )
    IMAGE_NAMESPACE = os.environ.get("IMAGE_NAMESPACE", "images")
    IMAGE_DIRECTORIES = _split_list(
        os.environ.get(
            "IMAGE_DIRECTORIES", "images/products,images/categories,images"
        )
    )
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

    # S3
    S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL", "")
    S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY", "")
    S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY", "")
    S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME", "catalog-images")
    S3_REGION = os.environ.get("S3_REGION", "auto")
    S3_PUBLIC_URL = os.environ.get("S3_PUBLIC_URL", "")

    # App
    APP_URL = os.environ.get("APP_URL", "http://localhost:5000")


class DevelopmentConfig(Config):
    DEBUG = True
    REDIS_URL = os.environ.get("REDIS_URL", "")  # optional in dev


class ProductionConfig(Config):
    DEBUG = False
    PREFERRED_URL_SCHEME = "https"

    @classmethod
    def init_app(cls, app):
        import logging
        import sys

        assert app.config["SECRET_KEY"] != "dev-secret-change-me", (
            "SECRET_KEY must be set in production"
        )
        if app.config["STORAGE_BACKEND"] == "s3":
            assert app.config["S3_PUBLIC_URL"], (
                "S3_PUBLIC_URL must be set for the s3 storage backend"
            )

        # Stream logs to stdout; app.logger is the "app" logger, so the
        # service and worker module loggers propagate to it
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info("Catalog image service starting in production mode")


class TestingConfig(Config):
    TESTING = True
    REDIS_URL = ""
    STORAGE_BACKEND = "local"


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
