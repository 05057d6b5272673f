import io
import pytest
from PIL import Image as PILImage
from app import create_app
from app.services.storage_service import LocalStorage


@pytest.fixture
def app(tmp_path):
    """Create application for testing with images under a temp root."""
    image_root = tmp_path / "public"
    image_root.mkdir()
    app = create_app(
        "testing",
        overrides={
            "IMAGE_ROOT": str(image_root),
            "IMAGE_DIRECTORIES": [
                "images/products",
                "images/categories",
                "images",
            ],
        },
    )
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return LocalStorage(str(root))


@pytest.fixture
def make_image():
    """Build encoded image bytes of a given size and format."""

    def _make(size=(100, 100), fmt="JPEG", mode="RGB", colour=(200, 40, 40)):
        if mode == "RGBA" and len(colour) == 3:
            colour = colour + (128,)
        img = PILImage.new(mode, size, colour)
        buffer = io.BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make
