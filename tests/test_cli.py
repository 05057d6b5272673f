"""Tests for the admin CLI commands."""
from unittest.mock import MagicMock
import app.extensions as ext
from app.services.storage_service import get_storage


def test_optimize_images_prints_summary(app, make_image):
    storage = get_storage()
    for i in range(5):
        storage.write(f"images/products/p{i}.jpg", make_image((500, 300)))
    storage.write("images/products/corrupt.jpg", b"garbage")

    result = app.test_cli_runner().invoke(args=["optimize-images", "images/products"])

    assert result.exit_code == 0
    assert "Processed: 5" in result.output
    assert "Skipped (already optimized): 0" in result.output
    assert "Failed: 1" in result.output
    assert "FAILED images/products/corrupt.jpg" in result.output


def test_optimize_images_enqueue(app, monkeypatch):
    queue = MagicMock()
    queue.enqueue.return_value.id = "job-123"
    monkeypatch.setattr(ext, "task_queue", queue)

    result = app.test_cli_runner().invoke(args=["optimize-images", "--enqueue"])

    assert result.exit_code == 0
    assert "Enqueued job job-123 for 3 directories." in result.output
    args = queue.enqueue.call_args[0]
    assert args[1] == ["images/products", "images/categories", "images"]


def test_optimize_images_enqueue_without_redis(app):
    result = app.test_cli_runner().invoke(args=["optimize-images", "--enqueue"])
    assert "Queue unavailable" in result.output


def test_resolve_image(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["resolve-image", "/images/a.jpg", "--size", "small"])
    assert result.output.strip() == "/images/a-small.webp"

    result = runner.invoke(args=["resolve-image", "/images/a.jpg", "--width", "300"])
    assert result.output.strip() == "/images/a-medium.webp"

    result = runner.invoke(
        args=["resolve-image", "/images/a.jpg", "--width", "300", "--no-retina"]
    )
    assert result.output.strip() == "/images/a-small.webp"

    result = runner.invoke(args=["resolve-image", "/images/a.jpg"])
    assert result.output.strip() == "/images/a-medium.webp"

    result = runner.invoke(
        args=["resolve-image", "/images/a.jpg", "--size", "small", "--width", "10"]
    )
    assert result.exit_code != 0


def test_image_stats(app, make_image):
    storage = get_storage()
    storage.write("images/products/new.jpg", make_image())
    storage.write("images/products/new-small.webp", make_image(fmt="WEBP"))

    result = app.test_cli_runner().invoke(args=["image-stats"])

    assert result.exit_code == 0
    assert "Images missing variants: 1" in result.output
    assert "images/products/new.jpg: thumbnail, medium, large, original" in result.output
