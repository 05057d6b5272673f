"""Tests for image serving and the health check."""
import os
import app.extensions as ext


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["status"] == "ok"
    assert data["storage"] == "ok"
    assert data["redis"] == "not configured"


def test_health_does_not_leak_internal_errors(client, monkeypatch):
    class BrokenRedis:
        def ping(self):
            raise RuntimeError("redis password leaked")

    monkeypatch.setattr(ext, "redis_client", BrokenRedis())

    resp = client.get("/health")
    assert resp.status_code == 503
    data = resp.get_json()
    assert data["redis"] == "error"
    assert "password" not in str(data).lower()


def test_serves_stored_variant(app, client):
    path = os.path.join(app.config["IMAGE_ROOT"], "images", "products")
    os.makedirs(path)
    with open(os.path.join(path, "a-small.webp"), "wb") as f:
        f.write(b"RIFF-fake-webp")

    resp = client.get("/images/products/a-small.webp")
    assert resp.status_code == 200
    assert resp.data == b"RIFF-fake-webp"


def test_missing_image_404(client):
    assert client.get("/images/products/nope-medium.webp").status_code == 404


def test_path_traversal_rejected(app, client):
    os.makedirs(os.path.join(app.config["IMAGE_ROOT"], "images"))
    with open(os.path.join(app.config["IMAGE_ROOT"], "secret.txt"), "w") as f:
        f.write("top secret")

    resp = client.get("/images/../secret.txt")
    assert resp.status_code == 404


def test_s3_backend_redirects(app, client):
    app.config["STORAGE_BACKEND"] = "s3"
    app.config["S3_PUBLIC_URL"] = "https://cdn.example.com/bucket/"

    resp = client.get("/images/products/a-large.webp")
    assert resp.status_code == 302
    assert resp.headers["Location"] == (
        "https://cdn.example.com/bucket/images/products/a-large.webp"
    )
