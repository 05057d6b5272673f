#!/usr/bin/env python3
"""Seed sample product and category images for local development.

Writes plain source images only; run ``flask optimize-images`` afterwards
to derive their variants.
"""
import io
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from PIL import Image as PILImage, ImageDraw

from app import create_app
from app.services.storage_service import get_storage, join_key

app = create_app()

SAMPLE_IMAGES = [
    # (collection, name, size, colour, format)
    ("products", "running-shoe", (1600, 1200), (200, 60, 50), "JPEG"),
    ("products", "leather-boot", (1200, 1600), (110, 70, 40), "JPEG"),
    ("products", "canvas-sneaker", (900, 900), (40, 90, 160), "PNG"),
    ("products", "sandal", (640, 480), (230, 190, 120), "WEBP"),
    ("products", "slipper", (150, 150), (170, 170, 180), "PNG"),
    ("categories", "sports", (1200, 800), (30, 140, 90), "JPEG"),
    ("categories", "casual", (800, 800), (240, 120, 30), "PNG"),
]

EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "WEBP": ".webp"}


def render(size, colour, label, fmt):
    img = PILImage.new("RGB", size, colour)
    draw = ImageDraw.Draw(img)
    width, height = size
    draw.rectangle(
        [width // 8, height // 8, width * 7 // 8, height * 7 // 8],
        outline=(255, 255, 255),
        width=max(2, width // 100),
    )
    draw.text((width // 6, height // 6), label, fill=(255, 255, 255))
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def main():
    with app.app_context():
        storage = get_storage()
        namespace = app.config["IMAGE_NAMESPACE"]
        created = 0
        for collection, name, size, colour, fmt in SAMPLE_IMAGES:
            key = join_key(namespace, collection, f"{name}{EXTENSIONS[fmt]}")
            if storage.exists(key):
                print(f"  exists: {key}")
                continue
            storage.write(key, render(size, colour, name, fmt))
            created += 1
            print(f"  created: {key}")
        print(f"Seeded {created} sample images.")


if __name__ == "__main__":
    main()
