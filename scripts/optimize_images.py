#!/usr/bin/env python3
"""Generate WebP variants for images already on disk.

Usage:
    python scripts/optimize_images.py [DIRECTORY ...]

Directories are storage keys relative to IMAGE_ROOT and default to
IMAGE_DIRECTORIES. Reads config from environment variables.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from app.services import batch_service
from app.services.storage_service import get_storage


def main():
    app = create_app()
    with app.app_context():
        directories = sys.argv[1:] or app.config["IMAGE_DIRECTORIES"]
        print("Generating WebP variants for: " + ", ".join(directories))

        report = batch_service.process_all(directories, get_storage())
        for line in report.summary_lines():
            print(line)


if __name__ == "__main__":
    main()
