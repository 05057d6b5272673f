"""Storage backends for source images and their variants.

Keys are POSIX paths relative to the storage root, e.g.
``images/products/abc-medium.webp``. The public URL of a key is
``/{key}``; the image blueprint serves it from whichever backend is active.
"""
import logging
import mimetypes
import os
import posixpath
import tempfile

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from app.services.image_service import MissingDirectory, WriteError

logger = logging.getLogger(__name__)

MISSING_CODES = {"404", "NoSuchKey", "NotFound"}
FORBIDDEN_CODES = {"403", "Forbidden", "AccessDenied"}


def join_key(*parts):
    return posixpath.join(*[p.strip("/") for p in parts if p and p.strip("/")])


def url_for_key(key):
    return "/" + key.lstrip("/")


class LocalStorage:
    """Files under a root directory on the local filesystem."""

    def __init__(self, root):
        self.root = os.path.abspath(root)

    def _path(self, key):
        path = os.path.abspath(os.path.join(self.root, *key.split("/")))
        if path != self.root and not path.startswith(self.root + os.sep):
            raise ValueError(f"Key escapes storage root: {key}")
        return path

    def exists(self, key):
        return os.path.isfile(self._path(key))

    def read(self, key):
        with open(self._path(key), "rb") as f:
            return f.read()

    def write(self, key, data, content_type=None):
        """Write via a temp file and rename so a failed write leaves nothing."""
        path = self._path(key)
        tmp_path = None
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=os.path.dirname(path), prefix=".tmp-", suffix=".part"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise WriteError(f"Failed writing {key}: {e}") from e

    def list_files(self, prefix):
        """Plain file names directly under ``prefix`` (no subdirectories)."""
        path = self._path(prefix)
        if not os.path.isdir(path):
            raise MissingDirectory(f"Directory does not exist: {prefix}")
        return sorted(
            name
            for name in os.listdir(path)
            if os.path.isfile(os.path.join(path, name))
        )

    def public_url(self, key):
        return url_for_key(key)

    def ping(self):
        return os.path.isdir(self.root)


class S3Storage:
    """Objects in an S3-compatible bucket."""

    def __init__(self, bucket, client, public_base=""):
        self.bucket = bucket
        self.client = client
        self.public_base = public_base.rstrip("/")

    def exists(self, key):
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in MISSING_CODES:
                return False
            # Without s3:ListBucket a missing key answers 403; a real denial
            # surfaces as a WriteError on the put that follows
            if code in FORBIDDEN_CODES:
                logger.warning("HEAD %s denied, treating as missing", key)
                return False
            raise
        return True

    def read(self, key):
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    def write(self, key, data, content_type=None):
        if content_type is None:
            content_type, _ = mimetypes.guess_type(key)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise WriteError(f"Failed writing {key}: {e}") from e

    def list_files(self, prefix):
        prefix = prefix.rstrip("/") + "/"
        paginator = self.client.get_paginator("list_objects_v2")
        names = []
        seen_anything = False
        for page in paginator.paginate(
            Bucket=self.bucket, Prefix=prefix, Delimiter="/"
        ):
            if page.get("CommonPrefixes"):
                seen_anything = True
            for obj in page.get("Contents", []):
                seen_anything = True
                name = obj["Key"][len(prefix):]
                if name:
                    names.append(name)
        if not seen_anything:
            raise MissingDirectory(f"Directory does not exist: {prefix}")
        return sorted(names)

    def public_url(self, key):
        return url_for_key(key)

    def remote_url(self, key):
        """Absolute URL the image blueprint redirects to."""
        return f"{self.public_base}/{key}"

    def ping(self):
        self.client.head_bucket(Bucket=self.bucket)
        return True


def _get_client():
    return boto3.client(
        "s3",
        endpoint_url=current_app.config["S3_ENDPOINT_URL"] or None,
        aws_access_key_id=current_app.config["S3_ACCESS_KEY"] or None,
        aws_secret_access_key=current_app.config["S3_SECRET_KEY"] or None,
        region_name=current_app.config["S3_REGION"],
        config=BotoConfig(signature_version="s3v4"),
    )


def get_storage():
    """Storage backend configured for the current app."""
    backend = current_app.config["STORAGE_BACKEND"]
    if backend == "s3":
        return S3Storage(
            bucket=current_app.config["S3_BUCKET_NAME"],
            client=_get_client(),
            public_base=current_app.config["S3_PUBLIC_URL"],
        )
    if backend == "local":
        return LocalStorage(current_app.config["IMAGE_ROOT"])
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")
