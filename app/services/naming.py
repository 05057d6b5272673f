"""Naming convention for image variants.

A source image ``/images/products/abc.jpg`` has variants stored beside it:

    /images/products/abc-thumbnail.webp
    /images/products/abc-small.webp
    /images/products/abc-medium.webp
    /images/products/abc-large.webp
    /images/products/abc-original.webp

Everything here is pure string handling, no I/O.
"""
import posixpath
import re

from app.services.sizes import all_sizes


ENCODED_EXT = "webp"
ENCODED_CONTENT_TYPE = "image/webp"
SIZE_NAMES = tuple(spec.name for spec in all_sizes())

TAGGED_PATTERN = re.compile(
    r"-(" + "|".join(SIZE_NAMES) + r")\." + re.escape(ENCODED_EXT) + r"$"
)


def is_remote(reference):
    """True for absolute http(s) URLs, which are never derived locally."""
    if not reference:
        return False
    lowered = reference.lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def is_tagged(reference):
    """True if the reference already names a derived variant."""
    if not reference:
        return False
    return TAGGED_PATTERN.search(reference) is not None


def url_for_size(reference, size):
    """Return the URL of ``reference`` at logical ``size``.

    Empty and remote references are returned unchanged. A tagged
    reference has its size tag replaced; a bare one has its extension
    swapped for ``-{size}.webp``.
    """
    if size not in SIZE_NAMES:
        raise ValueError(f"Unknown image size: {size}")
    if not reference or is_remote(reference):
        return reference

    suffix = f"-{size}.{ENCODED_EXT}"
    if is_tagged(reference):
        return TAGGED_PATTERN.sub(suffix, reference)

    root, _ext = posixpath.splitext(reference)
    return f"{root}{suffix}"


def variant_filename(base_identifier, size):
    if size not in SIZE_NAMES:
        raise ValueError(f"Unknown image size: {size}")
    return f"{base_identifier}-{size}.{ENCODED_EXT}"


def base_identifier(filename):
    """Stem of a file name: ``products/abc.jpg`` -> ``abc``."""
    stem, _ext = posixpath.splitext(posixpath.basename(filename))
    return stem


def extension(filename):
    return posixpath.splitext(filename)[1].lower()
