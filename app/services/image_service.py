import io
from collections import namedtuple

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from app.services.naming import ENCODED_EXT, extension


ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
}
SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
SUPPORTED_FORMATS = {"JPEG", "PNG", "WEBP", "GIF"}
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB

OUTPUT_FORMAT = "WEBP"

Transcoded = namedtuple("Transcoded", ["data", "width", "height"])


class ImageProcessingError(Exception):
    """Base class for image pipeline failures."""


class DecodeError(ImageProcessingError):
    """Source bytes are not a decodable image."""


class EncodeError(ImageProcessingError):
    """Re-encoding one target size failed."""


class WriteError(ImageProcessingError):
    """Storage rejected a write."""


class UnsupportedFormat(ImageProcessingError):
    """Input type is not one of jpeg, png, webp or gif."""


class MissingDirectory(ImageProcessingError):
    """A scan directory does not exist."""


def validate_upload(filename, content_type, data, max_bytes=MAX_FILE_SIZE):
    """Reject an upload before any decoding happens.

    Raises:
        UnsupportedFormat if the content type or extension is not accepted
        ValueError if the payload is empty or too large
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise UnsupportedFormat("Only JPG, PNG, WebP and GIF images are supported")
    ext = extension(filename or "")
    if ext and ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormat(f"Unsupported file extension: {ext}")
    if not data:
        raise ValueError("Uploaded file is empty")
    if len(data) > max_bytes:
        raise ValueError(f"Image too large: {len(data)} bytes (max {max_bytes})")


def decode(image_bytes):
    """Decode and normalise source bytes into a loaded Pillow image.

    - Verifies it's a real image via Pillow
    - Only JPEG, PNG, WebP and GIF are accepted
    - Animated images keep their first frame
    - Mode becomes RGB, or RGBA when the source has transparency

    Raises:
        DecodeError if the bytes are not an image
        UnsupportedFormat for images in any other format
    """
    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        img.verify()  # verify it's a real image
    except (
        UnidentifiedImageError,
        PILImage.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as e:
        raise DecodeError(f"Invalid image file: {e}") from e

    if img.format not in SUPPORTED_FORMATS:
        raise UnsupportedFormat(f"Unsupported image format: {img.format}")

    # Re-open (verify() leaves the image unusable) and decode pixels
    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        img.seek(0)
        img.load()
    except (
        PILImage.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
        EOFError,
    ) as e:
        raise DecodeError(f"Invalid image file: {e}") from e

    has_alpha = img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    )
    target_mode = "RGBA" if has_alpha else "RGB"
    if img.mode != target_mode:
        img = img.convert(target_mode)
    return img


def fit_inside(width, height, max_width, max_height):
    """Largest size with the same aspect ratio that fits in the box.

    Never enlarges: a source already inside the box keeps its size.
    """
    if max_width is None or max_height is None:
        return width, height
    if width <= max_width and height <= max_height:
        return width, height

    scale = min(max_width / width, max_height / height)
    new_width = max(1, min(max_width, round(width * scale)))
    new_height = max(1, min(max_height, round(height * scale)))
    return new_width, new_height


def encode(img, max_width, max_height, quality):
    """Resize a decoded image to fit the box (if needed) and encode to WebP.

    Raises:
        EncodeError when the encoder rejects the image
    """
    size = fit_inside(img.width, img.height, max_width, max_height)
    try:
        if size != img.size:
            img = img.resize(size, PILImage.LANCZOS)
        buffer = io.BytesIO()
        img.save(buffer, format=OUTPUT_FORMAT, quality=quality, method=6)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Failed to encode {ENCODED_EXT} at {size}: {e}") from e
    return Transcoded(buffer.getvalue(), size[0], size[1])


def transcode(image_bytes, max_width, max_height, quality):
    """Decode ``image_bytes`` and re-encode it inside the given box."""
    return encode(decode(image_bytes), max_width, max_height, quality)
