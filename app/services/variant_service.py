"""Generate the full set of size variants for one source image."""
import logging
from collections import namedtuple

from app.services import image_service
from app.services.image_service import EncodeError, WriteError
from app.services.naming import ENCODED_CONTENT_TYPE, variant_filename
from app.services.sizes import all_sizes
from app.services.storage_service import join_key

logger = logging.getLogger(__name__)

VariantResult = namedtuple(
    "VariantResult",
    ["size", "key", "url", "width", "height", "original_bytes", "new_bytes"],
)


class GenerationResult:
    """Outcome of one ``generate`` call.

    ``variants`` holds the sizes written by this call, ``skipped`` the sizes
    that already existed, ``errors`` maps failed sizes to their message.
    """

    def __init__(self, base_identifier):
        self.base_identifier = base_identifier
        self.variants = []
        self.skipped = []
        self.errors = {}
        self.urls = {}

    @property
    def ok(self):
        return not self.errors

    @property
    def original_variant_url(self):
        return self.urls.get("original")

    @property
    def primary_url(self):
        """Medium variant by convention, original variant as a fallback."""
        return self.urls.get("medium") or self.original_variant_url

    @property
    def bytes_written(self):
        return sum(v.new_bytes for v in self.variants)

    def to_dict(self):
        return {
            "base_identifier": self.base_identifier,
            "url": self.primary_url,
            "original_variant_url": self.original_variant_url,
            "variants": dict(self.urls),
            "skipped": list(self.skipped),
            "errors": dict(self.errors),
            "metrics": [
                {
                    "size": v.size,
                    "width": v.width,
                    "height": v.height,
                    "original_bytes": v.original_bytes,
                    "new_bytes": v.new_bytes,
                }
                for v in self.variants
            ],
        }


def _savings(original_bytes, new_bytes):
    if not original_bytes:
        return 0
    return round((1 - new_bytes / original_bytes) * 100)


def generate(source_bytes, base_identifier, destination, storage):
    """Write every missing variant of a source image into ``destination``.

    Existing variants are never overwritten or recomputed, so repeated
    runs are idempotent. A failure on one size is recorded and the other
    sizes still run.

    Args:
        source_bytes: raw bytes of the uploaded or discovered image
        base_identifier: stem shared by the source and its variants
        destination: storage prefix, e.g. ``images/products``
        storage: a LocalStorage or S3Storage

    Returns:
        GenerationResult

    Raises:
        DecodeError / UnsupportedFormat if the source can't be decoded
    """
    # Decode once, reused for every size
    source = image_service.decode(source_bytes)
    result = GenerationResult(base_identifier)
    original_bytes = len(source_bytes)

    for spec in all_sizes():
        key = join_key(destination, variant_filename(base_identifier, spec.name))
        url = storage.public_url(key)

        if storage.exists(key):
            logger.info("Skipping %s for %s (already exists)", spec.name, base_identifier)
            result.skipped.append(spec.name)
            result.urls[spec.name] = url
            continue

        try:
            encoded = image_service.encode(
                source, spec.max_width, spec.max_height, spec.quality
            )
            storage.write(key, encoded.data, content_type=ENCODED_CONTENT_TYPE)
        except (EncodeError, WriteError) as e:
            logger.error("Variant %s failed for %s: %s", spec.name, base_identifier, e)
            result.errors[spec.name] = str(e)
            continue

        new_bytes = len(encoded.data)
        logger.info(
            "%s: %.1fKB -> %.1fKB (saved %d%%)",
            spec.name,
            original_bytes / 1024,
            new_bytes / 1024,
            _savings(original_bytes, new_bytes),
        )
        result.variants.append(
            VariantResult(
                size=spec.name,
                key=key,
                url=url,
                width=encoded.width,
                height=encoded.height,
                original_bytes=original_bytes,
                new_bytes=new_bytes,
            )
        )
        result.urls[spec.name] = url

    return result
