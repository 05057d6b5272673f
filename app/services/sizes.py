"""Fixed size ladder for derived image variants."""
from collections import namedtuple


SizeSpec = namedtuple("SizeSpec", ["name", "max_width", "max_height", "quality"])

SIZE_LADDER = (
    SizeSpec("thumbnail", 200, 200, 70),
    SizeSpec("small", 400, 400, 75),
    SizeSpec("medium", 800, 800, 80),
    SizeSpec("large", 1200, 1200, 85),
)

# Pass-through re-encode, no bounding box
ORIGINAL = SizeSpec("original", None, None, 90)

LADDER_NAMES = ("thumbnail", "small", "medium", "large")


def validate_ladder(ladder, original=ORIGINAL):
    """Check the ladder once at import time.

    Raises:
        ValueError if names are out of order, boxes do not strictly grow,
        or a quality is outside 0-100.
    """
    names = tuple(spec.name for spec in ladder)
    if names != LADDER_NAMES:
        raise ValueError(f"Size ladder must be {LADDER_NAMES}, got {names}")

    previous = None
    for spec in ladder:
        if not spec.max_width or not spec.max_height:
            raise ValueError(f"Size {spec.name} needs a bounding box")
        if previous and (
            spec.max_width <= previous.max_width
            or spec.max_height <= previous.max_height
        ):
            raise ValueError(
                f"Size {spec.name} box must be larger than {previous.name}"
            )
        previous = spec

    for spec in (*ladder, original):
        if not isinstance(spec.quality, int) or not 0 <= spec.quality <= 100:
            raise ValueError(f"Invalid quality for {spec.name}: {spec.quality}")

    if original.name != "original" or original.max_width or original.max_height:
        raise ValueError("The original size must be unboxed")


def all_sizes():
    """Ladder sizes in order, followed by the original pass-through."""
    return SIZE_LADDER + (ORIGINAL,)


def get_size(name):
    for spec in all_sizes():
        if spec.name == name:
            return spec
    raise ValueError(f"Unknown image size: {name}")


validate_ladder(SIZE_LADDER)
