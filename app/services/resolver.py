"""Read-path helpers: pick the variant URL for a display context."""
from app.services.naming import is_remote, url_for_size
from app.services.sizes import SIZE_LADDER


# Rendering context -> logical size
DISPLAY_CONTEXTS = {
    "thumbnail_rail": "thumbnail",  # list thumbnails, 200px
    "grid_card": "small",  # grid cards, 400px
    "detail_hero": "medium",  # product detail main image, 800px
    "banner": "large",  # full-bleed / fullscreen, 1200px
}


def resolve(reference, size="medium"):
    """URL of ``reference`` at logical ``size``; see ``naming.url_for_size``."""
    return url_for_size(reference, size)


def size_for_width(display_width, high_density=True):
    """Logical size for an on-screen width in CSS pixels.

    The width is doubled for high-density (retina) displays.
    """
    effective = display_width * 2 if high_density else display_width
    if effective <= 200:
        return "thumbnail"
    if effective <= 400:
        return "small"
    if effective <= 800:
        return "medium"
    return "large"


def size_for_context(context):
    try:
        return DISPLAY_CONTEXTS[context]
    except KeyError:
        raise ValueError(f"Unknown display context: {context}") from None


def srcset(reference):
    """Responsive ``srcset`` over the ladder; empty for remote references."""
    if not reference or is_remote(reference):
        return ""
    return ", ".join(
        f"{url_for_size(reference, spec.name)} {spec.max_width}w"
        for spec in SIZE_LADDER
    )


def register_template_helpers(app):
    """Expose the resolver to Jinja templates."""
    from app.services.fallback import FallbackImageLoad

    @app.template_filter("image_variant")
    def image_variant(reference, size="medium"):
        if size in DISPLAY_CONTEXTS:
            size = DISPLAY_CONTEXTS[size]
        return resolve(reference, size)

    app.add_template_filter(srcset, "image_srcset")
    app.add_template_global(FallbackImageLoad, "fallback_image")
