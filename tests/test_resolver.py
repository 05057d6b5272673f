"""Tests for read-path variant resolution and the load fallback."""
import pytest
from flask import render_template_string
from app.services import resolver
from app.services.fallback import FallbackImageLoad, LoadState, next_state

ORDER = [LoadState.OPTIMIZED_SIZE, LoadState.FALLBACK_ORIGINAL, LoadState.PLACEHOLDER]


@pytest.mark.parametrize(
    "width,high_density,expected",
    [
        (100, True, "thumbnail"),
        (101, True, "small"),
        (200, True, "small"),
        (400, True, "medium"),
        (401, True, "large"),
        (200, False, "thumbnail"),
        (800, False, "medium"),
        (801, False, "large"),
    ],
)
def test_size_for_width(width, high_density, expected):
    assert resolver.size_for_width(width, high_density=high_density) == expected


def test_resolve_delegates_to_naming():
    assert resolver.resolve("/images/products/a.jpg", "large") == (
        "/images/products/a-large.webp"
    )
    assert resolver.resolve("https://x.example.com/a.jpg", "small") == (
        "https://x.example.com/a.jpg"
    )


def test_size_for_context():
    assert resolver.size_for_context("grid_card") == "small"
    assert resolver.size_for_context("banner") == "large"
    with pytest.raises(ValueError):
        resolver.size_for_context("sidebar")


def test_srcset():
    assert resolver.srcset("/images/a.png") == (
        "/images/a-thumbnail.webp 200w, /images/a-small.webp 400w, "
        "/images/a-medium.webp 800w, /images/a-large.webp 1200w"
    )
    assert resolver.srcset("https://cdn.example.com/a.png") == ""
    assert resolver.srcset("") == ""


def test_template_helpers(app):
    html = render_template_string(
        '<img src="{{ ref | image_variant("detail_hero") }}" '
        'srcset="{{ ref | image_srcset }}">'
        "{{ fallback_image(ref, 'thumbnail').current_url }}",
        ref="/images/products/a.jpg",
    )
    assert 'src="/images/products/a-medium.webp"' in html
    assert "/images/products/a-large.webp 1200w" in html
    assert html.endswith("/images/products/a-thumbnail.webp")


def test_transition_function():
    assert next_state(LoadState.OPTIMIZED_SIZE, True) is LoadState.FALLBACK_ORIGINAL
    assert next_state(LoadState.OPTIMIZED_SIZE, False) is LoadState.PLACEHOLDER
    assert next_state(LoadState.FALLBACK_ORIGINAL, True) is LoadState.PLACEHOLDER
    assert next_state(LoadState.PLACEHOLDER, True) is LoadState.PLACEHOLDER


def test_fallback_walks_forward_to_placeholder():
    calls = []
    load = FallbackImageLoad(
        "/images/products/a.jpg", size="small", on_failure=lambda: calls.append(1)
    )
    assert load.state is LoadState.OPTIMIZED_SIZE
    assert load.current_url == "/images/products/a-small.webp"

    load.fail()
    assert load.state is LoadState.FALLBACK_ORIGINAL
    assert load.current_url == "/images/products/a-original.webp"

    load.fail()
    assert load.is_placeholder
    assert load.current_url is None

    load.fail()
    load.fail()
    assert load.history == ORDER
    assert calls == [1]


def test_explicit_fallback_url_is_used():
    load = FallbackImageLoad("/images/a-medium.webp", fallback_src="/images/legacy.jpg")
    load.fail()
    assert load.state is LoadState.FALLBACK_ORIGINAL
    assert load.current_url == "/images/legacy-original.webp"


def test_remote_image_has_no_distinct_fallback():
    calls = []
    load = FallbackImageLoad(
        "https://cdn.example.com/a.jpg", on_failure=lambda: calls.append(1)
    )
    assert load.current_url == "https://cdn.example.com/a.jpg"
    load.fail()
    assert load.history == [LoadState.OPTIMIZED_SIZE, LoadState.PLACEHOLDER]
    assert calls == [1]


def test_success_stops_transitions():
    load = FallbackImageLoad("/images/a.jpg")
    load.loaded()
    load.fail()
    assert load.state is LoadState.OPTIMIZED_SIZE
    assert load.history == [LoadState.OPTIMIZED_SIZE]

    load = FallbackImageLoad("/images/b.jpg")
    load.fail()
    load.loaded()
    load.fail()
    assert load.state is LoadState.FALLBACK_ORIGINAL


def test_missing_image_renders_placeholder_without_failure_callback():
    calls = []
    load = FallbackImageLoad("", on_failure=lambda: calls.append(1))
    assert load.is_placeholder
    assert load.to_dict() == {
        "state": "placeholder",
        "src": None,
        "fallback_src": None,
        "placeholder": True,
    }
    assert calls == []


def test_reset_models_remount():
    load = FallbackImageLoad("/images/a.jpg")
    load.fail()
    load.fail()
    load.reset()
    assert load.state is LoadState.OPTIMIZED_SIZE
    assert load.history == [LoadState.OPTIMIZED_SIZE]
    assert load.to_dict()["fallback_src"] == "/images/a-original.webp"


@pytest.mark.parametrize(
    "events",
    [
        [],
        ["fail"],
        ["fail", "fail"],
        ["loaded", "fail", "fail"],
        ["fail", "loaded", "fail"],
        ["fail", "fail", "fail", "loaded"],
    ],
)
def test_history_is_always_a_prefix(events):
    load = FallbackImageLoad("/images/a.jpg")
    for event in events:
        getattr(load, event)()
    assert load.history == ORDER[: len(load.history)]
    assert len(set(load.history)) == len(load.history)
