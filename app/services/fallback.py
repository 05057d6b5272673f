"""Load-failure fallback for one rendered image.

An image first loads at its optimized size, then retries once with the
original-size variant (or an explicit fallback URL), then gives up and
renders a placeholder icon. States only move forward.
"""
import enum

from app.services.resolver import resolve


class LoadState(enum.Enum):
    OPTIMIZED_SIZE = "optimized_size"
    FALLBACK_ORIGINAL = "fallback_original"
    PLACEHOLDER = "placeholder"


def next_state(state, has_fallback):
    """State after a load failure in ``state``."""
    if state is LoadState.OPTIMIZED_SIZE and has_fallback:
        return LoadState.FALLBACK_ORIGINAL
    return LoadState.PLACEHOLDER


class FallbackImageLoad:
    """State for one displayed image. Re-mounting means ``reset()``."""

    def __init__(self, src, size="medium", fallback_src=None, on_failure=None):
        self.src = src
        self.size = size
        self.fallback_src = fallback_src
        self.on_failure = on_failure
        self.reset()

    def reset(self):
        self.state = LoadState.OPTIMIZED_SIZE
        self.history = [self.state]
        self.is_loaded = False
        self._failure_reported = False
        self.current_url = resolve(self.src, self.size) if self.src else None

        # Nothing to load at the optimized size
        if not self.current_url:
            self._advance(report=False)

    @property
    def fallback_url(self):
        reference = self.fallback_src or self.src
        if not reference:
            return None
        return resolve(reference, "original")

    @property
    def has_fallback(self):
        fallback = self.fallback_url
        return bool(fallback) and fallback != self.current_url

    @property
    def is_placeholder(self):
        return self.state is LoadState.PLACEHOLDER

    def _advance(self, report=True):
        if self.state is LoadState.OPTIMIZED_SIZE:
            has_fallback = self.has_fallback
        else:
            has_fallback = False
        self.state = next_state(self.state, has_fallback)
        self.history.append(self.state)

        if self.state is LoadState.FALLBACK_ORIGINAL:
            self.current_url = self.fallback_url
            return

        self.current_url = None
        if report and not self._failure_reported:
            self._failure_reported = True
            if self.on_failure is not None:
                self.on_failure()

    def fail(self):
        """Handle a load error event for the current URL."""
        if self.is_loaded or self.is_placeholder:
            return self.state
        self._advance()
        return self.state

    def loaded(self):
        """Handle a successful load; no further transitions happen."""
        if not self.is_placeholder:
            self.is_loaded = True
        return self.state

    def to_dict(self):
        return {
            "state": self.state.value,
            "src": self.current_url,
            "fallback_src": self.fallback_url if self.has_fallback else None,
            "placeholder": self.is_placeholder,
        }
