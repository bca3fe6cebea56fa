"""Exception types for Pulse AI Reader."""


class PulseError(Exception):
    """Base class for reader errors."""


class FetchError(PulseError):
    """The RSS lookup service failed or answered with a non-ok status."""

    def __init__(self, message: str, feed_url: str | None = None):
        super().__init__(message)
        self.feed_url = feed_url


class GenerationError(PulseError):
    """The generative service failed or returned unusable structured output."""
