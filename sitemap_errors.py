"""Exception types raised while building, rendering and storing sitemaps.

Validation errors derive from ``ValueError`` so callers that only care about
"bad input" can catch that; everything derives from ``SitemapError``.
"""

from typing import Any, Optional


class SitemapError(Exception):
    """Base class for all sitemap errors."""


class SitemapValidationError(SitemapError, ValueError):
    """Raised when an item field fails validation in strict mode.

    Attributes:
        message: Description of the failure.
        value: The offending value (optional).
    """

    def __init__(self, message: str, value: Optional[Any] = None):
        self.message = message
        self.value = value
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.value is None:
            return self.message
        return f"{self.message}: {self.value!r}"


class EmptyValueError(SitemapValidationError):
    """A required value is empty."""


class MalformedUrlError(SitemapValidationError):
    """A value is not an absolute URL."""


class UnsupportedSchemeError(SitemapValidationError):
    """A URL uses a scheme other than http or https."""


class OutOfRangeError(SitemapValidationError):
    """A priority lies outside [0.0, 1.0]."""


class UnknownFrequencyError(SitemapValidationError):
    """A change frequency is not one of the protocol tokens."""


class UnparseableDateError(SitemapValidationError):
    """A timestamp cannot be parsed as a calendar date/time."""


class MissingUrlError(SitemapValidationError):
    """An image, translation or alternate record has no url."""


class InvalidConfigError(SitemapError, ValueError):
    """A configuration value violates its constraints."""


class UnsupportedFormatError(SitemapError, ValueError):
    """No renderer is registered for the requested format."""

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__(f"Unsupported format: {fmt}")


class RenderError(SitemapError, RuntimeError):
    """The XML serializer could not produce output."""


class StoreError(SitemapError, OSError):
    """The target directory for a stored sitemap could not be created."""
