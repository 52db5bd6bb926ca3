"""Validation of sitemap item fields.

Checks URLs, priorities, change frequencies, timestamps and image/link records
against the sitemap protocol. Every function returns ``True`` on success and
raises a subclass of ``SitemapValidationError`` on failure.
"""

import math
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import urlparse

from sitemap_errors import (
    EmptyValueError,
    MalformedUrlError,
    MissingUrlError,
    OutOfRangeError,
    UnknownFrequencyError,
    UnparseableDateError,
    UnsupportedSchemeError,
)


VALID_FREQUENCIES = (
    'always',
    'hourly',
    'daily',
    'weekly',
    'monthly',
    'yearly',
    'never',
)

SUPPORTED_SCHEMES = ('http', 'https')


def validate_url(url: str) -> bool:
    """Validate an absolute http(s) URL.

    Args:
        url: URL to validate.

    Returns:
        True if the URL is valid.

    Raises:
        EmptyValueError: If the URL is empty.
        MalformedUrlError: If the URL has no scheme or host, or contains whitespace.
        UnsupportedSchemeError: If the scheme is not http or https.
    """
    if not url:
        raise EmptyValueError('URL cannot be empty')

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        raise MalformedUrlError('Invalid URL format', url) from None

    if not parsed.scheme or any(ch.isspace() for ch in url):
        raise MalformedUrlError('Invalid URL format', url)

    if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
        raise UnsupportedSchemeError('URL must use http or https scheme', url)

    if not hostname:
        raise MalformedUrlError('Invalid URL format', url)

    return True


def validate_priority(priority: Optional[Union[str, float]]) -> bool:
    """Validate a priority value (0.0 to 1.0); None is accepted."""
    if priority is None:
        return True

    try:
        value = float(priority)
    except (TypeError, ValueError):
        raise OutOfRangeError('Priority must be a number between 0.0 and 1.0', priority) from None

    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise OutOfRangeError('Priority must be between 0.0 and 1.0', priority)

    return True


def validate_frequency(freq: Optional[str]) -> bool:
    """Validate a change frequency token; None is accepted."""
    if freq is None:
        return True

    if freq not in VALID_FREQUENCIES:
        raise UnknownFrequencyError(
            f"Invalid frequency, valid values are: {', '.join(VALID_FREQUENCIES)}", freq
        )

    return True


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601/W3C or RFC 2822 timestamp.

    Args:
        value: Timestamp string, e.g. ``2024-01-01``, ``2024-01-01T10:00:00Z``
            or ``Mon, 01 Jan 2024 10:00:00 GMT``.

    Returns:
        The parsed datetime.

    Raises:
        ValueError: If the string matches none of the supported formats.
    """
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        raise ValueError(f"Unrecognised timestamp: {value!r}") from None


def validate_last_modified(lastmod: Optional[str]) -> bool:
    """Validate a last-modification timestamp; None is accepted.

    Accepted formats are ISO 8601 / W3C datetime (``2024-01-01``,
    ``2024-01-01T10:30:00Z``, ``2024-01-01T10:30:00+02:00``) and RFC 2822
    (``Mon, 01 Jan 2024 10:30:00 GMT``). Other layouts such as
    ``2024/01/01`` are rejected.

    Raises:
        UnparseableDateError: If the value matches none of these formats.
    """
    if lastmod is None:
        return True

    try:
        parse_timestamp(lastmod)
    except ValueError:
        example = datetime.now().astimezone().isoformat(timespec='seconds')
        raise UnparseableDateError(
            f"Invalid date format, use ISO 8601 (e.g. {example})", lastmod
        ) from None

    return True


def validate_image(image: Mapping[str, Any]) -> bool:
    """Validate an image record, which must carry a valid ``url``."""
    if not image.get('url'):
        raise MissingUrlError('Image must have a URL')

    return validate_url(image['url'])


def validate_link(link: Mapping[str, Any]) -> bool:
    """Validate a translation or alternate record, which must carry a valid ``url``."""
    if not link.get('url'):
        raise MissingUrlError('Link must have a URL')

    return validate_url(link['url'])


def validate_item(
    location: str,
    last_modified: Optional[str] = None,
    priority: Optional[str] = None,
    frequency: Optional[str] = None,
    images: Iterable[Mapping[str, Any]] = (),
    translations: Iterable[Mapping[str, Any]] = (),
    alternates: Iterable[Mapping[str, Any]] = (),
    publication_date: Optional[str] = None,
) -> bool:
    """Validate all fields of a sitemap item, stopping at the first failure.

    Order: location, last_modified, priority, frequency, images, translations,
    alternates, publication_date.

    Args:
        location: Page URL.
        last_modified: Last modification timestamp.
        priority: Priority value.
        frequency: Change frequency.
        images: Image records.
        translations: Translation records.
        alternates: Alternate link records.
        publication_date: News publication timestamp.

    Returns:
        True if every field is valid.
    """
    validate_url(location)
    validate_last_modified(last_modified)
    validate_priority(priority)
    validate_frequency(frequency)

    for image in images:
        validate_image(image)

    for link in translations:
        validate_link(link)
    for link in alternates:
        validate_link(link)

    validate_last_modified(publication_date)

    return True
