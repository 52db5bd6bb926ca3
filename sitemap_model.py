"""Sitemap records and the in-memory item store.

``UrlItem`` and ``SitemapRef`` are immutable value objects. ``SitemapModel``
keeps them in insertion order and owns the configuration that decides whether
the builder escapes string fields before storing them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from sitemap_config import SitemapConfig

logger = logging.getLogger(__name__)

# Sub-records (images, videos, translations, alternates) stay plain mappings
Record = Dict[str, Any]

PUBLICATION_DATE_FORMAT: str = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class NewsMetadata:
    """Google News block of a URL item."""

    site_name: str = ''
    language: str = 'en'
    publication_date: str = field(
        default_factory=lambda: datetime.now().strftime(PUBLICATION_DATE_FORMAT)
    )
    genres: Optional[str] = None
    keywords: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class UrlItem:
    """One page entry of a sitemap.

    Attributes:
        location: Page URL (``loc``).
        last_modified: Last modification timestamp (``lastmod``).
        priority: Priority between 0.0 and 1.0, kept as given.
        change_frequency: One of the protocol change frequencies.
        title: Page title.
        images: Image records with ``url`` and optional ``title``, ``caption``,
            ``geo_location`` and ``license``.
        videos: Video records (``title``, ``description``, ``content_location``, ...).
        translations: Records with ``language`` and ``url``.
        alternates: Records with ``media`` and ``url``.
        news_metadata: Google News metadata, always filled.
        escaped: Whether the location, title, news site name and sub-record
            strings already hold XML entities. Set when the item is added.
    """

    location: str = '/'
    last_modified: Optional[str] = None
    priority: Optional[str] = None
    change_frequency: Optional[str] = None
    title: Optional[str] = None
    images: Tuple[Record, ...] = ()
    videos: Tuple[Record, ...] = ()
    translations: Tuple[Record, ...] = ()
    alternates: Tuple[Record, ...] = ()
    news_metadata: NewsMetadata = field(default_factory=NewsMetadata)
    escaped: bool = False


@dataclass(frozen=True)
class SitemapRef:
    """One entry of a sitemap index file."""

    location: str
    last_modified: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'SitemapRef':
        """Build a reference from ``location``/``loc`` and ``last_modified``/``lastmod`` keys."""
        return cls(
            location=data.get('location', data.get('loc', '')),
            last_modified=data.get('last_modified', data.get('lastmod')),
        )


class SitemapModel:
    """Ordered storage for URL items and sitemap index entries.

    No validation happens here; the builder is responsible for checking and
    escaping items before they are appended.
    """

    def __init__(self, config: Optional[Union[SitemapConfig, Mapping[str, Any]]] = None) -> None:
        """Initialize an empty store.

        Args:
            config: Configuration (or a mapping for ``SitemapConfig.from_dict``).
                A default configuration is created when omitted.
        """
        if config is None:
            config = SitemapConfig()
        elif not isinstance(config, SitemapConfig):
            config = SitemapConfig.from_dict(config)
        self._config = config
        self._items: List[UrlItem] = []
        self._sitemaps: List[SitemapRef] = []

    def __len__(self) -> int:
        return len(self._items)

    @property
    def config(self) -> SitemapConfig:
        return self._config

    @property
    def escaping(self) -> bool:
        return self._config.escaping

    def set_escaping(self, escaping: bool) -> 'SitemapModel':
        self._config.set_escaping(escaping)
        return self

    def append_item(self, item: UrlItem) -> None:
        """Append a URL item; duplicates are kept."""
        self._items.append(item)

    def get_items(self) -> List[UrlItem]:
        """Return a copy of the stored URL items in insertion order."""
        return list(self._items)

    def append_sitemap_ref(self, ref: SitemapRef) -> None:
        """Append a sitemap index entry."""
        self._sitemaps.append(ref)

    def get_sitemap_refs(self) -> List[SitemapRef]:
        """Return a copy of the sitemap index entries in insertion order."""
        return list(self._sitemaps)

    def reset_sitemap_refs(
        self, refs: Optional[Iterable[Union[SitemapRef, Mapping[str, Any]]]] = None
    ) -> None:
        """Replace the sitemap index entries.

        Args:
            refs: New entries, either SitemapRef objects or mappings. Clears the
                list when omitted.
        """
        self._sitemaps = [
            ref if isinstance(ref, SitemapRef) else SitemapRef.from_mapping(ref)
            for ref in (refs or [])
        ]
        logger.debug(f"Sitemap index reset with {len(self._sitemaps)} entries")
