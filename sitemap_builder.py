"""Sitemap builder.

``Sitemap`` collects URL items and sitemap index entries, validates them in
strict mode, escapes their string fields and renders or stores the result in
any registered format. Every mutating method returns the builder so calls can
be chained::

    Sitemap().add('https://example.com/', '2024-01-01', '1.0', 'daily').render('xml')
"""

import logging
import os
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from sitemap_config import SitemapConfig
from sitemap_errors import StoreError
from sitemap_generator import get_renderer, xml_escape
from sitemap_model import NewsMetadata, Record, SitemapModel, SitemapRef, UrlItem
from sitemap_validator import validate_item, validate_last_modified, validate_url

logger = logging.getLogger(__name__)

# Legacy array keys accepted by add_item
FIELD_ALIASES: Dict[str, str] = {
    'loc': 'location',
    'lastmod': 'last_modified',
    'freq': 'change_frequency',
    'changefreq': 'change_frequency',
    'googlenews': 'news_metadata',
}

NEWS_ALIASES: Dict[str, str] = {
    'sitename': 'site_name',
}

ITEM_FIELDS = (
    'location',
    'last_modified',
    'priority',
    'change_frequency',
    'title',
    'images',
    'translations',
    'alternates',
    'videos',
    'news_metadata',
)

NEWS_FIELDS = ('site_name', 'language', 'publication_date', 'genres', 'keywords', 'title')


class Sitemap:
    """Framework-agnostic sitemap builder.

    Attributes:
        model: Item store holding URL items and sitemap index entries.
        config: Configuration shared with the store.
    """

    def __init__(
        self,
        config_or_model: Optional[Union[SitemapConfig, SitemapModel, Mapping[str, Any]]] = None,
    ) -> None:
        """Initialize the builder.

        Args:
            config_or_model: A SitemapModel to use directly, a SitemapConfig or a
                config mapping to build a new store from, or None for defaults.
        """
        if isinstance(config_or_model, SitemapModel):
            self._model = config_or_model
        else:
            self._model = SitemapModel(config_or_model)
        self._channel: Dict[str, str] = {'title': '', 'link': ''}

    @property
    def model(self) -> SitemapModel:
        return self._model

    @property
    def config(self) -> SitemapConfig:
        return self._model.config

    @property
    def items(self) -> List[UrlItem]:
        return self._model.get_items()

    @property
    def sitemaps(self) -> List[SitemapRef]:
        return self._model.get_sitemap_refs()

    def set_channel(self, title: str = '', link: str = '') -> 'Sitemap':
        """Set the feed title and link used by the HTML and ROR renderers."""
        self._channel = {'title': title, 'link': link}
        return self

    def add(
        self,
        location: str,
        last_modified: Optional[Union[str, date]] = None,
        priority: Optional[str] = None,
        change_frequency: Optional[str] = None,
        images: Optional[Sequence[Record]] = None,
        title: Optional[str] = None,
        translations: Optional[Sequence[Record]] = None,
        videos: Optional[Sequence[Record]] = None,
        news_metadata: Optional[Mapping[str, Any]] = None,
        alternates: Optional[Sequence[Record]] = None,
    ) -> 'Sitemap':
        """Add a single URL item from individual fields.

        Args:
            location: Page URL.
            last_modified: Last modification timestamp (string, date or datetime).
            priority: Priority between 0.0 and 1.0.
            change_frequency: One of always, hourly, daily, weekly, monthly, yearly, never.
            images: Image records, each with a ``url``.
            title: Page title.
            translations: Records with ``language`` and ``url``.
            videos: Video records.
            news_metadata: Google News fields (``site_name``, ``language``, ...).
            alternates: Records with ``media`` and ``url``.

        Returns:
            The builder, for chaining.

        Raises:
            SitemapValidationError: In strict mode, if any field is invalid.
        """
        return self.add_item({
            'location': location,
            'last_modified': last_modified,
            'priority': priority,
            'change_frequency': change_frequency,
            'images': images or [],
            'title': title,
            'translations': translations or [],
            'videos': videos or [],
            'news_metadata': news_metadata or {},
            'alternates': alternates or [],
        })

    def add_item(
        self, params: Optional[Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]] = None
    ) -> 'Sitemap':
        """Add one item from a field mapping, or several from a list of mappings.

        Missing fields take their defaults (``location`` is ``/``). In strict mode
        the item is validated first and nothing is stored when validation fails.

        Args:
            params: Field mapping, or a list of field mappings.

        Returns:
            The builder, for chaining.
        """
        if params is None:
            params = {}

        # If a list of mappings, add each in order
        if isinstance(params, (list, tuple)):
            for entry in params:
                self.add_item(entry)
            return self

        fields = self._merge_defaults(params)

        if self.config.strict_mode:
            validate_item(
                fields['location'],
                fields['last_modified'],
                fields['priority'],
                fields['change_frequency'],
                fields['images'],
                fields['translations'],
                fields['alternates'],
                fields['news_metadata'].get('publication_date'),
            )

        escaped = self._model.escaping
        if escaped:
            fields = _escape_fields(fields)

        item = UrlItem(
            location=fields['location'],
            last_modified=fields['last_modified'],
            priority=fields['priority'],
            change_frequency=fields['change_frequency'],
            title=fields['title'],
            images=_frozen(fields['images']),
            videos=_frozen(fields['videos']),
            translations=_frozen(fields['translations']),
            alternates=_frozen(fields['alternates']),
            news_metadata=_news_metadata(fields['news_metadata']),
            escaped=escaped,
        )
        self._model.append_item(item)
        logger.debug(f"Added sitemap item {item.location}")
        return self

    def add_sitemap(self, location: str, last_modified: Optional[Union[str, date]] = None) -> 'Sitemap':
        """Add a sitemap index entry.

        Args:
            location: URL of the sitemap file.
            last_modified: Last modification timestamp.

        Returns:
            The builder, for chaining.
        """
        last_modified = _timestamp(last_modified)
        if self.config.strict_mode:
            validate_url(location)
            validate_last_modified(last_modified)

        self._model.append_sitemap_ref(SitemapRef(location, last_modified))
        return self

    def reset_sitemaps(
        self, sitemaps: Optional[Iterable[Union[SitemapRef, Mapping[str, Any]]]] = None
    ) -> 'Sitemap':
        """Replace the sitemap index entries (clears them when omitted)."""
        self._model.reset_sitemap_refs(sitemaps)
        return self

    def render_xml(self, style: Optional[str] = None) -> str:
        """Render the items as a sitemaps.org XML document.

        Args:
            style: Optional XSL stylesheet URL.

        Returns:
            UTF-8 XML string with declaration.

        Raises:
            RenderError: If the XML serializer fails.
        """
        return self._render_with('xml', style)

    def render(self, format: Optional[str] = None, style: Optional[str] = None) -> str:
        """Render the stored items in the given format.

        Args:
            format: Format token, defaults to the configured default format.
            style: Optional stylesheet URL.

        Returns:
            The rendered document.

        Raises:
            UnsupportedFormatError: If no renderer is registered for ``format``.
        """
        if format is None:
            format = self.config.default_format
        if format == 'xml':
            return self.render_xml(style)
        return self._render_with(format, style)

    def generate(self, format: Optional[str] = None, style: Optional[str] = None) -> str:
        """Alias of ``render``."""
        return self.render(format, style)

    def store(
        self,
        format: Optional[str] = None,
        filename: str = 'sitemap',
        path: Optional[Union[str, os.PathLike]] = None,
        style: Optional[str] = None,
    ) -> bool:
        """Render the sitemap and write it to a file.

        The format's file extension is appended unless ``filename`` already
        ends with it. Missing directories are created.
        Every XML dialect, including ``google-news`` and ``sitemapindex``,
        is written with the ``.xml`` extension.

        Args:
            format: Format token, defaults to the configured default format.
            filename: Target file name.
            path: Target directory, defaults to the current working directory.
            style: Optional stylesheet URL.

        Returns:
            True if the file was written, False if writing failed.

        Raises:
            StoreError: If the target directory cannot be created.
        """
        if format is None:
            format = self.config.default_format
        content = self.render(format, style)

        directory = Path(path) if path is not None else Path.cwd()
        full_path = directory / filename

        # Add extension if not present
        extension = f".{get_renderer(format).file_extension}"
        if not full_path.name.endswith(extension):
            full_path = full_path.with_name(full_path.name + extension)

        try:
            os.makedirs(full_path.parent, mode=0o755, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Failed to create directory: {full_path.parent}") from e

        try:
            full_path.write_text(content, encoding='utf-8')
        except OSError as e:
            logger.error(f"Failed to write sitemap to {full_path}: {e}")
            return False

        logger.info(f"Sitemap ({format}) saved to {full_path}")
        return True

    def _render_with(self, format: str, style: Optional[str]) -> str:
        renderer = get_renderer(format)
        if not self.config.use_styles:
            style = None
        return renderer.render(
            self._model.get_items(),
            self._model.get_sitemap_refs(),
            channel=dict(self._channel),
            style=style,
        )

    @staticmethod
    def _merge_defaults(params: Mapping[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            'location': '/',
            'last_modified': None,
            'priority': None,
            'change_frequency': None,
            'title': None,
            'images': [],
            'translations': [],
            'alternates': [],
            'videos': [],
            'news_metadata': {},
        }
        for key, value in params.items():
            name = FIELD_ALIASES.get(key, key)
            if name not in ITEM_FIELDS:
                logger.warning(f"Ignoring unknown sitemap item field: {key}")
                continue
            fields[name] = value

        fields['last_modified'] = _timestamp(fields['last_modified'])
        if fields['priority'] is not None:
            fields['priority'] = str(fields['priority'])
        for key in ('images', 'translations', 'alternates', 'videos'):
            fields[key] = [dict(record) for record in (fields[key] or [])]

        news: Dict[str, Any] = {}
        for key, value in dict(fields['news_metadata'] or {}).items():
            news[NEWS_ALIASES.get(key, key)] = value
        if news.get('publication_date') is not None:
            news['publication_date'] = _timestamp(news['publication_date'])
        fields['news_metadata'] = news
        return fields


def _timestamp(value: Optional[Union[str, date]]) -> Optional[str]:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _frozen(records: Iterable[Record]) -> tuple:
    """Copy sub-records into read-only mappings."""
    return tuple(MappingProxyType(dict(record)) for record in records)


def _escape_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Entity-escape the string fields that end up in rendered markup."""
    fields = dict(fields)
    fields['location'] = xml_escape(fields['location'])
    if fields['title'] is not None:
        fields['title'] = xml_escape(fields['title'])

    for key in ('images', 'translations', 'alternates'):
        fields[key] = [
            {name: xml_escape(value) if isinstance(value, str) else value for name, value in record.items()}
            for record in fields[key]
        ]

    videos = []
    for video in fields['videos']:
        video = dict(video)
        for name in ('title', 'description'):
            if video.get(name):
                video[name] = xml_escape(video[name])
        videos.append(video)
    fields['videos'] = videos

    news = dict(fields['news_metadata'])
    if news.get('site_name') is not None:
        news['site_name'] = xml_escape(news['site_name'])
    fields['news_metadata'] = news
    return fields


def _news_metadata(news: Mapping[str, Any]) -> NewsMetadata:
    """Build news metadata, defaulting site name, language and publication date."""
    values = {name: news[name] for name in NEWS_FIELDS if news.get(name) is not None}
    unknown = set(news) - set(NEWS_FIELDS)
    if unknown:
        logger.warning(f"Ignoring unknown news metadata fields: {', '.join(sorted(unknown))}")
    return NewsMetadata(**values)
