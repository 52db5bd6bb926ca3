"""Module for rendering stored sitemap items into output formats.

This module provides one renderer per output format:
- XML sitemap (sitemaps.org protocol 0.9), built as an ElementTree document
- Mobile, Google News and sitemap index XML variants
- ROR RSS and ROR RDF feeds
- Plain text (one URL per line) and a browsable HTML table

Items added with escaping on carry entity-escaped location, title and news
site name (``UrlItem.escaped``); every other field is stored raw. Every
XML/HTML output escapes each value exactly once; plain text output is
unescaped.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Tuple
from xml.dom import minidom
from xml.etree.ElementTree import Element, SubElement, tostring
from xml.parsers.expat import ExpatError
from xml.sax.saxutils import escape, unescape

from sitemap_errors import RenderError, UnsupportedFormatError

if TYPE_CHECKING:
    from sitemap_model import SitemapRef, UrlItem


SITEMAP_NS = 'http://www.sitemaps.org/schemas/sitemap/0.9'
MOBILE_NS = 'http://www.google.com/schemas/sitemap-mobile/1.0'
NEWS_NS = 'http://www.google.com/schemas/sitemap-news/0.9'
ROR_NS = 'http://rorweb.com/0.1/'
RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_ENTITIES = {'"': '&quot;', "'": '&apos;'}
_REVERSE_ENTITIES = {'&quot;': '"', '&apos;': "'"}


def xml_escape(value: str) -> str:
    """Escape ``& < > " '`` with XML entities."""
    return escape(value, _ENTITIES)


def xml_unescape(value: str) -> str:
    """Reverse ``xml_escape``."""
    return unescape(value, _REVERSE_ENTITIES)


def _plain(value, escaped: bool) -> str:
    text = str(value)
    return xml_unescape(text) if escaped else text


def _markup(value, escaped: bool) -> str:
    text = str(value)
    return text if escaped else xml_escape(text)


def _text(value) -> str:
    return xml_escape(str(value))


def _present(value) -> bool:
    return value is not None and value != ''


def _stylesheet(style: Optional[str]) -> List[str]:
    if not style:
        return []
    return [f'<?xml-stylesheet href="{xml_escape(style)}" type="text/xsl"?>']


class SitemapRenderer(ABC):
    """Base class for format-specific serializers.

    Attributes:
        format: Format token the renderer is registered under.
        file_extension: Extension used when the output is stored.
    """

    format: str = ''
    file_extension: str = 'xml'

    @abstractmethod
    def render(
        self,
        items: Sequence['UrlItem'],
        sitemaps: Sequence['SitemapRef'],
        channel: Optional[Mapping[str, str]] = None,
        style: Optional[str] = None,
    ) -> str:
        """Serialize the stored items.

        Args:
            items: URL items in insertion order; ``UrlItem.escaped`` tells
                whether an item's location, title and news site name hold entities.
            sitemaps: Sitemap index entries in insertion order.
            channel: Feed context with ``title`` and ``link`` (raw strings).
            style: Optional XSL stylesheet URL.

        Returns:
            Rendered document.
        """


class UrlsetRenderer(SitemapRenderer):
    """Standard XML sitemap with loc, lastmod, priority, changefreq and title."""

    format = 'xml'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        # Create root element with namespace
        urlset = Element('urlset')
        urlset.set('xmlns', SITEMAP_NS)

        for item in items:
            url_elem = SubElement(urlset, 'url')

            # Location (required)
            loc = SubElement(url_elem, 'loc')
            loc.text = _plain(item.location or '/', item.escaped)

            optional_fields = (
                ('lastmod', item.last_modified),
                ('priority', item.priority),
                ('changefreq', item.change_frequency),
            )
            for tag, value in optional_fields:
                if _present(value):
                    SubElement(url_elem, tag).text = str(value)

            if _present(item.title):
                SubElement(url_elem, 'title').text = _plain(item.title, item.escaped)

        return _pretty_xml(urlset, style)


def _pretty_xml(root: Element, style: Optional[str] = None) -> str:
    """Serialize an element tree with declaration and two-space indentation."""
    try:
        rough_string = tostring(root, encoding='unicode')
        reparsed = minidom.parseString(rough_string)
        if style:
            instruction = reparsed.createProcessingInstruction(
                'xml-stylesheet', f'href="{xml_escape(style)}" type="text/xsl"'
            )
            reparsed.insertBefore(instruction, reparsed.documentElement)
        return reparsed.toprettyxml(indent='  ', encoding='UTF-8').decode('utf-8')
    except (ExpatError, ValueError) as e:
        raise RenderError(f"Failed to generate XML sitemap: {e}") from e


class MobileRenderer(SitemapRenderer):
    """XML sitemap flagging every URL as mobile content."""

    format = 'xml-mobile'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        lines = [XML_DECLARATION, *_stylesheet(style)]
        lines.append(f'<urlset xmlns="{SITEMAP_NS}" xmlns:mobile="{MOBILE_NS}">')
        for item in items:
            lines.append('  <url>')
            lines.append(f'    <loc>{_markup(item.location, item.escaped)}</loc>')
            if _present(item.last_modified):
                lines.append(f'    <lastmod>{_text(item.last_modified)}</lastmod>')
            if _present(item.change_frequency):
                lines.append(f'    <changefreq>{_text(item.change_frequency)}</changefreq>')
            if _present(item.priority):
                lines.append(f'    <priority>{_text(item.priority)}</priority>')
            lines.append('    <mobile:mobile/>')
            lines.append('  </url>')
        lines.append('</urlset>')
        return '\n'.join(lines) + '\n'


class GoogleNewsRenderer(SitemapRenderer):
    """Google News sitemap with a news:news block per URL."""

    format = 'google-news'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        lines = [XML_DECLARATION, *_stylesheet(style)]
        lines.append(f'<urlset xmlns="{SITEMAP_NS}" xmlns:news="{NEWS_NS}">')
        for item in items:
            news = item.news_metadata
            # News title is stored raw, the item title may be escaped
            if _present(news.title):
                title = _text(news.title)
            elif _present(item.title):
                title = _markup(item.title, item.escaped)
            else:
                title = None
            lines.append('  <url>')
            lines.append(f'    <loc>{_markup(item.location, item.escaped)}</loc>')
            lines.append('    <news:news>')
            lines.append('      <news:publication>')
            lines.append(f'        <news:name>{_markup(news.site_name, item.escaped)}</news:name>')
            lines.append(f'        <news:language>{_text(news.language)}</news:language>')
            lines.append('      </news:publication>')
            if _present(news.genres):
                lines.append(f'      <news:genres>{_text(news.genres)}</news:genres>')
            lines.append(
                f'      <news:publication_date>{_text(news.publication_date)}'
                '</news:publication_date>'
            )
            if title is not None:
                lines.append(f'      <news:title>{title}</news:title>')
            if _present(news.keywords):
                lines.append(f'      <news:keywords>{_text(news.keywords)}</news:keywords>')
            lines.append('    </news:news>')
            lines.append('  </url>')
        lines.append('</urlset>')
        return '\n'.join(lines) + '\n'


class SitemapIndexRenderer(SitemapRenderer):
    """Sitemap index listing the stored sitemap references."""

    format = 'sitemapindex'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        # Index entries are stored without escaping
        lines = [XML_DECLARATION, *_stylesheet(style)]
        lines.append(f'<sitemapindex xmlns="{SITEMAP_NS}">')
        for ref in sitemaps:
            lines.append('  <sitemap>')
            lines.append(f'    <loc>{xml_escape(ref.location)}</loc>')
            if _present(ref.last_modified):
                lines.append(f'    <lastmod>{xml_escape(ref.last_modified)}</lastmod>')
            lines.append('  </sitemap>')
        lines.append('</sitemapindex>')
        return '\n'.join(lines) + '\n'


class RorRssRenderer(SitemapRenderer):
    """ROR (Resources of a Resource) feed in RSS 2.0."""

    format = 'ror-rss'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        title, link = _channel(channel)
        lines = [XML_DECLARATION, *_stylesheet(style)]
        lines.append(f'<rss version="2.0" xmlns:ror="{ROR_NS}">')
        lines.append('  <channel>')
        lines.append(f'    <title>{xml_escape(title)}</title>')
        lines.append(f'    <link>{xml_escape(link)}</link>')
        for item in items:
            lines.append('    <item>')
            lines.append(f'      <link>{_markup(item.location, item.escaped)}</link>')
            if _present(item.title):
                lines.append(f'      <title>{_markup(item.title, item.escaped)}</title>')
            if _present(item.last_modified):
                lines.append(f'      <ror:updated>{_text(item.last_modified)}</ror:updated>')
            if _present(item.change_frequency):
                lines.append(
                    f'      <ror:updatePeriod>{_text(item.change_frequency)}</ror:updatePeriod>'
                )
            if _present(item.priority):
                lines.append(f'      <ror:sortOrder>{_text(item.priority)}</ror:sortOrder>')
            lines.append('      <ror:resourceOf>sitemap</ror:resourceOf>')
            lines.append('    </item>')
        lines.append('  </channel>')
        lines.append('</rss>')
        return '\n'.join(lines) + '\n'


class RorRdfRenderer(SitemapRenderer):
    """ROR (Resources of a Resource) feed in RDF/XML."""

    format = 'ror-rdf'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        title, _ = _channel(channel)
        lines = [XML_DECLARATION, *_stylesheet(style)]
        lines.append(f'<rdf:RDF xmlns="{ROR_NS}" xmlns:rdf="{RDF_NS}">')
        lines.append('  <Resource rdf:about="sitemap">')
        lines.append(f'    <title>{xml_escape(title)}</title>')
        lines.append('    <type>sitemap</type>')
        lines.append('  </Resource>')
        for item in items:
            lines.append('  <Resource>')
            lines.append(f'    <url>{_markup(item.location, item.escaped)}</url>')
            if _present(item.title):
                lines.append(f'    <title>{_markup(item.title, item.escaped)}</title>')
            if _present(item.last_modified):
                lines.append(f'    <updated>{_text(item.last_modified)}</updated>')
            if _present(item.change_frequency):
                lines.append(f'    <updatePeriod>{_text(item.change_frequency)}</updatePeriod>')
            if _present(item.priority):
                lines.append(f'    <sortOrder>{_text(item.priority)}</sortOrder>')
            lines.append('    <resourceOf rdf:resource="sitemap"/>')
            lines.append('  </Resource>')
        lines.append('</rdf:RDF>')
        return '\n'.join(lines) + '\n'


class TextRenderer(SitemapRenderer):
    """Plain text list with one URL per line."""

    format = 'txt'
    file_extension = 'txt'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        return '\n'.join(_plain(item.location, item.escaped) for item in items)


class HtmlRenderer(SitemapRenderer):
    """Human-browsable HTML page with one table row per URL."""

    format = 'html'
    file_extension = 'html'

    def render(self, items, sitemaps, channel=None, style=None) -> str:
        title, _ = _channel(channel)
        heading = xml_escape(title or 'Sitemap')
        lines = [
            '<!DOCTYPE html>',
            '<html lang="en">',
            '<head>',
            '<meta charset="utf-8">',
            f'<title>{heading}</title>',
        ]
        if style:
            lines.append(f'<link rel="stylesheet" href="{xml_escape(style)}">')
        lines.extend([
            '</head>',
            '<body>',
            f'<h1>{heading}</h1>',
            '<table>',
            '<thead>',
            '<tr><th>URL</th><th>Last modified</th><th>Change frequency</th><th>Priority</th></tr>',
            '</thead>',
            '<tbody>',
        ])
        for item in items:
            location = _markup(item.location, item.escaped)
            label = _markup(item.title, item.escaped) if _present(item.title) else location
            cells = [
                f'<a href="{location}">{label}</a>',
                _text(item.last_modified) if _present(item.last_modified) else '',
                _text(item.change_frequency) if _present(item.change_frequency) else '',
                _text(item.priority) if _present(item.priority) else '',
            ]
            lines.append('<tr>' + ''.join(f'<td>{cell}</td>' for cell in cells) + '</tr>')
        lines.extend(['</tbody>', '</table>', '</body>', '</html>'])
        return '\n'.join(lines) + '\n'


def _channel(channel: Optional[Mapping[str, str]]) -> Tuple[str, str]:
    channel = channel or {}
    return channel.get('title') or '', channel.get('link') or ''


RENDERERS: Dict[str, SitemapRenderer] = {
    renderer.format: renderer
    for renderer in (
        UrlsetRenderer(),
        MobileRenderer(),
        HtmlRenderer(),
        TextRenderer(),
        GoogleNewsRenderer(),
        SitemapIndexRenderer(),
        RorRssRenderer(),
        RorRdfRenderer(),
    )
}

SUPPORTED_FORMATS: Tuple[str, ...] = tuple(RENDERERS)


def get_renderer(fmt: str) -> SitemapRenderer:
    """Look up the renderer registered for a format token.

    Args:
        fmt: Format token such as ``xml`` or ``google-news``.

    Returns:
        The registered renderer.

    Raises:
        UnsupportedFormatError: If no renderer is registered for ``fmt``.
    """
    try:
        return RENDERERS[fmt]
    except (KeyError, TypeError):
        raise UnsupportedFormatError(fmt) from None
