"""
Tests for the format renderers and the renderer registry.
"""

from xml.etree import ElementTree as ET

import pytest
from bs4 import BeautifulSoup

from sitemap_errors import UnsupportedFormatError
from sitemap_generator import (
    NEWS_NS,
    RENDERERS,
    SITEMAP_NS,
    SUPPORTED_FORMATS,
    GoogleNewsRenderer,
    HtmlRenderer,
    MobileRenderer,
    RorRdfRenderer,
    RorRssRenderer,
    SitemapIndexRenderer,
    TextRenderer,
    UrlsetRenderer,
    get_renderer,
    xml_escape,
    xml_unescape,
)
from sitemap_model import NewsMetadata, SitemapRef, UrlItem


NS = {'sm': SITEMAP_NS, 'news': NEWS_NS}


@pytest.fixture
def items():
    return [
        UrlItem(
            location='https://example.com/',
            last_modified='2024-01-01',
            priority='1.0',
            change_frequency='daily',
            title='Home',
        ),
        UrlItem(
            location='https://example.com/search?q=a&amp;page=2',
            title='Tom &amp; Jerry',
            escaped=True,
        ),
    ]


def parse(output):
    return ET.fromstring(output.encode('utf-8'))


class TestEscapeHelpers:
    def test_escape_all_xml_specials(self):
        assert xml_escape('<a href="x">Tom & Jerry\'s</a>') == \
            '&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&apos;s&lt;/a&gt;'

    def test_unescape_reverses_escape(self):
        text = '<tag attr="1">A & B\'s</tag>'
        assert xml_unescape(xml_escape(text)) == text


class TestRegistry:
    def test_supported_formats(self):
        assert set(SUPPORTED_FORMATS) == {
            'xml', 'xml-mobile', 'html', 'txt', 'google-news', 'sitemapindex', 'ror-rss', 'ror-rdf',
        }

    @pytest.mark.parametrize('fmt', SUPPORTED_FORMATS)
    def test_get_renderer(self, fmt):
        renderer = get_renderer(fmt)
        assert renderer is RENDERERS[fmt]
        assert renderer.format == fmt

    @pytest.mark.parametrize('fmt', ['json', 'XML', '', 'rss'])
    def test_unknown_format(self, fmt):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            get_renderer(fmt)
        assert exc_info.value.format == fmt

    @pytest.mark.parametrize('fmt,extension', [
        ('xml', 'xml'), ('xml-mobile', 'xml'), ('google-news', 'xml'), ('sitemapindex', 'xml'),
        ('ror-rss', 'xml'), ('ror-rdf', 'xml'), ('txt', 'txt'), ('html', 'html'),
    ])
    def test_file_extensions(self, fmt, extension):
        assert get_renderer(fmt).file_extension == extension


class TestUrlsetRenderer:
    def test_declaration_and_namespace(self, items):
        output = UrlsetRenderer().render(items, [])
        assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert f'<urlset xmlns="{SITEMAP_NS}">' in output

    def test_optional_elements_only_when_present(self, items):
        root = parse(UrlsetRenderer().render(items, []))
        urls = root.findall('sm:url', NS)
        assert len(urls) == 2
        assert urls[0].findtext('sm:lastmod', namespaces=NS) == '2024-01-01'
        assert urls[0].findtext('sm:priority', namespaces=NS) == '1.0'
        assert urls[0].findtext('sm:changefreq', namespaces=NS) == 'daily'
        assert urls[1].find('sm:lastmod', NS) is None
        assert urls[1].find('sm:priority', NS) is None

    def test_escaped_values_are_written_once(self, items):
        output = UrlsetRenderer().render(items, [])
        assert '<loc>https://example.com/search?q=a&amp;page=2</loc>' in output
        assert '<title>Tom &amp; Jerry</title>' in output
        assert '&amp;amp;' not in output

    def test_raw_values_are_escaped(self):
        item = UrlItem(location='https://example.com/?a=1&b=2')
        output = UrlsetRenderer().render([item], [])
        assert '<loc>https://example.com/?a=1&amp;b=2</loc>' in output

    def test_raw_fields_keep_literal_entities(self):
        item = UrlItem(location='https://example.com/', last_modified='2024-01-01&amp;', escaped=True)
        output = UrlsetRenderer().render([item], [])
        assert '<lastmod>2024-01-01&amp;amp;</lastmod>' in output
        assert parse(output).findtext('sm:url/sm:lastmod', namespaces=NS) == '2024-01-01&amp;'

    def test_mixed_escaped_and_raw_items(self):
        items = [
            UrlItem(location='https://example.com/?a=1&amp;b=2', escaped=True),
            UrlItem(location='https://example.com/?c=3&d=4'),
        ]
        output = UrlsetRenderer().render(items, [])
        assert '<loc>https://example.com/?a=1&amp;b=2</loc>' in output
        assert '<loc>https://example.com/?c=3&amp;d=4</loc>' in output
        assert '&amp;amp;' not in output

    def test_missing_location_defaults_to_root(self):
        output = UrlsetRenderer().render([UrlItem(location='')], [])
        assert '<loc>/</loc>' in output

    def test_stylesheet_instruction(self, items):
        output = UrlsetRenderer().render(items, [], style='/sitemap.xsl')
        assert '<?xml-stylesheet href="/sitemap.xsl" type="text/xsl"?>' in output
        assert output.index('xml-stylesheet') < output.index('<urlset')

    def test_empty_urlset(self):
        root = parse(UrlsetRenderer().render([], []))
        assert root.tag == f'{{{SITEMAP_NS}}}urlset'
        assert list(root) == []


class TestTemplateRenderers:
    def test_mobile(self, items):
        output = MobileRenderer().render(items, [])
        root = parse(output)
        assert output.count('<mobile:mobile/>') == 2
        assert root.findtext('sm:url/sm:loc', namespaces=NS) == 'https://example.com/'

    def test_google_news(self):
        news = NewsMetadata(
            site_name='Daily &amp; Co',
            language='de',
            publication_date='2024-01-01 10:00:00',
            genres='PressRelease',
            keywords='launch, product',
            title='Launch',
        )
        item = UrlItem(location='https://example.com/news/1', title='Fallback', news_metadata=news, escaped=True)
        root = parse(GoogleNewsRenderer().render([item], []))
        block = root.find('sm:url/news:news', NS)
        assert block.findtext('news:publication/news:name', namespaces=NS) == 'Daily & Co'
        assert block.findtext('news:publication/news:language', namespaces=NS) == 'de'
        assert block.findtext('news:publication_date', namespaces=NS) == '2024-01-01 10:00:00'
        assert block.findtext('news:genres', namespaces=NS) == 'PressRelease'
        assert block.findtext('news:keywords', namespaces=NS) == 'launch, product'
        assert block.findtext('news:title', namespaces=NS) == 'Launch'

    def test_google_news_escapes_raw_news_fields(self):
        news = NewsMetadata(
            site_name='Daily &amp; Co',
            publication_date='2024-01-01 10:00:00',
            genres='Blog & Opinion',
            keywords='Business & Finance',
            title='Cats & Dogs',
        )
        item = UrlItem(location='https://example.com/news/1', news_metadata=news, escaped=True)
        output = GoogleNewsRenderer().render([item], [])
        block = parse(output).find('sm:url/news:news', NS)
        assert block.findtext('news:publication/news:name', namespaces=NS) == 'Daily & Co'
        assert block.findtext('news:genres', namespaces=NS) == 'Blog & Opinion'
        assert block.findtext('news:keywords', namespaces=NS) == 'Business & Finance'
        assert block.findtext('news:title', namespaces=NS) == 'Cats & Dogs'
        assert '&amp;amp;' not in output

    def test_raw_item_fields_are_escaped_in_every_xml_dialect(self):
        item = UrlItem(
            location='https://example.com/?a=1&b=2',
            last_modified='2024-01-01',
            priority='0.5',
            change_frequency='daily',
            title='Q&A',
        )
        for fmt in ('xml-mobile', 'google-news', 'ror-rss', 'ror-rdf'):
            output = get_renderer(fmt).render([item], [])
            parse(output)
            assert 'a=1&amp;b=2' in output
            assert '&amp;amp;' not in output

    def test_google_news_falls_back_to_item_title(self, items):
        root = parse(GoogleNewsRenderer().render(items, []))
        titles = [el.text for el in root.iter(f'{{{NEWS_NS}}}title')]
        assert titles == ['Home', 'Tom & Jerry']

    def test_sitemap_index(self, items):
        refs = [
            SitemapRef('https://example.com/sitemap-1.xml', '2024-01-01'),
            SitemapRef('https://example.com/sitemap-2.xml?part=a&b'),
        ]
        root = parse(SitemapIndexRenderer().render(items, refs))
        assert root.tag == f'{{{SITEMAP_NS}}}sitemapindex'
        entries = root.findall('sm:sitemap', NS)
        assert [e.findtext('sm:loc', namespaces=NS) for e in entries] == [
            'https://example.com/sitemap-1.xml',
            'https://example.com/sitemap-2.xml?part=a&b',
        ]
        assert entries[0].findtext('sm:lastmod', namespaces=NS) == '2024-01-01'
        assert entries[1].find('sm:lastmod', NS) is None

    def test_ror_rss(self, items):
        channel = {'title': 'News & Views', 'link': 'https://example.com/'}
        root = parse(RorRssRenderer().render(items, [], channel=channel))
        assert root.tag == 'rss'
        assert root.findtext('channel/title') == 'News & Views'
        assert root.findtext('channel/link') == 'https://example.com/'
        links = [el.text for el in root.findall('channel/item/link')]
        assert links == ['https://example.com/', 'https://example.com/search?q=a&page=2']

    def test_ror_rdf(self, items):
        output = RorRdfRenderer().render(items, [], channel={'title': 'Site'})
        root = parse(output)
        resources = root.findall('{http://rorweb.com/0.1/}Resource')
        assert len(resources) == 3
        assert resources[1].findtext('{http://rorweb.com/0.1/}url') == 'https://example.com/'

    def test_text(self, items):
        output = TextRenderer().render(items, [])
        assert output.splitlines() == ['https://example.com/', 'https://example.com/search?q=a&page=2']

    def test_text_empty(self):
        assert TextRenderer().render([], []) == ''

    def test_html_table(self, items):
        output = HtmlRenderer().render(items, [], channel={'title': 'My <Site>'})
        soup = BeautifulSoup(output, 'html.parser')
        assert soup.title.string == 'My <Site>'
        rows = soup.find('tbody').find_all('tr')
        assert len(rows) == 2
        first = [td.get_text() for td in rows[0].find_all('td')]
        assert first == ['Home', '2024-01-01', 'daily', '1.0']
        link = rows[1].find('a')
        assert link['href'] == 'https://example.com/search?q=a&page=2'
        assert link.get_text() == 'Tom & Jerry'

    def test_html_escapes_raw_values(self):
        item = UrlItem(location='https://example.com/', title='<script>')
        output = HtmlRenderer().render([item], [])
        assert '<script>' not in output
        assert '&lt;script&gt;' in output

    @pytest.mark.parametrize('fmt', ['xml-mobile', 'google-news', 'sitemapindex', 'ror-rss', 'ror-rdf'])
    def test_xml_dialects_are_well_formed(self, fmt, items):
        output = get_renderer(fmt).render(items, [SitemapRef('https://example.com/s.xml')], style='/s.xsl')
        assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<?xml-stylesheet')
        parse(output)
