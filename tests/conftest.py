"""Shared test fixtures."""

from __future__ import annotations

from typing import Dict, Optional, Union
from unittest.mock import MagicMock

import pytest
import requests

from frontpage.config import Config
from frontpage.errors import FetchError, FetchErrorKind
from frontpage.models import NormalizedFeed, NormalizedItem

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Example News</title>
    <link>https://example.com/</link>
    <description>All the news that fits</description>
    <lastBuildDate>Mon, 06 Jan 2025 12:00:00 GMT</lastBuildDate>
    <item>
      <title>Enclosure item</title>
      <link>https://example.com/a</link>
      <guid>a-1</guid>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
      <description>Plain &lt;b&gt;summary&lt;/b&gt; text</description>
      <enclosure url="https://img.example.com/a.jpg" type="image/jpeg" length="100"/>
      <dc:creator>Jane Doe</dc:creator>
      <category>Tech</category>
    </item>
    <item>
      <title>Media item</title>
      <link>https://example.com/b</link>
      <pubDate>Mon, 06 Jan 2025 09:00:00 GMT</pubDate>
      <media:content url="https://img.example.com/b.jpg" medium="image"/>
    </item>
    <item>
      <title>Thumbnail item</title>
      <link>https://example.com/c</link>
      <pubDate>Mon, 06 Jan 2025 08:00:00 GMT</pubDate>
      <media:thumbnail url="https://img.example.com/c-thumb.jpg"/>
    </item>
    <item>
      <title>Inline image item</title>
      <link>https://example.com/d</link>
      <pubDate>Mon, 06 Jan 2025 07:00:00 GMT</pubDate>
      <description>Short text</description>
      <content:encoded><![CDATA[<p>Body <img src="https://img.example.com/d.png" alt="d"></p>]]></content:encoded>
    </item>
    <item>
      <description>Nothing identifying here</description>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Blog</title>
  <subtitle>Notes from the field</subtitle>
  <link href="https://blog.example.org/"/>
  <id>urn:example:blog</id>
  <updated>2025-01-05T00:00:00Z</updated>
  <entry>
    <title>First post</title>
    <link href="https://blog.example.org/1"/>
    <id>urn:example:post:1</id>
    <updated>2025-01-05T08:00:00Z</updated>
    <author><name>Sam Writer</name></author>
    <summary>Hello world</summary>
  </entry>
</feed>
"""

HTML_PAGE = """<!DOCTYPE html>
<html><head><title>Home</title></head><body><p>Welcome</p></body></html>
"""

SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/</loc></url>
</urlset>
"""


def make_response(body: Union[str, bytes], status: int = 200) -> MagicMock:
    """Build a fake ``requests`` response."""

    raw = body.encode("utf-8") if isinstance(body, str) else body
    response = MagicMock()
    response.status_code = status
    response.content = raw
    response.text = raw.decode("utf-8", errors="replace")
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        response.raise_for_status.return_value = None
    return response


def url_router(routes: Dict[str, Union[MagicMock, Exception]]):
    """Side effect for a patched ``requests.get`` dispatching on URL."""

    def _get(url, *args, **kwargs):
        target = routes.get(url)
        if target is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(target, Exception):
            raise target
        return target

    return _get


def make_item(
    guid: str,
    pub_date: str = "2025-01-01T00:00:00Z",
    title: str = "",
    snippet: str = "",
    author: str = "",
) -> NormalizedItem:
    return NormalizedItem(
        guid=guid,
        title=title or guid,
        link=f"https://example.com/{guid}",
        pub_date=pub_date,
        content=snippet,
        content_snippet=snippet,
        author=author,
    )


def make_feed(url: str, *items: NormalizedItem, title: str = "Feed") -> NormalizedFeed:
    return NormalizedFeed(title=title, description="", site_url="", feed_url=url, items=list(items))


class StubFetcher:
    """Fetcher double returning canned feeds or raising per URL."""

    def __init__(self, feeds: Dict[str, Union[NormalizedFeed, Exception]], config: Optional[Config] = None) -> None:
        self.feeds = feeds
        self.config = config or Config(og_image_lookup=False)
        self.calls = []

    def fetch(self, url: str) -> NormalizedFeed:
        self.calls.append(url)
        target = self.feeds.get(url)
        if target is None:
            raise FetchError(url, FetchErrorKind.PARSE_OR_NETWORK, "unreachable")
        if isinstance(target, Exception):
            raise target
        return target


@pytest.fixture
def test_config(tmp_path):
    """Config with og:image lookups disabled and a temp state file."""
    return Config(og_image_lookup=False, state_file=tmp_path / "state.json")
