"""Feed retrieval and normalization into the canonical item model."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

import feedparser
import requests
from bs4 import BeautifulSoup

from .config import Config
from .content import resolve_missing_images
from .errors import FetchError, FetchErrorKind
from .models import NormalizedFeed, NormalizedItem

LOGGER = logging.getLogger(__name__)

_IMG_SRC_RE = re.compile(r"""<img[^>]+src\s*=\s*["']([^"'>]+)["']""", re.IGNORECASE)


class FeedFetcher:
    """Fetch one RSS or Atom feed and normalize its entries."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()

    def fetch(self, url: str) -> NormalizedFeed:
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
        }
        try:
            response = requests.get(url, timeout=self.config.fetch_timeout, headers=headers)
            response.raise_for_status()
        except requests.Timeout as exc:
            LOGGER.debug("Feed request timed out after %.1fs: %s", self.config.fetch_timeout, url)
            raise FetchError(url, FetchErrorKind.TIMEOUT, str(exc)) from exc
        except requests.RequestException as exc:
            LOGGER.debug("Feed request failed for %s: %s", url, exc)
            raise FetchError(url, FetchErrorKind.PARSE_OR_NETWORK, str(exc)) from exc

        parsed = feedparser.parse(response.content)
        # HTML pages and other XML (sitemaps) parse cleanly but carry no version.
        if not parsed.entries and (
            not parsed.get("version") or (parsed.get("bozo") and not parsed.feed.get("title"))
        ):
            reason = parsed.get("bozo_exception") if parsed.get("version") else "not an RSS or Atom document"
            LOGGER.debug("Could not parse feed %s: %s", url, reason)
            raise FetchError(url, FetchErrorKind.PARSE_OR_NETWORK, str(reason))

        feed = normalize_feed(parsed, url)
        if self.config.og_image_lookup:
            feed.items = resolve_missing_images(feed.items, self.config)
        LOGGER.info("Fetched %d items from %s", len(feed.items), url)
        return feed


def normalize_feed(parsed: Any, url: str) -> NormalizedFeed:
    """Build a ``NormalizedFeed`` from a feedparser result.

    ``feed_url`` is always the requested URL, whatever the document says.
    """

    meta = parsed.feed
    fetched_at = datetime.now(timezone.utc).isoformat()
    return NormalizedFeed(
        title=meta.get("title") or "Unknown Feed",
        description=meta.get("subtitle") or meta.get("description") or "",
        site_url=meta.get("link") or "",
        feed_url=url,
        last_build_date=meta.get("updated") or meta.get("published"),
        items=[normalize_entry(entry, fetched_at) for entry in parsed.entries],
    )


def normalize_entry(entry: Mapping[str, Any], fetched_at: Optional[str] = None) -> NormalizedItem:
    full_content = _full_content(entry)
    summary = entry.get("summary") or ""
    snippet = _plain_text(summary or full_content)
    link = entry.get("link") or ""
    title = entry.get("title") or ""
    fetched_at = fetched_at or datetime.now(timezone.utc).isoformat()

    return NormalizedItem(
        guid=entry.get("id") or link or title or str(uuid.uuid4()),
        title=title or "Untitled",
        link=link,
        pub_date=entry.get("published") or entry.get("updated") or fetched_at,
        content=full_content or summary or snippet,
        content_snippet=snippet,
        # feedparser folds dc:creator into ``author``.
        author=entry.get("creator") or entry.get("author") or "",
        image_url=resolve_image(entry),
        categories=_categories(entry),
    )


def resolve_image(entry: Mapping[str, Any]) -> Optional[str]:
    """Pick an image from the declared fields of an entry.

    Order: enclosure, media:content, media:thumbnail, first ``<img>`` in
    the full content, then in the summary.
    """

    for enclosure in entry.get("enclosures") or []:
        href = enclosure.get("href") or enclosure.get("url")
        if href:
            return href

    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            if media.get("url"):
                return media["url"]

    for html in (_full_content(entry), entry.get("summary") or ""):
        image_url = first_image_src(html)
        if image_url:
            return image_url
    return None


def first_image_src(html: str) -> Optional[str]:
    if not html:
        return None
    match = _IMG_SRC_RE.search(html)
    return match.group(1) if match else None


def _full_content(entry: Mapping[str, Any]) -> str:
    parts: List[str] = []
    for part in entry.get("content") or []:
        value = part.get("value") if isinstance(part, Mapping) else None
        if isinstance(value, str) and value:
            parts.append(value)
    return "\n\n".join(parts)


def _plain_text(html: str) -> str:
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return " ".join(text.split())


def _categories(entry: Mapping[str, Any]) -> Optional[List[str]]:
    terms = [tag.get("term") for tag in entry.get("tags") or [] if tag.get("term")]
    return terms or None


__all__ = ["FeedFetcher", "first_image_src", "normalize_entry", "normalize_feed", "resolve_image"]
