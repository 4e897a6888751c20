"""Shared dataclasses and type definitions for the feed core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional

from dateutil import parser as date_parser

from .errors import FetchError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse a feed date string, falling back to the epoch.

    Naive results are taken to be UTC so that every value compares.
    """

    if not value:
        return EPOCH
    try:
        parsed = date_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class NormalizedItem:
    """Canonical item representation produced for every feed entry."""

    guid: str
    title: str
    link: str
    pub_date: str
    content: str
    content_snippet: str
    author: Optional[str] = None
    image_url: Optional[str] = None
    categories: Optional[List[str]] = None

    @property
    def published_at(self) -> datetime:
        return parse_timestamp(self.pub_date)


@dataclass
class AggregatedItem(NormalizedItem):
    """Item annotated with the feed it came from."""

    feed_title: str = ""
    feed_url: str = ""

    @classmethod
    def from_item(cls, item: NormalizedItem, feed_title: str, feed_url: str) -> "AggregatedItem":
        return cls(
            guid=item.guid,
            title=item.title,
            link=item.link,
            pub_date=item.pub_date,
            content=item.content,
            content_snippet=item.content_snippet,
            author=item.author,
            image_url=item.image_url,
            categories=list(item.categories) if item.categories is not None else None,
            feed_title=feed_title,
            feed_url=feed_url,
        )


@dataclass
class NormalizedFeed:
    title: str
    description: str
    site_url: str
    feed_url: str
    last_build_date: Optional[str] = None
    items: List[NormalizedItem] = field(default_factory=list)


@dataclass(frozen=True)
class ReadState:
    """Read markers for one subscription, supplied by the storage layer."""

    subscription_id: str
    last_read_at: Optional[datetime] = None
    read_guids: FrozenSet[str] = frozenset()


@dataclass
class OpmlFeedDescriptor:
    xml_url: str
    title: str
    html_url: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None


@dataclass
class Subscription:
    """A stored subscription as handed over for OPML export."""

    xml_url: str
    title: str
    html_url: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None


@dataclass
class FetchOutcome:
    """Settled result of fetching one URL inside a batch."""

    url: str
    feed: Optional[NormalizedFeed] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.feed is not None


@dataclass
class AggregateResult:
    items: List[AggregatedItem]
    failed_urls: List[str] = field(default_factory=list)


@dataclass
class SearchResult:
    query: str
    count: int
    items: List[AggregatedItem]


@dataclass
class UnreadCount:
    subscription_id: str
    unread_count: int


__all__ = [
    "AggregateResult",
    "AggregatedItem",
    "EPOCH",
    "FetchOutcome",
    "NormalizedFeed",
    "NormalizedItem",
    "OpmlFeedDescriptor",
    "ReadState",
    "SearchResult",
    "Subscription",
    "UnreadCount",
    "parse_timestamp",
]
