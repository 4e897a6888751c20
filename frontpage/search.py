"""Keyword search over aggregated items."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .aggregator import aggregate_all
from .errors import ValidationError, ValidationErrorKind
from .fetchers import FeedFetcher
from .models import AggregatedItem, SearchResult

LOGGER = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 50


def normalize_query(query: Optional[str]) -> str:
    normalized = (query or "").strip().lower()
    if len(normalized) < MIN_QUERY_LENGTH:
        raise ValidationError(
            ValidationErrorKind.QUERY_TOO_SHORT,
            f"Query must be at least {MIN_QUERY_LENGTH} characters",
        )
    return normalized


def _contains(value: Optional[str], query: str) -> bool:
    return bool(value) and query in value.lower()


def matches(item: AggregatedItem, query: str) -> bool:
    return (
        _contains(item.title, query)
        or _contains(item.content_snippet, query)
        or _contains(item.author, query)
    )


def search(items: Iterable[AggregatedItem], query: str, limit: int = DEFAULT_LIMIT) -> SearchResult:
    """Return items matching ``query``, title hits first, newest first within each group."""

    normalized = normalize_query(query)
    hits: List[AggregatedItem] = [item for item in items if matches(item, normalized)]
    hits.sort(key=lambda item: (_contains(item.title, normalized), item.published_at), reverse=True)
    hits = hits[:limit]
    LOGGER.debug("Search %r matched %d items", normalized, len(hits))
    return SearchResult(query=normalized, count=len(hits), items=hits)


def search_subscriptions(
    urls: Sequence[str],
    query: str,
    fetcher: Optional[FeedFetcher] = None,
) -> SearchResult:
    # Reject bad queries before touching the network.
    normalize_query(query)
    fetcher = fetcher or FeedFetcher()
    result = aggregate_all(urls, fetcher)
    return search(result.items, query, limit=fetcher.config.search_limit)


__all__ = ["MIN_QUERY_LENGTH", "matches", "normalize_query", "search", "search_subscriptions"]
