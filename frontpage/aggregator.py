"""Concurrent fan-out over many feeds with per-feed failure isolation."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Sequence

from .config import Config
from .errors import FetchError, FetchErrorKind
from .fetchers import FeedFetcher
from .models import AggregateResult, AggregatedItem, FetchOutcome, NormalizedItem

LOGGER = logging.getLogger(__name__)

ALL_SUBSCRIPTIONS_TITLE = "All Subscriptions"


def _settle(fetcher: FeedFetcher, url: str) -> FetchOutcome:
    try:
        return FetchOutcome(url=url, feed=fetcher.fetch(url))
    except FetchError as exc:
        return FetchOutcome(url=url, error=exc)
    except Exception as exc:
        LOGGER.exception("Fetcher failed unexpectedly for %s: %s", url, exc)
        return FetchOutcome(url=url, error=FetchError(url, FetchErrorKind.PARSE_OR_NETWORK, str(exc)))


def fetch_all(
    urls: Sequence[str],
    fetcher: Optional[FeedFetcher] = None,
    max_workers: Optional[int] = None,
) -> List[FetchOutcome]:
    """Fetch every URL concurrently and return one outcome per URL, in order.

    Never raises for a failing feed; the failure is carried in the outcome.
    """

    urls = list(urls)
    if not urls:
        return []
    fetcher = fetcher or FeedFetcher()
    workers = max_workers or fetcher.config.max_workers

    outcomes: Dict[int, FetchOutcome] = {}
    with ThreadPoolExecutor(max_workers=min(workers, len(urls))) as executor:
        futures = {executor.submit(_settle, fetcher, url): idx for idx, url in enumerate(urls)}
        for future in as_completed(futures):
            outcomes[futures[future]] = future.result()

    return [outcomes[idx] for idx in range(len(urls))]


def sort_by_recency(items: Iterable[NormalizedItem]) -> list:
    """Order items newest first; unparsable dates sort as oldest, ties keep arrival order."""

    return sorted(items, key=lambda item: item.published_at, reverse=True)


def merge_outcomes(outcomes: Iterable[FetchOutcome]) -> AggregateResult:
    items: List[AggregatedItem] = []
    failed: List[str] = []
    for outcome in outcomes:
        if not outcome.ok:
            LOGGER.warning("Dropping feed %s from aggregate: %s", outcome.url, outcome.error)
            failed.append(outcome.url)
            continue
        feed = outcome.feed
        items.extend(AggregatedItem.from_item(item, feed.title, outcome.url) for item in feed.items)

    LOGGER.info("Aggregated %d items (%d feeds failed)", len(items), len(failed))
    return AggregateResult(items=sort_by_recency(items), failed_urls=failed)


def aggregate_all(
    urls: Sequence[str],
    fetcher: Optional[FeedFetcher] = None,
    config: Optional[Config] = None,
) -> AggregateResult:
    """Fetch all feeds, annotate their items and pool them newest first."""

    fetcher = fetcher or FeedFetcher(config)
    return merge_outcomes(fetch_all(urls, fetcher))


def all_subscriptions(urls: Sequence[str], fetcher: Optional[FeedFetcher] = None) -> dict:
    result = aggregate_all(urls, fetcher)
    return {
        "title": ALL_SUBSCRIPTIONS_TITLE,
        "items": result.items,
        "failed_urls": result.failed_urls,
    }


__all__ = [
    "ALL_SUBSCRIPTIONS_TITLE",
    "aggregate_all",
    "all_subscriptions",
    "fetch_all",
    "merge_outcomes",
    "sort_by_recency",
]
