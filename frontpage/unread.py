"""Unread-state resolution from last-read timestamps and explicit read sets."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from .aggregator import fetch_all
from .fetchers import FeedFetcher
from .models import EPOCH, NormalizedFeed, ReadState, UnreadCount

LOGGER = logging.getLogger(__name__)


def _as_aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_unread(feed: NormalizedFeed, state: ReadState) -> int:
    """Count items whose guid is unread and that were published after the last read mark."""

    last_read = _as_aware(state.last_read_at)
    return sum(
        1
        for item in feed.items
        if item.guid not in state.read_guids and item.published_at > last_read
    )


def unread_counts(
    subscriptions: Mapping[str, str],
    states: Mapping[str, ReadState],
    fetcher: Optional[FeedFetcher] = None,
) -> List[UnreadCount]:
    """Compute unread counts for ``subscription_id -> feed url``.

    A subscription whose feed cannot be fetched reports zero.
    """

    ids = list(subscriptions)
    outcomes = fetch_all([subscriptions[sub_id] for sub_id in ids], fetcher)

    counts: List[UnreadCount] = []
    for sub_id, outcome in zip(ids, outcomes):
        if not outcome.ok:
            LOGGER.warning("Unread count for %s unavailable: %s", sub_id, outcome.error)
            counts.append(UnreadCount(subscription_id=sub_id, unread_count=0))
            continue
        state = states.get(sub_id) or ReadState(subscription_id=sub_id)
        counts.append(UnreadCount(subscription_id=sub_id, unread_count=compute_unread(outcome.feed, state)))
    return counts


def guest_counts(fetcher: Optional[FeedFetcher] = None, urls: Optional[Sequence[str]] = None) -> Dict[str, int]:
    """Raw item counts for the fallback feed list used without an identity."""

    fetcher = fetcher or FeedFetcher()
    urls = list(urls if urls is not None else fetcher.config.guest_feeds)
    return {
        outcome.url: len(outcome.feed.items) if outcome.ok else 0
        for outcome in fetch_all(urls, fetcher)
    }


def mark_feed_read(state: ReadState, now: Optional[datetime] = None) -> ReadState:
    return replace(state, last_read_at=now or datetime.now(timezone.utc))


def mark_item_read(state: ReadState, guid: str) -> ReadState:
    return replace(state, read_guids=state.read_guids | {guid})


__all__ = ["compute_unread", "guest_counts", "mark_feed_read", "mark_item_read", "unread_counts"]
