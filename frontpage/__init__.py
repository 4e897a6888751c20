"""Feed normalization, aggregation, unread tracking and OPML exchange."""

from .config import Config, load_config
from .fetchers import FeedFetcher

__all__ = ["Config", "FeedFetcher", "load_config"]
