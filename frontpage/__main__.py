"""Command-line entry point for the frontpage feed core."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .aggregator import all_subscriptions
from .config import Config, load_config
from .errors import FrontpageError
from .fetchers import FeedFetcher
from .models import OpmlFeedDescriptor, Subscription
from .opml import group_by_category, import_plan, render
from .search import search_subscriptions
from .state import ReadStateStore
from .unread import guest_counts, mark_feed_read, mark_item_read, unread_counts

LOGGER = logging.getLogger("frontpage")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch, aggregate and search RSS/Atom subscriptions")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--state-file", type=Path, help="Override the read-state file location")
    parser.add_argument("--no-og-image", action="store_true", help="Skip og:image lookups on item pages")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Fetch and normalize a single feed")
    fetch.add_argument("url")

    everything = sub.add_parser("all", help="Aggregate every subscription, newest first")
    everything.add_argument("--opml", type=Path, required=True, help="Subscription list")

    search = sub.add_parser("search", help="Search across all subscriptions")
    search.add_argument("query")
    search.add_argument("--opml", type=Path, required=True, help="Subscription list")

    unread = sub.add_parser("unread", help="Unread counts per subscription (guest feeds without --opml)")
    unread.add_argument("--opml", type=Path, help="Subscription list")

    mark = sub.add_parser("mark-read", help="Mark a whole subscription as read")
    mark.add_argument("subscription", help="Subscription id (its feed URL)")

    mark_item = sub.add_parser("mark-item-read", help="Mark a single item as read")
    mark_item.add_argument("subscription", help="Subscription id (its feed URL)")
    mark_item.add_argument("guid")

    export = sub.add_parser("export", help="Re-render a subscription list as grouped OPML")
    export.add_argument("--opml", type=Path, required=True, help="Subscription list")
    export.add_argument("--output", type=Path, help="Write the document here instead of stdout")
    return parser.parse_args(argv)


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    return value


def _emit(payload: Any) -> None:
    print(json.dumps(_jsonable(payload), indent=2, default=str))


def _load_descriptors(path: Path) -> List[OpmlFeedDescriptor]:
    return import_plan(path.read_text(encoding="utf-8"))


def _descriptor_to_subscription(feed: OpmlFeedDescriptor) -> Subscription:
    return Subscription(
        xml_url=feed.xml_url,
        title=feed.title,
        html_url=feed.html_url,
        description=feed.description,
        category=feed.category,
    )


def run(args: argparse.Namespace, config: Config) -> int:
    fetcher = FeedFetcher(config)
    store = ReadStateStore(config.state_file)

    if args.command == "fetch":
        _emit(fetcher.fetch(args.url))
    elif args.command == "all":
        urls = [feed.xml_url for feed in _load_descriptors(args.opml)]
        _emit(all_subscriptions(urls, fetcher))
    elif args.command == "search":
        urls = [feed.xml_url for feed in _load_descriptors(args.opml)]
        _emit(search_subscriptions(urls, args.query, fetcher))
    elif args.command == "unread":
        if args.opml is None:
            _emit(guest_counts(fetcher))
        else:
            subscriptions: Dict[str, str] = {feed.xml_url: feed.xml_url for feed in _load_descriptors(args.opml)}
            _emit(unread_counts(subscriptions, store.all(), fetcher))
    elif args.command == "mark-read":
        store.put(mark_feed_read(store.get(args.subscription)))
        store.save()
        _emit({"success": True})
    elif args.command == "mark-item-read":
        store.put(mark_item_read(store.get(args.subscription), args.guid))
        store.save()
        _emit({"success": True})
    elif args.command == "export":
        subs = [_descriptor_to_subscription(feed) for feed in _load_descriptors(args.opml)]
        document = render(group_by_category(subs))
        if args.output:
            args.output.write_text(document, encoding="utf-8")
            LOGGER.info("OPML written to %s", args.output)
        else:
            sys.stdout.write(document)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    config = load_config()
    overrides: Dict[str, Any] = {}
    if args.state_file:
        overrides["state_file"] = args.state_file
    if args.no_og_image:
        overrides["og_image_lookup"] = False
    if overrides:
        config = replace(config, **overrides)

    try:
        return run(args, config)
    except FrontpageError as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
