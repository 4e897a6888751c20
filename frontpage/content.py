"""Best-effort image lookup on the pages that feed items link to."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import List, Optional, Sequence
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .config import Config
from .models import NormalizedItem

LOGGER = logging.getLogger(__name__)


def find_og_image(url: str, timeout: float, user_agent: str) -> Optional[str]:
    """Return the Open Graph image declared by the page at ``url``.

    Every failure (network, HTTP status, missing tag) yields ``None``.
    """

    if not url:
        return None

    headers = {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    try:
        response = requests.get(url, timeout=timeout, headers=headers)
        response.raise_for_status()
    except requests.RequestException as exc:
        LOGGER.debug("Unable to fetch page for og:image %s: %s", url, exc)
        return None

    soup = BeautifulSoup(response.text, "html.parser")
    tag = soup.find("meta", attrs={"property": "og:image"}) or soup.find("meta", attrs={"name": "og:image"})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    if not content:
        return None
    return urljoin(url, content)


def resolve_missing_images(items: Sequence[NormalizedItem], config: Config) -> List[NormalizedItem]:
    """Fill ``image_url`` from og:image for items that still have none.

    Lookups run on a bounded pool and the whole pass waits at most
    ``config.og_image_timeout``; anything unfinished by then keeps no image.
    """

    items = list(items)
    if not config.og_image_lookup:
        return items

    pending = [item for item in items if not item.image_url and item.link]
    if not pending:
        return items

    executor = ThreadPoolExecutor(max_workers=min(config.og_image_workers, len(pending)))
    try:
        futures = {
            executor.submit(find_og_image, item.link, config.og_image_timeout, config.user_agent): item
            for item in pending
        }
        done, not_done = wait(futures, timeout=config.og_image_timeout)
        for future in done:
            try:
                image_url = future.result()
            except Exception as exc:  # pragma: no cover - find_og_image already guards
                LOGGER.debug("og:image lookup crashed for %s: %s", futures[future].link, exc)
                continue
            if image_url:
                futures[future].image_url = image_url
        if not_done:
            LOGGER.debug("Abandoned %d og:image lookups after %.1fs", len(not_done), config.og_image_timeout)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return items


__all__ = ["find_og_image", "resolve_missing_images"]
