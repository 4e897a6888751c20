"""Exception types raised by the feed core."""

from __future__ import annotations

from enum import Enum


class FrontpageError(Exception):
    """Base class for errors raised by this package."""


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    PARSE_OR_NETWORK = "parse_or_network"


class ValidationErrorKind(str, Enum):
    QUERY_TOO_SHORT = "query_too_short"
    MISSING_XML_URL = "missing_xml_url"
    NO_FEEDS = "no_feeds"


class FetchError(FrontpageError):
    """A single feed could not be retrieved or parsed."""

    def __init__(self, url: str, kind: FetchErrorKind, message: str) -> None:
        super().__init__(f"Failed to fetch feed {url}: {message}")
        self.url = url
        self.kind = kind
        self.message = message


class ValidationError(FrontpageError):
    """Caller input was rejected before any work was done."""

    def __init__(self, kind: ValidationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


__all__ = [
    "FetchError",
    "FetchErrorKind",
    "FrontpageError",
    "ValidationError",
    "ValidationErrorKind",
]
