"""OPML import and export.

The importer is a lenient scanner, not an XML parser. Outline tags are
tokenized with a regular expression and walked with a stack of open
containers, so unclosed tags, attribute order and stray whitespace never
cause a failure. A feed's category is the innermost open container that
has a name. Documents with a single level of category nesting, which is
what every common reader exports, come back exactly; deeper nesting only
keeps the innermost group name.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import ValidationError, ValidationErrorKind
from .models import OpmlFeedDescriptor, Subscription

LOGGER = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
DOCUMENT_TITLE = "Frontpage Subscriptions"

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(
    r"<(/?)outline\b((?:[^>\"']|\"[^\"]*\"|'[^']*')*?)\s*(/?)\s*>",
    re.IGNORECASE,
)
_ATTR_RE = re.compile(r"([\w:.-]+)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
_ENTITY_RE = re.compile(r"&(amp|lt|gt|quot|apos|#[0-9]+|#x[0-9a-fA-F]+);")
_ENTITIES = {"amp": "&", "lt": "<", "gt": ">", "quot": '"', "apos": "'"}

OPEN, CLOSE, SELF_CLOSE = "open", "close", "selfclose"


def escape_xml(value: Optional[str]) -> str:
    return (
        (value or "")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _replace_entity(match: "re.Match[str]") -> str:
    name = match.group(1)
    if name.startswith("#"):
        try:
            code = int(name[2:], 16) if name[1:2] in ("x", "X") else int(name[1:])
            return chr(code)
        except (ValueError, OverflowError):
            return match.group(0)
    return _ENTITIES[name]


def unescape_xml(value: str) -> str:
    return _ENTITY_RE.sub(_replace_entity, value)


def parse_attributes(raw: str) -> Dict[str, str]:
    """Extract attributes in any order; keys are lower-cased."""

    attrs: Dict[str, str] = {}
    for match in _ATTR_RE.finditer(raw):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs[match.group(1).lower()] = unescape_xml(value)
    return attrs


def iter_outline_events(xml: str) -> Iterator[Tuple[str, Dict[str, str]]]:
    """Yield ``(event, attributes)`` for every outline tag in document order."""

    text = _COMMENT_RE.sub("", xml or "")
    for match in _TAG_RE.finditer(text):
        closing, raw_attrs, self_closing = match.groups()
        if closing:
            yield CLOSE, {}
        elif self_closing:
            yield SELF_CLOSE, parse_attributes(raw_attrs)
        else:
            yield OPEN, parse_attributes(raw_attrs)


def _optional(value: Optional[str]) -> Optional[str]:
    return value or None


def _current_category(stack: List[Tuple[bool, Optional[str]]]) -> Optional[str]:
    for is_container, name in reversed(stack):
        if is_container and name:
            return name
    return None


def parse_outlines(xml: str) -> List[OpmlFeedDescriptor]:
    """Return one descriptor per outline that carries an ``xmlUrl``.

    Outlines without ``xmlUrl`` that are self-closed are skipped; open
    ones are treated as category containers.
    """

    feeds: List[OpmlFeedDescriptor] = []
    # (is_container, category name) for every outline still open.
    stack: List[Tuple[bool, Optional[str]]] = []
    skipped = 0

    for event, attrs in iter_outline_events(xml):
        if event == CLOSE:
            if stack:
                stack.pop()
            continue

        is_feed = "xmlurl" in attrs
        xml_url = (attrs.get("xmlurl") or "").strip()
        if xml_url:
            feeds.append(
                OpmlFeedDescriptor(
                    xml_url=xml_url,
                    title=attrs.get("title") or attrs.get("text") or "",
                    html_url=_optional(attrs.get("htmlurl")),
                    description=_optional(attrs.get("description")),
                    category=_current_category(stack),
                )
            )
        elif is_feed or event == SELF_CLOSE:
            skipped += 1

        if event == OPEN:
            if is_feed:
                stack.append((False, None))
            else:
                stack.append((True, _optional(attrs.get("text") or attrs.get("title"))))

    if skipped:
        LOGGER.debug("Skipped %d outlines without xmlUrl", skipped)
    LOGGER.info("Parsed %d feeds from OPML", len(feeds))
    return feeds


def import_plan(xml: str) -> List[OpmlFeedDescriptor]:
    feeds = parse_outlines(xml)
    if not feeds:
        raise ValidationError(ValidationErrorKind.NO_FEEDS, "No feeds found in the OPML file")
    return feeds


def group_by_category(subscriptions: Sequence[Subscription]) -> Dict[str, List[Subscription]]:
    """Group subscriptions by category name, uncategorized first, then first-seen order."""

    grouped: Dict[str, List[Subscription]] = {UNCATEGORIZED: []}
    for sub in subscriptions:
        grouped.setdefault(sub.category or UNCATEGORIZED, []).append(sub)
    return grouped


def _is_uncategorized(name: Optional[str]) -> bool:
    return not name or name == UNCATEGORIZED


def _feed_outline(sub: Subscription, indent: str) -> str:
    if not sub.xml_url:
        raise ValidationError(
            ValidationErrorKind.MISSING_XML_URL,
            f"Subscription {sub.title!r} has no feed URL",
        )
    title = escape_xml(sub.title)
    return (
        f'{indent}<outline type="rss" text="{title}" title="{title}" '
        f'xmlUrl="{escape_xml(sub.xml_url)}" htmlUrl="{escape_xml(sub.html_url)}" '
        f'description="{escape_xml(sub.description)}" />'
    )


def render(groups: Mapping[Optional[str], Sequence[Subscription]], now: Optional[datetime] = None) -> str:
    """Serialize grouped subscriptions into an OPML 2.0 document.

    Attribute values are written as given. A missing ``html_url`` or
    ``description`` is written as an empty attribute, and
    ``parse_outlines`` reads an empty attribute back as ``None``.
    """

    created = now or datetime.now(timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<opml version="2.0">',
        "  <head>",
        f"    <title>{DOCUMENT_TITLE}</title>",
        f"    <dateCreated>{format_datetime(created.astimezone(timezone.utc), usegmt=True)}</dateCreated>",
        "  </head>",
        "  <body>",
    ]
    for name, subs in groups.items():
        if _is_uncategorized(name):
            lines.extend(_feed_outline(sub, "    ") for sub in subs)
            continue
        label = escape_xml(name)
        lines.append(f'    <outline text="{label}" title="{label}">')
        lines.extend(_feed_outline(sub, "      ") for sub in subs)
        lines.append("    </outline>")
    lines.extend(["  </body>", "</opml>"])
    return "\n".join(lines) + "\n"


__all__ = [
    "DOCUMENT_TITLE",
    "UNCATEGORIZED",
    "escape_xml",
    "group_by_category",
    "import_plan",
    "iter_outline_events",
    "parse_attributes",
    "parse_outlines",
    "render",
    "unescape_xml",
]
