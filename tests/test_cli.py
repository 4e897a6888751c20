"""Tests for the command-line entry point."""

from __future__ import annotations

import json
from unittest.mock import patch

from conftest import RSS_FEED, make_response, url_router
from frontpage.__main__ import main
from frontpage.opml import parse_outlines

FEED = "https://feeds.example.com/news.xml"

OPML = f"""<?xml version="1.0"?>
<opml version="2.0"><body>
  <outline text="Tech">
    <outline text="Example" xmlUrl="{FEED}" htmlUrl="https://example.com/"/>
  </outline>
  <outline text="Down" xmlUrl="https://down.example.com/rss"/>
</body></opml>
"""


def _run(argv, tmp_path, capsys):
    state = tmp_path / "state.json"
    code = main(["--no-og-image", "--state-file", str(state), *argv])
    return code, capsys.readouterr().out


def test_fetch(tmp_path, capsys):
    with patch("requests.get", return_value=make_response(RSS_FEED)):
        code, out = _run(["fetch", FEED], tmp_path, capsys)
    assert code == 0
    payload = json.loads(out)
    assert payload["feed_url"] == FEED
    assert len(payload["items"]) == 5


def test_fetch_failure_exits_nonzero(tmp_path, capsys):
    with patch("requests.get", side_effect=url_router({})):
        code, _ = _run(["fetch", FEED], tmp_path, capsys)
    assert code == 1


def test_search_and_short_query(tmp_path, capsys):
    opml = tmp_path / "subs.opml"
    opml.write_text(OPML)
    with patch("requests.get", side_effect=url_router({FEED: make_response(RSS_FEED)})):
        code, out = _run(["search", "media", "--opml", str(opml)], tmp_path, capsys)
        assert code == 0
        payload = json.loads(out)
        assert payload["query"] == "media"
        assert [item["title"] for item in payload["items"]] == ["Media item"]

        code, _ = _run(["search", "m", "--opml", str(opml)], tmp_path, capsys)
        assert code == 1


def test_all(tmp_path, capsys):
    opml = tmp_path / "subs.opml"
    opml.write_text(OPML)
    with patch("requests.get", side_effect=url_router({FEED: make_response(RSS_FEED)})):
        code, out = _run(["all", "--opml", str(opml)], tmp_path, capsys)
    payload = json.loads(out)
    assert code == 0
    assert payload["title"] == "All Subscriptions"
    assert len(payload["items"]) == 5
    assert payload["failed_urls"] == ["https://down.example.com/rss"]


DATED_FEED = RSS_FEED.replace(
    "    <item>\n      <description>Nothing identifying here</description>\n    </item>\n", ""
)


def test_unread_after_marking(tmp_path, capsys):
    opml = tmp_path / "subs.opml"
    opml.write_text(OPML)
    with patch("requests.get", side_effect=url_router({FEED: make_response(DATED_FEED)})):
        _run(["mark-item-read", FEED, "a-1"], tmp_path, capsys)
        code, out = _run(["unread", "--opml", str(opml)], tmp_path, capsys)
    assert code == 0
    counts = {row["subscription_id"]: row["unread_count"] for row in json.loads(out)}
    assert counts == {FEED: 3, "https://down.example.com/rss": 0}

    _run(["mark-read", FEED], tmp_path, capsys)
    with patch("requests.get", side_effect=url_router({FEED: make_response(DATED_FEED)})):
        _, out = _run(["unread", "--opml", str(opml)], tmp_path, capsys)
    counts = {row["subscription_id"]: row["unread_count"] for row in json.loads(out)}
    assert counts[FEED] == 0


def test_export(tmp_path, capsys):
    opml = tmp_path / "subs.opml"
    opml.write_text(OPML)
    target = tmp_path / "out.opml"
    code, _ = _run(["export", "--opml", str(opml), "--output", str(target)], tmp_path, capsys)
    assert code == 0
    parsed = parse_outlines(target.read_text())
    assert [(d.xml_url, d.category) for d in parsed] == [
        ("https://down.example.com/rss", None),
        (FEED, "Tech"),
    ]
